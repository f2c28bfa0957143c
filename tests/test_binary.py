import pytest

from vulnreach.binary import (
    Bin,
    Config,
    ScanLevel,
    Symbol,
    analyze_binary,
    scan_binary,
)
from vulnreach.emit import Handler
from vulnreach.fetch import VulnClient
from vulnreach.models import (
    GO_STD_MODULE_PATH,
    Affected,
    EcosystemPackage,
    Entry,
    Module,
    Range,
    RangeEvent,
)


def _test_client():
    return VulnClient([
        Entry(
            id="VA",
            affected=[Affected(
                module_path="example.org/amod",
                ranges=[Range(events=[
                    RangeEvent(introduced="1.0.0"), RangeEvent(fixed="1.0.4"), RangeEvent(introduced="1.1.2"),
                ])],
                packages=[EcosystemPackage(path="example.org/amod/avuln", symbols=["VulnData.Vuln1", "VulnData.Vuln2"])],
            )],
        ),
        Entry(
            id="VB",
            affected=[Affected(
                module_path="example.org/bmod",
                ranges=[Range()],
                packages=[EcosystemPackage(path="example.org/bmod/bvuln", symbols=["Vuln"])],
            )],
        ),
        Entry(
            id="STD",
            affected=[Affected(
                module_path=GO_STD_MODULE_PATH,
                ranges=[Range(events=[RangeEvent(introduced="1.18")])],
                packages=[EcosystemPackage(path="archive/zip", symbols=["OpenReader"])],
            )],
        ),
    ])


def _bin(pkg_symbols=None, goos="linux", goarch="amd64"):
    if pkg_symbols is None:
        pkg_symbols = [
            Symbol(pkg="example.org/entry", name="main"),
            Symbol(pkg="example.org/cmod/c", name="C"),
            Symbol(pkg="example.org/amod/avuln", name="VulnData.Vuln1"),
            Symbol(pkg="example.org/bmod/bvuln", name="NoVuln"),
            Symbol(pkg="archive/zip", name="OpenReader"),
        ]
    return Bin(
        modules=[
            Module(path="example.org/entry"),
            Module(path="example.org/cmod", version="v1.1.3"),
            Module(path="example.org/amod", version="v1.1.3"),
            Module(path="example.org/bmod", version="v0.5.0"),
        ],
        go_version="go1.20",
        goos=goos,
        goarch=goarch,
        pkg_symbols=pkg_symbols,
    )


def _keys(vulns):
    return sorted((v.package.pkg_path, v.symbol) for v in vulns)


def test_binary_package_level():
    res = analyze_binary(Handler(), _bin(), Config(scan_level="package"), _test_client())
    assert _keys(res.vulns) == [
        ("archive/zip", ""),
        ("example.org/amod/avuln", ""),
        ("example.org/bmod/bvuln", ""),
    ]


def test_binary_symbol_level():
    res = analyze_binary(Handler(), _bin(), Config(scan_level="symbol"), _test_client())
    assert _keys(res.vulns) == [
        ("archive/zip", "OpenReader"),
        ("example.org/amod/avuln", "VulnData.Vuln1"),
    ]
    assert all(v.call_sink is None for v in res.vulns)


def test_binary_module_level_returns_nothing():
    handler = Handler()
    res = analyze_binary(handler, _bin(), Config(scan_level=ScanLevel.MODULE), _test_client())
    assert res.vulns == []
    assert [f.osv for f in handler.findings] == ["VA", "VB", "STD"]


def test_stripped_binary_reports_all_known_symbols():
    res = analyze_binary(Handler(), _bin(pkg_symbols=[]), Config(scan_level="symbol"), _test_client())
    assert _keys(res.vulns) == [
        ("archive/zip", "OpenReader"),
        ("example.org/amod/avuln", "VulnData.Vuln1"),
        ("example.org/amod/avuln", "VulnData.Vuln2"),
        ("example.org/bmod/bvuln", "Vuln"),
    ]


def test_scan_binary_emits_entries_and_findings():
    handler = Handler()
    scan_binary(handler, _bin(), Config(scan_level="symbol"), _test_client())
    assert [e.id for e in handler.osvs] == ["VA", "VB", "STD"]
    assert [f.osv for f in handler.findings] == ["VA", "VB", "STD", "VA", "VB", "STD", "STD", "VA"]

    std_module = handler.findings[2].trace[0]
    assert std_module.module == GO_STD_MODULE_PATH
    assert std_module.version == "v1.20.0"
    assert std_module.package == "archive/zip"

    open_reader, vuln1 = handler.findings[6].trace[0], handler.findings[7].trace[0]
    assert open_reader.function == "OpenReader"
    assert open_reader.package == "archive/zip"
    assert open_reader.module == GO_STD_MODULE_PATH
    assert vuln1.function == "Vuln1"
    assert vuln1.receiver == "VulnData"
    assert vuln1.module == "example.org/amod"
    assert vuln1.version == "v1.1.3"
    assert vuln1.position is None


def test_scan_binary_package_level_has_no_call_findings():
    handler = Handler()
    scan_binary(handler, _bin(), Config(scan_level="package"), _test_client())
    assert len(handler.findings) == 6


def test_missing_platform_prints_warning(capsys):
    analyze_binary(Handler(), _bin(goos="", goarch=""), Config(scan_level="module"), _test_client())
    assert "warning: failed to extract build system specification" in capsys.readouterr().out


def test_scan_level_flags():
    assert ScanLevel.SYMBOL.want_packages() and ScanLevel.SYMBOL.want_symbols()
    assert ScanLevel.PACKAGE.want_packages() and not ScanLevel.PACKAGE.want_symbols()
    assert not ScanLevel.MODULE.want_packages()


def test_config_rejects_unknown_level():
    with pytest.raises(ValueError):
        Config(scan_level="everything")