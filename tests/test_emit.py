import pytest

from vulnreach.emit import (
    Finding,
    Handler,
    emit_call_findings,
    emit_module_findings,
    emit_osvs,
    emit_package_findings,
    trace_from_entries,
)
from vulnreach.models import (
    GO_STD_MODULE_PATH,
    Affected,
    CallSite,
    EcosystemPackage,
    Entry,
    FuncNode,
    ModVulns,
    Module,
    Package,
    Position,
    Range,
    RangeEvent,
    Vuln,
)
from vulnreach.witness import StackEntry


def _entry(entry_id, module_path, fixed="v2.0.0", packages=()):
    return Entry(
        id=entry_id,
        affected=[
            Affected(
                module_path=module_path,
                ranges=[Range(events=[RangeEvent(introduced="0"), RangeEvent(fixed=fixed)])],
                packages=list(packages),
            )
        ],
    )


class _FailingHandler(Handler):
    def finding(self, finding):
        raise RuntimeError("handler failed")


def test_emit_osvs_sends_all_entries_in_order():
    a = _entry("a", "example.mod/a")
    b = _entry("b", "example.mod/b")
    c = _entry("c", "example.mod/b")
    handler = Handler()
    emit_osvs(handler, [
        ModVulns(module=Module(path="example.mod/a"), vulns=[a]),
        ModVulns(module=Module(path="example.mod/b"), vulns=[b, c]),
    ])
    assert [e.id for e in handler.osvs] == ["a", "b", "c"]
    assert handler.findings == []


def test_module_findings_carry_id_fix_and_module_frame():
    entry = _entry("a", "example.mod/a")
    handler = Handler()
    emit_module_findings(handler, [ModVulns(module=Module(path="example.mod/a", version="v1.0.0"), vulns=[entry])])
    assert len(handler.findings) == 1
    finding = handler.findings[0]
    assert finding.osv == "a"
    assert finding.fixed_version == "v2.0.0"
    assert len(finding.trace) == 1
    assert finding.trace[0].module == "example.mod/a"
    assert finding.trace[0].version == "v1.0.0"
    assert finding.trace[0].package == ""


def test_module_finding_uses_replacement_module():
    entry = _entry("c", "example.mod/d")
    module = Module(path="example.mod/c", version="v2.0.0", replace=Module(path="example.mod/d", version="v1.0.0"))
    handler = Handler()
    emit_module_findings(handler, [ModVulns(module=module, vulns=[entry])])
    frame = handler.findings[0].trace[0]
    assert frame.module == "example.mod/d"
    assert frame.version == "v1.0.0"
    assert handler.findings[0].fixed_version == "v2.0.0"


def test_stdlib_module_frame_names_package():
    entry = _entry("STD", GO_STD_MODULE_PATH, packages=[EcosystemPackage(path="archive/zip")])
    handler = Handler()
    emit_module_findings(handler, [ModVulns(module=Module(path=GO_STD_MODULE_PATH, version="v1.20.0"), vulns=[entry])])
    frame = handler.findings[0].trace[0]
    assert frame.package == "archive/zip"
    assert frame.module == GO_STD_MODULE_PATH


def test_package_findings_name_package():
    entry = _entry("a", "example.mod/a")
    pkg = Package(pkg_path="example.mod/a/p", module=Module(path="example.mod/a", version="v1.0.0"))
    handler = Handler()
    emit_package_findings(handler, [Vuln(osv=entry, package=pkg)])
    finding = handler.findings[0]
    assert finding.osv == "a"
    assert finding.trace[0].package == "example.mod/a/p"
    assert finding.trace[0].module == "example.mod/a"
    assert finding.fixed_version == "v2.0.0"


def test_trace_from_entries_reverses_stack_and_keeps_call_positions():
    pkg = Package(pkg_path="example.com/a/pkg", module=Module(path="example.com/a", version="v1.0.0"))
    entry_fn = FuncNode(name="Main", package=pkg)
    sink = FuncNode(name="Vuln1", recv_type="*example.com/a/pkg.Atype", package=pkg)
    pos = Position(filename="a.go", offset=10, line=3, column=4)
    stack = [
        StackEntry(function=entry_fn, call=CallSite(parent=entry_fn, pos=pos)),
        StackEntry(function=sink),
    ]
    frames = trace_from_entries(stack)
    assert [f.function for f in frames] == ["Vuln1", "Main"]
    assert frames[0].receiver == "*Atype"
    assert frames[0].position is None
    assert frames[1].position == pos
    assert frames[1].position is not pos
    assert all(f.package == "example.com/a/pkg" for f in frames)


def test_call_findings_sorted_by_symbol_and_skip_missing_stacks():
    entry = _entry("a", "example.mod/a")
    pkg = Package(pkg_path="example.mod/a/p", module=Module(path="example.mod/a", version="v1.0.0"))
    fn_b = FuncNode(name="B", package=pkg)
    fn_a = FuncNode(name="A", package=pkg)
    vb = Vuln(osv=entry, symbol="B", package=pkg)
    va = Vuln(osv=entry, symbol="A", package=pkg)
    vc = Vuln(osv=entry, symbol="C", package=pkg)
    handler = Handler()
    emit_call_findings(handler, {
        vb: [StackEntry(function=fn_b)],
        vc: None,
        va: [StackEntry(function=fn_a)],
    })
    assert [f.trace[0].function for f in handler.findings] == ["A", "B"]


def test_handler_error_stops_emission():
    entry = _entry("a", "example.mod/a")
    handler = _FailingHandler()
    with pytest.raises(RuntimeError, match="handler failed"):
        emit_module_findings(handler, [ModVulns(module=Module(path="example.mod/a", version="v1.0.0"), vulns=[entry])])
    assert handler.findings == []


def test_finding_defaults():
    finding = Finding(osv="a")
    assert finding.fixed_version == ""
    assert finding.trace == []