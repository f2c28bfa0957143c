"""Detection of vulnerable symbols in the contents of a compiled binary."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .affecting import AffectingVulns, affecting_vulnerabilities
from .emit import (
    Handler,
    emit_call_findings,
    emit_module_findings,
    emit_osvs,
    emit_package_findings,
)
from .fetch import VulnClient, fetch_vulnerabilities
from .graph import PackageGraph
from .models import GO_STD_MODULE_PATH, Module, Result, Vuln
from .witness import binary_callstacks


class ScanLevel(str, Enum):
    """How precisely findings are reported."""

    MODULE = "module"
    PACKAGE = "package"
    SYMBOL = "symbol"

    def want_packages(self) -> bool:
        return self in (ScanLevel.PACKAGE, ScanLevel.SYMBOL)

    def want_symbols(self) -> bool:
        return self is ScanLevel.SYMBOL


@dataclass
class Config:
    scan_level: ScanLevel = ScanLevel.SYMBOL

    def __post_init__(self) -> None:
        self.scan_level = ScanLevel(self.scan_level)


@dataclass
class Symbol:
    """A symbol found in a binary, with the package it belongs to."""

    pkg: str
    name: str


@dataclass
class Bin:
    """What a scan needs to know about a compiled binary."""

    modules: List[Module] = field(default_factory=list)
    pkg_symbols: List[Symbol] = field(default_factory=list)
    go_version: str = ""
    goos: str = ""
    goarch: str = ""


def scan_binary(handler: Handler, bin: Bin, cfg: Config, client: VulnClient) -> None:
    """Detect vulnerable symbols in ``bin`` and send all findings to ``handler``."""
    result = analyze_binary(handler, bin, cfg, client)
    if cfg.scan_level.want_symbols():
        emit_call_findings(handler, binary_callstacks(result))


def analyze_binary(handler: Handler, bin: Bin, cfg: Config, client: VulnClient) -> Result:
    """Detect vulnerable symbols in ``bin``.

    Entries, module findings and package findings are sent to ``handler`` as
    they are found; no call graph is computed, so no call sinks are set.
    """
    graph = PackageGraph(bin.go_version)
    graph.add_modules(*bin.modules)
    mods = list(bin.modules) + [graph.get_module(GO_STD_MODULE_PATH)]

    mod_vulns = fetch_vulnerabilities(client, mods)
    emit_osvs(handler, mod_vulns)

    if not bin.goos or not bin.goarch:
        print(
            "warning: failed to extract build system specification "
            f"GOOS: {bin.goos} GOARCH: {bin.goarch}"
        )
    aff_vulns = affecting_vulnerabilities(mod_vulns, bin.goos, bin.goarch)
    emit_module_findings(handler, aff_vulns)

    if not cfg.scan_level.want_packages() or not aff_vulns:
        return Result()

    if bin.pkg_symbols:
        pkg_symbols: Dict[str, List[str]] = {}
        for sym in bin.pkg_symbols:
            pkg_symbols.setdefault(sym.pkg, []).append(sym.name)
    else:
        # Stripped binaries carry no symbols; report at module precision.
        pkg_symbols = _all_known_vulnerable_symbols(aff_vulns)

    imported = _imported_vuln_packages(graph, pkg_symbols, aff_vulns)
    emit_package_findings(handler, imported)

    if not cfg.scan_level.want_symbols() or not imported:
        return Result(vulns=imported)

    return Result(vulns=_vuln_symbols(graph, pkg_symbols, aff_vulns))


def _imported_vuln_packages(
    graph: PackageGraph, pkg_symbols: Dict[str, List[str]], aff_vulns: AffectingVulns
) -> List[Vuln]:
    return [
        Vuln(osv=entry, package=graph.get_package(pkg))
        for pkg in pkg_symbols
        for entry in aff_vulns.for_package(pkg) or ()
    ]


def _vuln_symbols(
    graph: PackageGraph, pkg_symbols: Dict[str, List[str]], aff_vulns: AffectingVulns
) -> List[Vuln]:
    vulns: List[Vuln] = []
    for pkg, symbols in pkg_symbols.items():
        for symbol in sorted(symbols):
            for entry in aff_vulns.for_symbol(pkg, symbol) or ():
                vulns.append(Vuln(osv=entry, symbol=symbol, package=graph.get_package(pkg)))
    return vulns


def _all_known_vulnerable_symbols(aff_vulns: AffectingVulns) -> Dict[str, List[str]]:
    """Every symbol the entries name, per package.

    A package whose every symbol is vulnerable gets the placeholder ``<path>/*``.
    """
    pkg_symbols: Dict[str, List[str]] = {}
    for mv in aff_vulns:
        for entry in mv.vulns:
            for affected in entry.affected:
                for p in affected.packages:
                    symbols = p.symbols or [f"{p.path}/*"]
                    pkg_symbols.setdefault(p.path, []).extend(symbols)
    return pkg_symbols