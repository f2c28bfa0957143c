"""Reporting of detected vulnerabilities to a handler as entries and findings."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence

from .models import (
    GO_STD_MODULE_PATH,
    Affected,
    Entry,
    ModVulns,
    Module,
    Package,
    Position,
    Vuln,
)
from .versions import fixed_version
from .witness import CallStack


@dataclass
class Frame:
    """One step of a finding's trace."""

    module: str = ""
    version: str = ""
    package: str = ""
    function: str = ""
    receiver: str = ""
    position: Optional[Position] = None


@dataclass
class Finding:
    """A vulnerability found at module, package or call precision."""

    osv: str
    fixed_version: str = ""
    trace: List[Frame] = field(default_factory=list)


class Handler:
    """Receives scan output.

    This base keeps everything it is given in ``osvs`` and ``findings``;
    subclasses may send it elsewhere. An exception raised by either method
    stops the scan.
    """

    def __init__(self) -> None:
        self.osvs: List[Entry] = []
        self.findings: List[Finding] = []

    def osv(self, entry: Entry) -> None:
        self.osvs.append(entry)

    def finding(self, finding: Finding) -> None:
        self.findings.append(finding)


def _mod_path(mod: Module) -> str:
    return mod.replace.path if mod.replace is not None else mod.path


def _mod_version(mod: Module) -> str:
    return mod.replace.version if mod.replace is not None else mod.version


def emit_osvs(handler: Handler, mod_vulns: Iterable[ModVulns]) -> None:
    """Send every entry in ``mod_vulns`` to the handler as it is."""
    for mv in mod_vulns:
        for entry in mv.vulns:
            handler.osv(entry)


def emit_module_findings(handler: Handler, aff_vulns: Iterable[ModVulns]) -> None:
    """Send a module-level finding for every affecting entry."""
    for mv in aff_vulns:
        for entry in mv.vulns:
            handler.finding(
                Finding(
                    osv=entry.id,
                    fixed_version=fixed_version(
                        _mod_path(mv.module), _mod_version(mv.module), entry.affected
                    ),
                    trace=[_frame_from_module(mv.module, entry.affected)],
                )
            )


def emit_package_findings(handler: Handler, vulns: Iterable[Vuln]) -> None:
    """Send a package-level finding for every vulnerability."""
    for vuln in vulns:
        module = vuln.package.module
        handler.finding(
            Finding(
                osv=vuln.osv.id,
                fixed_version=fixed_version(_mod_path(module), _mod_version(module), vuln.osv.affected),
                trace=[_frame_from_package(vuln.package)],
            )
        )


def emit_call_findings(handler: Handler, callstacks: Dict[Vuln, Optional[CallStack]]) -> None:
    """Send a call-level finding for every vulnerability that has a call stack,
    ordered by symbol."""
    for vuln in sorted(callstacks, key=lambda v: v.symbol):
        stack = callstacks[vuln]
        if stack is None:
            continue
        module = vuln.package.module
        handler.finding(
            Finding(
                osv=vuln.osv.id,
                fixed_version=fixed_version(_mod_path(module), _mod_version(module), vuln.osv.affected),
                trace=trace_from_entries(stack),
            )
        )


def trace_from_entries(stack: Sequence) -> List[Frame]:
    """Frames of a call stack from the vulnerable symbol back to the entry.

    A frame's position is the position of the call made in it.
    """
    frames: List[Frame] = []
    for entry in reversed(stack):
        frame = _frame_from_package(entry.function.package)
        frame.function = entry.function.name
        frame.receiver = entry.function.receiver()
        call = entry.call
        frame.position = None if call is None or call.pos is None else replace(call.pos)
        frames.append(frame)
    return frames


def _frame_from_package(pkg: Optional[Package]) -> Frame:
    frame = Frame()
    if pkg is None:
        return frame
    frame.package = pkg.pkg_path
    module = pkg.module
    if module is None:
        return frame
    frame.module = module.path
    frame.version = module.version
    if module.replace is not None:
        frame.module = module.replace.path
        frame.version = module.replace.version
    return frame


def _frame_from_module(mod: Module, affected: Sequence[Affected]) -> Frame:
    frame = Frame(module=mod.path, version=mod.version)
    if mod.path == GO_STD_MODULE_PATH:
        for a in affected:
            if a.module_path != mod.path or not a.packages:
                continue
            frame.package = a.packages[0].path
    if mod.replace is not None:
        frame.module = mod.replace.path
        frame.version = mod.replace.version
    return frame