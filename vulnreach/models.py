"""Data model for modules, packages, vulnerability entries and call graphs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

GO_STD_MODULE_PATH = "stdlib"
UNKNOWN_MODULE_PATH = "unknown-module"
RANGE_TYPE_SEMVER = "SEMVER"


@dataclass
class Module:
    """A module at a version, possibly replaced by another module."""

    path: str = ""
    version: str = ""
    replace: Optional["Module"] = None


@dataclass(eq=False)
class Package:
    """A package known to the analysis; compared by identity."""

    pkg_path: str = ""
    module: Optional[Module] = None
    imports: Dict[str, "Package"] = field(default_factory=dict, repr=False)
    package_position: Optional["Position"] = None
    import_positions: Dict[str, "Position"] = field(default_factory=dict, repr=False)


@dataclass
class Position:
    """A source position; a line of zero means the position is unknown."""

    filename: str = ""
    offset: int = 0
    line: int = 0
    column: int = 0

    def is_valid(self) -> bool:
        return self.line > 0


@dataclass
class RangeEvent:
    introduced: str = ""
    fixed: str = ""


@dataclass
class Range:
    type: str = RANGE_TYPE_SEMVER
    events: List[RangeEvent] = field(default_factory=list)


@dataclass
class EcosystemPackage:
    """A package named by a vulnerability entry, with platform and symbol limits."""

    path: str = ""
    goos: List[str] = field(default_factory=list)
    goarch: List[str] = field(default_factory=list)
    symbols: List[str] = field(default_factory=list)


@dataclass
class Affected:
    """The versions and packages of one module affected by an entry."""

    module_path: str = ""
    ranges: List[Range] = field(default_factory=list)
    packages: List[EcosystemPackage] = field(default_factory=list)


@dataclass
class Entry:
    """A vulnerability entry."""

    id: str = ""
    affected: List[Affected] = field(default_factory=list)
    withdrawn: Optional[datetime] = None
    aliases: List[str] = field(default_factory=list)
    summary: str = ""
    details: str = ""


@dataclass(eq=False)
class FuncNode:
    """A function in the call graph."""

    name: str = ""
    recv_type: str = ""
    package: Optional[Package] = None
    pos: Optional[Position] = None
    call_sites: List["CallSite"] = field(default_factory=list, repr=False)

    def __str__(self) -> str:
        if not self.recv_type:
            return f"{self.package.pkg_path}.{self.name}"
        return f"{self.recv_type}.{self.name}"

    def receiver(self) -> str:
        """The receiver type with the package path removed; pointers are kept."""
        return self.recv_type.replace(f"{self.package.pkg_path}.", "", 1)


@dataclass(eq=False)
class CallSite:
    """A call of a function from its parent function."""

    parent: Optional[FuncNode] = None
    name: str = ""
    recv_type: str = ""
    pos: Optional[Position] = None
    resolved: bool = False


@dataclass(eq=False)
class Vuln:
    """A detected vulnerability, with its call sink when it is reachable."""

    osv: Optional[Entry] = None
    symbol: str = ""
    call_sink: Optional[FuncNode] = None
    package: Optional[Package] = None


@dataclass
class Result:
    entry_functions: List[FuncNode] = field(default_factory=list)
    vulns: List[Vuln] = field(default_factory=list)


@dataclass
class ModVulns:
    """Vulnerability entries grouped by the module they concern."""

    module: Module
    vulns: List[Entry] = field(default_factory=list)