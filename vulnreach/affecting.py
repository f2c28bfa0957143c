"""Filtering of vulnerability entries down to those that affect a program."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from .models import GO_STD_MODULE_PATH, EcosystemPackage, Entry, ModVulns
from .versions import affects


class AffectingVulns(list):
    """Per-module vulnerabilities that apply to the program and platform scanned."""

    def for_package(self, import_path: str) -> Optional[List[Entry]]:
        """Entries of the most specific module owning ``import_path``.

        Returns None when no module with vulnerabilities matches.
        """
        is_std = is_std_package(import_path)
        most_specific: Optional[ModVulns] = None
        for mod in self:
            if is_std and mod.module.path == GO_STD_MODULE_PATH:
                # Standard library packages have no module of their own.
                most_specific = mod
            elif import_path.startswith(mod.module.path):
                if most_specific is None or len(most_specific.module.path) < len(mod.module.path):
                    most_specific = mod
        if most_specific is None:
            return None

        module = most_specific.module
        if module.replace is not None:
            import_path = module.replace.path + import_path.removeprefix(module.path)

        return [entry for entry in most_specific.vulns if _names_package(entry, import_path)]

    def for_symbol(self, import_path: str, symbol: str) -> Optional[List[Entry]]:
        """Entries from :meth:`for_package` that cover ``symbol``."""
        entries = self.for_package(import_path)
        if entries is None:
            return None
        return [entry for entry in entries if _names_symbol(entry, import_path, symbol)]


def _names_package(entry: Entry, import_path: str) -> bool:
    # An affected value without packages makes every package vulnerable.
    return any(
        not a.packages or any(p.path == import_path for p in a.packages)
        for a in entry.affected
    )


def _names_symbol(entry: Entry, import_path: str, symbol: str) -> bool:
    return any(
        not a.packages
        or any(
            p.path == import_path and (not p.symbols or symbol in p.symbols)
            for p in a.packages
        )
        for a in entry.affected
    )


def _is_withdrawn(entry: Entry) -> bool:
    if entry.withdrawn is None:
        return False
    now = datetime.now() if entry.withdrawn.tzinfo is None else datetime.now(timezone.utc)
    return entry.withdrawn < now


def affecting_vulnerabilities(
    vulns: Iterable[ModVulns], goos: str, goarch: str
) -> AffectingVulns:
    """Keep only entries that affect each module's version on the given platform.

    The inputs are left untouched; filtered entries are copies.
    """
    filtered = AffectingVulns()
    for mod in vulns:
        module = mod.module
        mod_version = module.replace.version if module.replace is not None else module.version
        kept_entries: List[Entry] = []
        for entry in mod.vulns:
            if _is_withdrawn(entry):
                continue
            kept_affected = []
            for a in entry.affected:
                # Information on other modules reported alongside is dropped.
                if a.module_path != module.path:
                    continue
                # An unknown version would only produce false alarms.
                if not mod_version:
                    continue
                if not affects(a.ranges, mod_version):
                    continue
                packages = [p for p in a.packages if matches_platform(goos, goarch, p)]
                if a.packages and not packages:
                    continue
                kept_affected.append(replace(a, packages=packages))
            if not kept_affected:
                continue
            kept_entries.append(replace(entry, affected=kept_affected))
        filtered.append(ModVulns(module=module, vulns=kept_entries))
    return filtered


def _matches_component(value: str, allowed: Sequence[str]) -> bool:
    # An empty value or an empty list matches everything.
    return not value or not allowed or value in allowed


def matches_platform(goos: str, goarch: str, package: EcosystemPackage) -> bool:
    """Report whether the package's platform limits admit ``goos``/``goarch``."""
    return _matches_component(goos, package.goos) and _matches_component(goarch, package.goarch)


def is_std_package(pkg: str) -> bool:
    """Report whether an import path belongs to the standard library."""
    if not pkg:
        return False
    first = pkg.split("/", 1)[0]
    return "." not in first