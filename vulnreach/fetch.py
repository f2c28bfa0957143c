"""Fetching of vulnerability entries for the modules of a program."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .models import Entry, ModVulns, Module


@dataclass
class ModuleRequest:
    path: str


@dataclass
class ModuleResponse:
    path: str
    entries: List[Entry] = field(default_factory=list)


class FetchError(Exception):
    """Vulnerability entries could not be fetched."""


class VulnClient:
    """A vulnerability database held in memory, indexed by affected module."""

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._by_module: Dict[str, List[Entry]] = {}
        for entry in entries:
            for path in dict.fromkeys(a.module_path for a in entry.affected):
                self._by_module.setdefault(path, []).append(entry)

    def by_modules(self, requests: Sequence[ModuleRequest]) -> List[ModuleResponse]:
        """One response per request, in request order."""
        return [
            ModuleResponse(path=req.path, entries=list(self._by_module.get(req.path, ())))
            for req in requests
        ]


def fetch_vulnerabilities(client: VulnClient, modules: Sequence[Module]) -> List[ModVulns]:
    """Entries affecting each module, skipping modules without any.

    A replaced module is looked up under its replacement's path.
    """
    requests = [
        ModuleRequest(path=mod.replace.path if mod.replace is not None else mod.path)
        for mod in modules
    ]
    try:
        responses = client.by_modules(requests)
    except Exception as err:
        raise FetchError(f"fetching vulnerabilities: {err}") from err
    return [
        ModVulns(module=mod, vulns=resp.entries)
        for mod, resp in zip(modules, responses)
        if resp.entries
    ]