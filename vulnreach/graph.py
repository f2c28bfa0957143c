"""Module and package graph with fast lookup by path."""

from __future__ import annotations

from typing import Dict

from .models import GO_STD_MODULE_PATH, UNKNOWN_MODULE_PATH, Module, Package
from .versions import go_tag_to_semver


class PackageGraph:
    """Holds every known module and package, keyed by path."""

    def __init__(self, go_version: str) -> None:
        self._modules: Dict[str, Module] = {}
        self._packages: Dict[str, Package] = {}
        self.add_modules(Module(path=GO_STD_MODULE_PATH, version=go_tag_to_semver(go_version)))

    def add_modules(self, *args: Module) -> None:
        """Add modules and their replacements; paths already known are ignored."""
        pending = list(reversed(args))
        while pending:
            mod = pending.pop()
            if mod.path in self._modules:
                continue
            self._modules[mod.path] = mod
            if mod.replace is not None:
                pending.append(mod.replace)

    def get_module(self, path: str) -> Module:
        """The module at ``path``, added with an empty version if not yet known."""
        mod = self._modules.get(path)
        if mod is not None:
            return mod
        mod = Module(path=path, version="")
        self.add_modules(mod)
        return mod

    def add_packages(self, *args: Package) -> None:
        """Add packages and everything they import; paths already known are ignored."""
        pending = list(reversed(args))
        while pending:
            pkg = pending.pop()
            if pkg.pkg_path in self._packages:
                continue
            self._packages[pkg.pkg_path] = pkg
            self._fixup_package(pkg)
            pending.extend(reversed(list(pkg.imports.values())))

    def get_package(self, path: str) -> Package:
        """The package at ``path``, added to the graph if not yet known."""
        pkg = self._packages.get(path)
        if pkg is not None:
            return pkg
        pkg = Package(pkg_path=path)
        self.add_packages(pkg)
        return pkg

    def _fixup_package(self, pkg: Package) -> None:
        if pkg.module is not None:
            self.add_modules(pkg.module)
            return
        pkg.module = self._find_module(pkg.pkg_path)

    def _find_module(self, pkg_path: str) -> Module:
        """First module whose path owns ``pkg_path``; stdlib or unknown otherwise."""
        if "." not in pkg_path:
            return self.get_module(GO_STD_MODULE_PATH)
        for mod in self._modules.values():
            if pkg_path == mod.path or pkg_path.startswith(mod.path + "/"):
                return mod
        return self.get_module(UNKNOWN_MODULE_PATH)