"""
Load-time representation of modules.

A module is represented by its parsed syntax tree plus what is needed to
define it again (file name, package search locations). The store parses
every module at most once and keeps the pristine tree; transformers only
ever see a working copy.
"""

from __future__ import annotations

import ast
import copy
import dataclasses
import importlib.machinery
import importlib.util
import threading
from typing import Any

from deepmock.errors import ModuleResolutionNotFoundError, NoSourceError


@dataclasses.dataclass
class ModuleRepresentation:
    name: str
    filename: str
    tree: ast.Module
    is_package: bool = False
    search_locations: list[str] | None = None
    loader: Any = None
    # Names a transformer needs in the module namespace before it runs
    injected_globals: dict[str, Any] = dataclasses.field(default_factory=dict)

    @property
    def package(self) -> str:
        if self.is_package:
            return self.name
        return self.name.rpartition(".")[0]

    def working_copy(self) -> ModuleRepresentation:
        return dataclasses.replace(
            self,
            tree=copy.deepcopy(self.tree),
            search_locations=list(self.search_locations) if self.search_locations is not None else None,
            injected_globals=dict(self.injected_globals),
        )

    def compile(self):
        tree = ast.fix_missing_locations(self.tree)
        return compile(tree, self.filename, "exec", dont_inherit=True)


def find_spec(name: str, path: list[str] | None = None):
    """
    Locate a module without importing it.

    ``path`` is the ``__path__`` of the parent package for submodules; the
    parent itself is not imported by the host.
    """
    if "." not in name:
        return importlib.util.find_spec(name)
    if path is None:
        # parent is not a package
        return None
    return importlib.machinery.PathFinder.find_spec(name, path)


class RepresentationStore:
    """Cache of pristine module representations, keyed by module name."""

    def __init__(self):
        self._representations: dict[str, ModuleRepresentation] = {}
        self._lock = threading.Lock()

    def get(self, name: str, path: list[str] | None = None) -> ModuleRepresentation:
        with self._lock:
            representation = self._representations.get(name)
        if representation is not None:
            return representation

        spec = find_spec(name, path)
        if spec is None:
            raise ModuleResolutionNotFoundError(f"No module named {name!r}", name=name)
        loader = spec.loader
        get_source = getattr(loader, "get_source", None)
        source = get_source(name) if get_source is not None else None
        if source is None or not spec.has_location:
            raise NoSourceError(f"Module {name!r} has no Python source", name=name)

        tree = ast.parse(source, filename=spec.origin)
        representation = ModuleRepresentation(
            name=name,
            filename=spec.origin,
            tree=tree,
            is_package=spec.submodule_search_locations is not None,
            search_locations=(
                list(spec.submodule_search_locations)
                if spec.submodule_search_locations is not None else None
            ),
            loader=loader,
        )
        with self._lock:
            return self._representations.setdefault(name, representation)

    def __contains__(self, name: str) -> bool:
        return name in self._representations
