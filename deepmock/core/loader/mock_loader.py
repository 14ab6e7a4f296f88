"""
Load-time interception of modules.

A MockLoader owns a private namespace of modules, much like a class loader
does. For every module name it decides whether to:

 1. defer: import the module through the regular import system, sharing
    it with the rest of the process;
 2. load it unmodified: execute its original source into a fresh module
    object that belongs to the loader (same behaviour, distinct identity);
 3. transform it: run its syntax tree through the transformer chain and
    execute the result into a fresh module object.

Modules executed by the loader import their own dependencies through the
loader, so the same rules apply transitively.
"""

from __future__ import annotations

import builtins
import importlib
import importlib.util
import logging
import sys
import threading
import types
from typing import Any, Iterable

from deepmock.config import DeepMockConfig
from deepmock.core.loader.patterns import WILDCARD, NamePatternSet
from deepmock.core.loader.representation import ModuleRepresentation, RepresentationStore
from deepmock.core.transformers.base import MockTransformer, TransformerChain
from deepmock.core.transformers.main_transformer import default_transformers
from deepmock.errors import (
    DuplicateDefinitionError,
    InvalidArgumentError,
    ModuleResolutionNotFoundError,
    NoSourceError,
    ResolutionError,
)

logger = logging.getLogger(__name__)

# Pass this to the constructor to indicate that all modules should be modified.
MODIFY_ALL_MODULES = WILDCARD

# Modules that are always deferred regardless of what the user asks for:
# the standard library, deepmock itself and the test runner.
PACKAGES_TO_BE_DEFERRED = tuple(sorted(sys.stdlib_module_names)) + (
    "deepmock",
    "pytest",
    "_pytest",
    "pluggy",
    "typing_extensions",
)

# Testing and mocking infrastructure: never transformed, even under the
# wildcard, but not deferred either unless listed above.
IGNORED_PACKAGES = (
    "deepmock",
    "pytest",
    "_pytest",
    "pluggy",
    "mock",
    "pytest_mock",
    "hamcrest",
    "hypothesis",
)


class MockLoader:
    """
    Resolves module names into modules, transforming the ones to modify.

    The pattern sets are fixed at construction. Each name is defined at most
    once per loader: later requests return the module defined first.
    """

    def __init__(
        self,
        modules_to_modify: Iterable[str] = (),
        packages_to_defer: Iterable[str] | None = None,
        transformers: Iterable[MockTransformer] | None = None,
        store: RepresentationStore | None = None,
    ):
        """
        Args:
            modules_to_modify: Patterns of the modules to transform for
                testability, MODIFY_ALL_MODULES for all of them.
            packages_to_defer: Additional packages always imported through
                the regular import system.
            transformers: The transformer chain, default_transformers()
                when not given.
            store: Where module representations are fetched from.
        """
        if isinstance(modules_to_modify, str):
            modules_to_modify = (modules_to_modify,)
        if isinstance(packages_to_defer, str):
            packages_to_defer = (packages_to_defer,)
        self._defer = NamePatternSet(PACKAGES_TO_BE_DEFERRED + tuple(packages_to_defer or ()))
        self._ignore = NamePatternSet(IGNORED_PACKAGES)
        self._modify = NamePatternSet(
            name for name in modules_to_modify
            if name.strip() == WILDCARD or not self._defer.matches(name.strip())
        )
        if transformers is None:
            transformers = default_transformers()
        self._transformer_chain = TransformerChain(transformers)
        self._store = store if store is not None else RepresentationStore()
        self._modules: dict[str, types.ModuleType] = {}
        self._lock = threading.Lock()
        self._resolution_lock = threading.RLock()
        self._builtins = dict(builtins.__dict__)
        self._builtins["__import__"] = self._import

    @classmethod
    def from_config(cls, config: DeepMockConfig | None = None, transformers=None) -> MockLoader:
        """Build a loader from a DeepMockConfig, by default the user's deepmock.conf."""
        if config is None:
            config = DeepMockConfig(read=True)
        if transformers is None and not config.loader_use_default_transformers:
            transformers = ()
        return cls(config.loader_modify, config.loader_defer, transformers)

    @property
    def modules_to_modify(self) -> NamePatternSet:
        return self._modify

    @property
    def packages_to_defer(self) -> NamePatternSet:
        return self._defer

    @property
    def transformer_chain(self) -> TransformerChain:
        return self._transformer_chain

    def set_transformer_chain(self, transformers: Iterable[MockTransformer]) -> None:
        if self._modules:
            raise InvalidArgumentError("The transformer chain must be set before the first module is defined")
        self._transformer_chain = TransformerChain(transformers)

    def should_defer(self, name: str) -> bool:
        return self._defer.matches(name)

    def should_ignore(self, name: str) -> bool:
        return self._ignore.matches(name)

    def should_modify(self, name: str) -> bool:
        if self.should_defer(name) or self.should_ignore(name):
            return False
        return self._modify.matches(name)

    def is_defined(self, name: str) -> bool:
        with self._lock:
            return name in self._modules

    def resolve(self, name: str) -> types.ModuleType:
        """Return the module called ``name`` as seen through this loader."""
        if not name or name.startswith(".") or name.endswith("."):
            raise InvalidArgumentError(f"Invalid module name: {name!r}")
        if self.should_defer(name):
            logger.debug("Deferring %s", name)
            return self._load_deferred_module(name)

        # Held until the module body has run; reentrant for its own imports.
        with self._resolution_lock:
            return self._resolve_locked(name)

    def _resolve_locked(self, name: str) -> types.ModuleType:
        with self._lock:
            module = self._modules.get(name)
        if module is not None:
            return module

        parent_name, _, child_name = name.rpartition(".")
        path = None
        parent = None
        if parent_name:
            parent = self.resolve(parent_name)
            path = getattr(parent, "__path__", None)
            # importing the parent may have imported this module already
            with self._lock:
                module = self._modules.get(name)
            if module is not None:
                return module

        if self.should_modify(name):
            module = self._load_mock_module(name, path)
        else:
            module = self._load_unmocked_module(name, path)

        if parent is not None and self.is_defined(parent_name):
            setattr(parent, child_name, module)
        return module

    def load_type(self, qualified_name: str) -> Any:
        """
        Resolve ``pkg.mod.Class`` (or ``pkg.mod:Class``) through this loader.

        Without a colon, the longest prefix naming a module is used.
        """
        if ":" in qualified_name:
            module_name, _, attributes = qualified_name.partition(":")
            return self._get_attributes(self.resolve(module_name), attributes)

        parts = qualified_name.split(".")
        for index in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:index])
            try:
                module = self.resolve(module_name)
            except ModuleNotFoundError as err:
                if err.name is None or not _is_same_or_parent(err.name, module_name):
                    raise
                continue
            return self._get_attributes(module, ".".join(parts[index:]))
        raise ModuleResolutionNotFoundError(f"No module found for {qualified_name!r}", name=qualified_name)

    @staticmethod
    def _get_attributes(module, attributes: str) -> Any:
        value = module
        for attribute in attributes.split("."):
            value = getattr(value, attribute)
        return value

    def _load_deferred_module(self, name: str) -> types.ModuleType:
        try:
            return importlib.import_module(name)
        except ModuleNotFoundError as err:
            if isinstance(err, ResolutionError) or err.name != name:
                raise
            raise ModuleResolutionNotFoundError(f"No module named {name!r}", name=name) from err

    def _load_unmocked_module(self, name: str, path) -> types.ModuleType:
        try:
            representation = self._store.get(name, path)
        except NoSourceError:
            # Extension and namespace modules can only be shared with the host
            logger.debug("No source for %s, using the host module", name)
            return self._load_deferred_module(name)
        except ResolutionError:
            raise
        except Exception as err:
            raise ResolutionError(f"Failed to load module with name {name}. Reason: {err}", name=name) from err
        return self._define_module(representation)

    def _load_mock_module(self, name: str, path) -> types.ModuleType:
        try:
            representation = self._store.get(name, path)
            transformed = self._transformer_chain.apply(representation.working_copy())
        except ModuleResolutionNotFoundError:
            raise
        except Exception as err:
            raise ResolutionError(
                f"Failed to transform module with name {name}. Reason: {err}", name=name
            ) from err
        logger.debug("Transformed %s", name)
        return self._define_module(transformed)

    def _define_module(self, representation: ModuleRepresentation) -> types.ModuleType:
        name = representation.name
        try:
            code = representation.compile()
        except SyntaxError as err:
            raise ResolutionError(f"Failed to compile module with name {name}. Reason: {err}", name=name) from err

        module = types.ModuleType(name)
        module.__file__ = representation.filename
        module.__loader__ = representation.loader
        module.__package__ = representation.package
        if representation.is_package:
            module.__path__ = list(representation.search_locations)
        module.__builtins__ = self._builtins
        module.__dict__.update(representation.injected_globals)

        with self._lock:
            if name in self._modules:
                raise DuplicateDefinitionError(f"Module {name} is already defined by {self!r}")
            self._modules[name] = module
        try:
            exec(code, module.__dict__)
        except Exception as err:
            with self._lock:
                self._modules.pop(name, None)
            if isinstance(err, ResolutionError) and err.name == name:
                raise
            raise ResolutionError(f"Failed to execute module with name {name}. Reason: {err}", name=name) from err
        return module

    def _import(self, name, globals=None, locals=None, fromlist=(), level=0):
        """__import__ replacement installed in the builtins of defined modules."""
        if level > 0:
            package = _calc_package(globals)
            absolute_name = importlib.util.resolve_name("." * level + name, package)
        else:
            absolute_name = name
        module = self.resolve(absolute_name)

        if not fromlist:
            if level > 0:
                return module
            return self.resolve(absolute_name.partition(".")[0])

        items = list(fromlist)
        if "*" in items:
            items.remove("*")
            items.extend(getattr(module, "__all__", ()))
        if hasattr(module, "__path__"):
            for item in items:
                if hasattr(module, item):
                    continue
                submodule_name = f"{absolute_name}.{item}"
                try:
                    self.resolve(submodule_name)
                except ModuleNotFoundError as err:
                    # "from package import name" where name is not a module
                    if err.name != submodule_name:
                        raise
        return module

    def __repr__(self):
        return f"<MockLoader modify={list(self._modify)!r} modules={len(self._modules)}>"


def _calc_package(globals) -> str:
    if not globals:
        raise ImportError("attempted relative import with no known parent package")
    package = globals.get("__package__")
    if package is None:
        package = globals["__name__"]
        if "__path__" not in globals:
            package = package.rpartition(".")[0]
    if not package:
        raise ImportError("attempted relative import with no known parent package")
    return package


def _is_same_or_parent(parent: str, name: str) -> bool:
    return name == parent or name.startswith(parent + ".")
