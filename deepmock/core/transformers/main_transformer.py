"""
Stock transformers preparing a module for mocking.

Both work on the module's syntax tree with ``ast.NodeTransformer``
subclasses. The tree they receive is a working copy owned by the current
transformation, so they rewrite it in place.
"""

from __future__ import annotations

import ast

from deepmock.core.interception import INTERCEPTOR_NAME, intercept
from deepmock.core.loader.representation import ModuleRepresentation
from deepmock.core.transformers.base import MockTransformer

# Methods that must keep running unwrapped: object creation and attribute
# protocol hooks run before (or while) the control lookup could happen.
NOT_INTERCEPTED = frozenset({
    "__new__",
    "__init_subclass__",
    "__class_getitem__",
    "__getattribute__",
    "__getattr__",
    "__setattr__",
    "__delattr__",
    "__del__",
    "__set_name__",
})

_PROTOCOL_NAMES = frozenset({"Protocol"})
_FINAL_NAMES = frozenset({"final"})


def _dotted_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Subscript):
        # Protocol[T]
        node = node.value
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def is_protocol_class(node: ast.ClassDef) -> bool:
    """A class listing Protocol among its bases declares an interface."""
    return any(_dotted_name(base) in _PROTOCOL_NAMES for base in node.bases)


class _FinalRemover(ast.NodeTransformer):
    def __init__(self):
        self.removed = 0

    def _strip(self, node):
        kept = [
            decorator for decorator in node.decorator_list
            if _dotted_name(decorator) not in _FINAL_NAMES
        ]
        self.removed += len(node.decorator_list) - len(kept)
        node.decorator_list = kept
        self.generic_visit(node)
        return node

    visit_ClassDef = _strip
    visit_FunctionDef = _strip
    visit_AsyncFunctionDef = _strip


class RemoveFinalTransformer(MockTransformer):
    """Strips ``@final`` decorators so that final classes can be subclassed."""

    def transform(self, representation: ModuleRepresentation) -> ModuleRepresentation:
        _FinalRemover().visit(representation.tree)
        return representation


class _MethodInterceptor(ast.NodeTransformer):
    """Adds the interception decorator to the methods of non Protocol classes."""

    def __init__(self):
        self.intercepted = 0

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.ClassDef:
        # nested classes are handled by generic_visit() below
        if is_protocol_class(node):
            return node
        for statement in node.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._decorate(statement)
        self.generic_visit(node)
        return node

    def _decorate(self, node):
        if node.name in NOT_INTERCEPTED:
            return
        for decorator in node.decorator_list:
            # static methods have no instance or class to look a control up on
            if _dotted_name(decorator) in (INTERCEPTOR_NAME, "staticmethod"):
                return
        # Innermost decorator: wraps the raw function below classmethod or
        # property.
        node.decorator_list.append(ast.Name(id=INTERCEPTOR_NAME, ctx=ast.Load()))
        self.intercepted += 1

    def visit_FunctionDef(self, node):
        # methods of classes defined inside functions still get visited
        self.generic_visit(node)
        return node

    visit_AsyncFunctionDef = visit_FunctionDef


class MainMockTransformer(MockTransformer):
    """
    Makes every instance and class method of every class interceptable.

    Protocol classes are interfaces and are left untouched: they are
    mocked through dynamic proxies.
    """

    def transform(self, representation: ModuleRepresentation) -> ModuleRepresentation:
        interceptor = _MethodInterceptor()
        interceptor.visit(representation.tree)
        if interceptor.intercepted:
            representation.injected_globals[INTERCEPTOR_NAME] = intercept
        return representation


def default_transformers() -> list[MockTransformer]:
    return [RemoveFinalTransformer(), MainMockTransformer()]
