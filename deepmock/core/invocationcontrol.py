"""Per-instance record of which methods are intercepted, and by whom."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from deepmock.errors import InvalidArgumentError


def method_name(method: Any) -> str:
    """Methods are identified by name; functions and descriptors are accepted too."""
    if isinstance(method, str):
        return method
    method = getattr(method, "__func__", method)
    if isinstance(method, property):
        method = method.fget
    return method.__name__


class MethodInvocationControl:
    """
    Binds one invocation handler and the set of mocked methods to a target.

    The record is immutable once built. An empty set of methods means that
    every method of the target is mocked, not that none is.
    """

    def __init__(
        self,
        invocation_handler: Callable,
        methods_to_mock: Iterable[Any] | None = None,
    ):
        """
        Args:
            invocation_handler: The handler called as
                ``handler(target, method, args, kwargs)`` for mocked methods.
            methods_to_mock: Names (or functions) of the mocked methods. None
                or empty means all methods are mocked.
        """
        if invocation_handler is None:
            raise InvalidArgumentError("Invocation Handler cannot be None.")
        if methods_to_mock is None:
            methods_to_mock = ()
        self._invocation_handler = invocation_handler
        self._mocked_methods = frozenset(method_name(method) for method in methods_to_mock)

    @property
    def invocation_handler(self) -> Callable:
        return self._invocation_handler

    @property
    def mocked_methods(self) -> frozenset[str]:
        return self._mocked_methods

    def is_mocked(self, method: Any) -> bool:
        return not self._mocked_methods or method_name(method) in self._mocked_methods

    def __repr__(self):
        methods = sorted(self._mocked_methods) if self._mocked_methods else "all"
        return f"<MethodInvocationControl handler={self._invocation_handler!r} methods={methods}>"
