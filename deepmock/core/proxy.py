"""
Dynamic proxies for Protocol classes.

A proxy class subclasses every requested Protocol and implements each of its
operations by forwarding the call to a single invocation handler::

    handler(proxy, method, args, kwargs) -> result

where ``method`` is the function declared by the Protocol. Mocking an
interface therefore never needs any source rewriting.
"""

from __future__ import annotations

import functools
import inspect
import itertools
import threading
import typing
from typing import Any, Callable

from deepmock.core.type_utils import get_default_value, get_return_type
from deepmock.errors import InvalidArgumentError

InvocationHandler = Callable[[Any, Callable, tuple, dict], Any]

HANDLER_ATTRIBUTE = "__deepmock_handler__"

# Members every Protocol inherits and that must keep their normal behaviour
_SKIPPED_BASES = (object, typing.Protocol, typing.Generic)

_proxy_classes: dict[tuple[type, ...], type] = {}
_proxy_lock = threading.Lock()
_proxy_counter = itertools.count()


def is_interface(cls: Any) -> bool:
    """Return True if cls is a Protocol class (deepmock's notion of interface)."""
    return inspect.isclass(cls) and bool(getattr(cls, "_is_protocol", False))


def _interface_operations(interface: type) -> dict[str, Any]:
    operations = {}
    for klass in reversed(interface.__mro__):
        if klass in _SKIPPED_BASES:
            continue
        for name, value in vars(klass).items():
            is_dunder = name.startswith("__") and name.endswith("__")
            if is_dunder and not getattr(value, "__isabstractmethod__", False):
                continue
            if name.startswith("_abc_"):
                continue
            if isinstance(value, (staticmethod, classmethod, property)) or inspect.isfunction(value):
                operations[name] = value
    return operations


def _make_forwarder(name: str, method: Callable) -> Callable:
    @functools.wraps(method)
    def forward(self, *args, **kwargs):
        handler = object.__getattribute__(self, HANDLER_ATTRIBUTE)
        return handler(self, method, args, kwargs)

    forward.__name__ = name
    forward.__isabstractmethod__ = False
    return forward


def _make_member(name: str, value: Any) -> Any:
    """
    Return the proxy class member forwarding ``value``.

    Static and class methods become plain instance methods: the handler is
    stored on the proxy instance, so ``ProxyClass.op()`` cannot reach it and
    they only work when called on an instance.
    """
    if isinstance(value, property):
        if value.fget is None:
            return property(lambda self: None)
        return property(_make_forwarder(name, value.fget))
    if isinstance(value, (staticmethod, classmethod)):
        return _make_forwarder(name, value.__func__)
    return _make_forwarder(name, value)


def get_proxy_class(interfaces: tuple[type, ...]) -> type:
    """Return the (cached) proxy class implementing all ``interfaces``."""
    if not interfaces:
        raise InvalidArgumentError("at least one interface is required")
    for interface in interfaces:
        if not is_interface(interface):
            raise InvalidArgumentError(f"{interface!r} is not a Protocol class")

    with _proxy_lock:
        proxy_class = _proxy_classes.get(interfaces)
        if proxy_class is None:
            namespace = {"__module__": __name__, "__deepmock_proxy__": True}
            for interface in reversed(interfaces):
                for name, value in _interface_operations(interface).items():
                    namespace[name] = _make_member(name, value)
            class_name = "$Proxy%d" % next(_proxy_counter)
            proxy_class = type(interfaces[0])(class_name, interfaces, namespace)
            _proxy_classes[interfaces] = proxy_class
    return proxy_class


def new_proxy_instance(interfaces, handler: InvocationHandler) -> Any:
    """
    Return an object implementing ``interfaces`` whose every operation calls
    ``handler``. A single Protocol may be passed instead of a sequence.
    """
    if handler is None:
        raise InvalidArgumentError("Invocation Handler cannot be None.")
    if isinstance(interfaces, type):
        interfaces = (interfaces,)
    proxy_class = get_proxy_class(tuple(interfaces))
    proxy = object.__new__(proxy_class)
    object.__setattr__(proxy, HANDLER_ATTRIBUTE, handler)
    return proxy


def is_proxy_class(cls: Any) -> bool:
    return inspect.isclass(cls) and bool(cls.__dict__.get("__deepmock_proxy__", False))


def get_invocation_handler(proxy: Any) -> InvocationHandler:
    if not is_proxy_class(type(proxy)):
        raise InvalidArgumentError(f"{proxy!r} is not a proxy instance")
    return object.__getattribute__(proxy, HANDLER_ATTRIBUTE)


def default_value_handler(proxy, method, args, kwargs):
    """Answer every call with the default value of the method's return type."""
    return get_default_value(get_return_type(method))
