"""
Process-wide registry of invocation controls.

Intercepted methods look their target up here at call time. Targets are
keyed by identity, so objects with unusual __eq__/__hash__ (or none at all)
can be registered, and the entry is held through a weak reference where the
target supports one so that it goes away together with the target.
"""

from __future__ import annotations

import inspect
import logging
import threading
import weakref
from typing import Any, Callable, Iterable

from deepmock.core.concrete_class_generator import ConcreteClassGenerator
from deepmock.core.default_field_value_generator import DefaultFieldValueGenerator
from deepmock.core.invocationcontrol import MethodInvocationControl
from deepmock.errors import InvalidArgumentError
from deepmock.reflect import new_instance

logger = logging.getLogger(__name__)

_controls: dict[int, tuple[Callable[[], Any], MethodInvocationControl]] = {}
_lock = threading.Lock()


def _forget(key: int, reference) -> None:
    with _lock:
        entry = _controls.get(key)
        if entry is not None and entry[0] is reference:
            del _controls[key]


def put_instance_method_invocation_control(target: Any, control: MethodInvocationControl) -> None:
    """Attach ``control`` to ``target`` (an instance, or a class for class level mocking)."""
    if target is None:
        raise InvalidArgumentError("target cannot be None")
    if control is None:
        raise InvalidArgumentError("control cannot be None")
    key = id(target)
    try:
        reference = weakref.ref(target, lambda ref, key=key: _forget(key, ref))
    except TypeError:
        # No weak reference support (e.g. __slots__ without __weakref__)
        reference = (lambda target=target: target)
    with _lock:
        _controls[key] = (reference, control)


def get_instance_method_invocation_control(target: Any) -> MethodInvocationControl | None:
    entry = _controls.get(id(target))
    if entry is None:
        return None
    reference, control = entry
    if reference() is not target:
        return None
    return control


def remove_instance_method_invocation_control(target: Any) -> MethodInvocationControl | None:
    with _lock:
        entry = _controls.get(id(target))
        if entry is None or entry[0]() is not target:
            return None
        del _controls[id(target)]
        return entry[1]


def clear() -> None:
    """Forget every registered control (typically between two tests)."""
    with _lock:
        _controls.clear()


def new_mock_instance(
    cls: type,
    invocation_handler: Callable,
    methods_to_mock: Iterable[Any] | None = None,
    fill: bool = True,
    class_generator: ConcreteClassGenerator | None = None,
) -> Any:
    """
    Create an instance of ``cls`` whose mocked methods go to the handler.

    The instance is created without running __init__, abstract classes
    are replaced by a synthesized concrete subclass, and fields are filled
    with default values unless ``fill`` is false. Only classes loaded
    through a MockLoader have intercepted methods.
    """
    if not inspect.isclass(cls):
        raise InvalidArgumentError(f"{cls!r} is not a class")
    control = MethodInvocationControl(invocation_handler, methods_to_mock)
    class_generator = class_generator or ConcreteClassGenerator()
    concrete = cls
    if inspect.isabstract(cls):
        concrete = class_generator.create_concrete_subclass(cls)
        if concrete is None:
            raise InvalidArgumentError(f"Cannot create a concrete subclass of {cls.__qualname__}")
    instance = new_instance(concrete)
    if fill:
        DefaultFieldValueGenerator(class_generator).fill_with_default_values(instance)
    put_instance_method_invocation_control(instance, control)
    logger.debug("New mock instance of %s: %r", cls.__qualname__, control)
    return instance
