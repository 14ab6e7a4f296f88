"""
Synthesis of concrete stand-ins for abstract classes.

An abstract class cannot be instantiated, so whenever deepmock needs an
instance of one it creates a throwaway subclass where every abstract member
is implemented by a stub returning the canonical default of its declared
return type.
"""

from __future__ import annotations

import functools
import inspect
import itertools
import logging
import threading
from typing import Any, Callable, Iterator

from deepmock.core.type_utils import get_default_value, get_return_type
from deepmock.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

CLASS_NAME_SUFFIX = "$$DeepMock"
MODULE_PREFIX = "subclass."


class _Sequence:
    """Process-wide monotonically increasing sequence."""

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __next__(self) -> int:
        with self._lock:
            return next(self._counter)

    def __iter__(self):
        return self


# Used to make each new subclass of a specific type unique.
_class_counter = _Sequence()


def _make_stub_function(name: str, original: Callable) -> Callable:
    default_value = get_default_value(get_return_type(original))

    @functools.wraps(original)
    def stub(*args, **kwargs):
        return default_value

    stub.__name__ = name
    # functools.wraps copies __isabstractmethod__ from the original
    stub.__isabstractmethod__ = False
    return stub


def _make_stub(name: str, attribute: Any) -> Any:
    if isinstance(attribute, staticmethod):
        return staticmethod(_make_stub_function(name, attribute.__func__))
    if isinstance(attribute, classmethod):
        return classmethod(_make_stub_function(name, attribute.__func__))
    if isinstance(attribute, property):
        getter = attribute.fget
        if getter is None:
            return property(lambda self: None)
        return property(_make_stub_function(name, getter))
    if callable(attribute):
        return _make_stub_function(name, attribute)
    # abstract non callable descriptor: a plain attribute is enough
    return None


class ConcreteClassGenerator:
    """
    Creates concrete subclasses of abstract classes.

    Every call returns a brand new class, even for the same abstract class:
    synthesized classes are never reused, so the name of each one carries a
    number taken from a monotonically increasing sequence.
    """

    def __init__(self, counter: Iterator[int] | None = None):
        self._counter = counter if counter is not None else _class_counter

    def create_concrete_subclass(self, cls: type) -> type | None:
        """
        Return a concrete subclass of the abstract class ``cls``.

        Returns None when the subclass cannot be built (conflicting
        metaclass, a base refusing subclassing, ...). Callers treat None as
        "no instance obtainable".
        """
        if cls is None:
            raise InvalidArgumentError("cls cannot be None")
        if not inspect.isclass(cls) or not inspect.isabstract(cls):
            raise InvalidArgumentError("cls must be abstract")

        class_name = self._generate_class_name(cls)
        try:
            namespace = {"__module__": MODULE_PREFIX + cls.__module__}
            for name in sorted(cls.__abstractmethods__):
                attribute = inspect.getattr_static(cls, name)
                namespace[name] = _make_stub(name, attribute)
            metaclass = type(cls)
            concrete = metaclass(class_name, (cls,), namespace)
        except Exception as err:
            logger.warning(
                "Unable to synthesize a concrete subclass of %s.%s: %s",
                cls.__module__, cls.__qualname__, err,
            )
            return None
        if inspect.isabstract(concrete):
            logger.warning(
                "Synthesized class %s is still abstract: %s",
                class_name, sorted(concrete.__abstractmethods__),
            )
            return None
        logger.debug("Synthesized %s for %s", class_name, cls.__qualname__)
        return concrete

    def _generate_class_name(self, cls: type) -> str:
        return "%s%s%d" % (cls.__name__, CLASS_NAME_SUFFIX, next(self._counter))
