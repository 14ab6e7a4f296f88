"""
Fills an object graph with non-None placeholder values.

Mocks frequently need collaborators that were never constructed the normal
way (see reflect.new_instance). Their fields are then unset, and code such as
__eq__ or __hash__ blows up on them. fill_with_default_values() walks every
annotated field of the object, including inherited and private ones, and
assigns a value to each:

 * primitive-like types get the canonical default from type_utils;
 * containers get an empty container;
 * Protocol types get a dynamic proxy answering defaults;
 * abstract classes get an instance of a synthesized concrete subclass;
 * other classes are instantiated without running __init__.

Every created object is filled recursively. A field whose type is already
being filled further up the walk (the object's own type being the most common
case) is set to None so that the walk terminates.
"""

from __future__ import annotations

import collections
import collections.abc
import datetime
import enum
import inspect
import ipaddress
import logging
import pathlib
import types
import typing
from typing import Any

from deepmock.config import DeepMockConfig
from deepmock.core.concrete_class_generator import ConcreteClassGenerator
from deepmock.core.proxy import default_value_handler, is_interface, new_proxy_instance
from deepmock.core.type_utils import get_default_value
from deepmock.errors import InternalError, InvalidArgumentError
from deepmock.reflect import get_all_instance_fields, new_instance, set_internal_state

logger = logging.getLogger(__name__)

# Container types (and container ABCs) are the "array types": their default
# is an empty instance.
ARRAY_TYPES = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    dict: dict,
    bytearray: bytearray,
    collections.deque: collections.deque,
    collections.OrderedDict: collections.OrderedDict,
    collections.defaultdict: collections.defaultdict,
    collections.Counter: collections.Counter,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}

# Types that cannot be built, or that misbehave (broken __eq__/__hash__),
# when created without calling their constructor.
KNOWN_PROBLEM_TYPES = {
    ipaddress._BaseAddress: lambda: ipaddress.IPv4Address(0),
    ipaddress.IPv4Address: lambda: ipaddress.IPv4Address(0),
    ipaddress.IPv6Address: lambda: ipaddress.IPv6Address(0),
    ipaddress._BaseNetwork: lambda: ipaddress.IPv4Network(0),
    ipaddress.IPv4Network: lambda: ipaddress.IPv4Network(0),
    ipaddress.IPv6Network: lambda: ipaddress.IPv6Network(0),
    pathlib.PurePath: pathlib.PurePath,
    pathlib.PurePosixPath: pathlib.PurePosixPath,
    pathlib.PureWindowsPath: pathlib.PureWindowsPath,
    pathlib.Path: pathlib.Path,
    datetime.date: lambda: datetime.date.min,
    datetime.datetime: lambda: datetime.datetime.min,
    datetime.time: datetime.time,
    datetime.timedelta: datetime.timedelta,
}

_NONE_TYPE = type(None)


def normalize_field_type(field_type: Any) -> Any:
    """
    Reduce an annotation to the class that has to be instantiated.

    Annotated and Final are unwrapped, unions use their first non-None
    member and parametrised generics use their origin class. A Literal is
    returned as is: its first value is the field value.
    """
    while True:
        origin = typing.get_origin(field_type)
        if origin is typing.Annotated or origin is typing.Final:
            field_type = typing.get_args(field_type)[0]
        elif origin is typing.Union or origin is types.UnionType:
            members = [arg for arg in typing.get_args(field_type) if arg is not _NONE_TYPE]
            field_type = members[0] if members else None
        elif origin is typing.Literal:
            return field_type
        elif origin is not None:
            field_type = origin
        else:
            return field_type


def substitute_known_problem_type(field_type: type):
    """Return a factory for a well behaved value, or None if the type is fine."""
    return KNOWN_PROBLEM_TYPES.get(field_type)


class DefaultFieldValueGenerator:
    def __init__(
        self,
        class_generator: ConcreteClassGenerator | None = None,
        cycle_detection: bool = True,
    ):
        """
        Args:
            class_generator: Synthesizes concrete subclasses of abstract field types.
            cycle_detection: Cut the walk on any type already being filled.
                When false only fields typed like the root object are cut,
                and longer reference cycles recurse until the stack runs out.
        """
        self.class_generator = class_generator or ConcreteClassGenerator()
        self.cycle_detection = cycle_detection

    @classmethod
    def from_config(cls, config: DeepMockConfig | None = None) -> DefaultFieldValueGenerator:
        if config is None:
            config = DeepMockConfig(read=True)
        return cls(cycle_detection=config.generator_cycle_detection)

    def fill_with_default_values(self, obj: Any) -> Any:
        """Fill every field of ``obj`` and return ``obj`` itself."""
        if obj is None:
            raise InvalidArgumentError("object to fill cannot be None")
        return self._fill(obj, (type(obj),))

    def _fill(self, obj: Any, path: tuple[type, ...]) -> Any:
        for name, declared_type in get_all_instance_fields(obj).items():
            value = self._default_for_field(name, declared_type, path)
            try:
                set_internal_state(obj, name, value)
            except Exception as err:
                raise InternalError(f"Internal error: Failed to set field {name}.") from err
        return obj

    def _default_for_field(self, name: str, declared_type: Any, path: tuple[type, ...]) -> Any:
        field_type = normalize_field_type(declared_type)
        if field_type is None or isinstance(field_type, (str, typing.ForwardRef)):
            logger.debug("Field %s has an unresolved type %r, left None", name, declared_type)
            return None
        if typing.get_origin(field_type) is typing.Literal:
            return typing.get_args(field_type)[0]

        default_value = get_default_value(field_type)
        if default_value is not None:
            return default_value
        if field_type is typing.Any or field_type is object or not inspect.isclass(field_type):
            # TypeVar and friends: nothing better than a bare object
            return object()
        if field_type in path:
            return None

        value = self.instantiate_field_type(field_type)
        if value is not None and not isinstance(value, _ALREADY_COMPLETE):
            if self.cycle_detection:
                nested_path = path + (field_type,)
            else:
                nested_path = (type(value),)
            self._fill(value, nested_path)
        return value

    def instantiate_field_type(self, field_type: type) -> Any:
        """Create a value for a field declared with the class ``field_type``."""
        if field_type in ARRAY_TYPES:
            return ARRAY_TYPES[field_type]()
        if is_interface(field_type):
            return new_proxy_instance(field_type, default_value_handler)
        factory = substitute_known_problem_type(field_type)
        if factory is not None:
            return factory()
        if issubclass(field_type, enum.Enum):
            return next(iter(field_type), None)
        if inspect.isabstract(field_type):
            concrete = self.class_generator.create_concrete_subclass(field_type)
            return None if concrete is None else new_instance(concrete)
        return new_instance(field_type)


# Values that are created complete and must not be walked
_ALREADY_COMPLETE = (
    enum.Enum,
    ipaddress._BaseAddress,
    ipaddress._BaseNetwork,
    pathlib.PurePath,
    datetime.date,
    datetime.time,
    datetime.timedelta,
)

_generator = DefaultFieldValueGenerator()


def fill_with_default_values(obj: Any) -> Any:
    """Module level shortcut using a shared DefaultFieldValueGenerator."""
    return _generator.fill_with_default_values(obj)
