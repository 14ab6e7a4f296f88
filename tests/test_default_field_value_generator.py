"""
Tests for filling object graphs with default values.

Run with: pytest tests/test_default_field_value_generator.py -v
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import ipaddress
import pathlib
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar, Literal, Optional, Protocol

import pytest

from deepmock.core.default_field_value_generator import (
    DefaultFieldValueGenerator,
    fill_with_default_values,
    normalize_field_type,
)
from deepmock.errors import InternalError, InvalidArgumentError
from deepmock.reflect import new_instance


class Primitives:
    flag: bool
    count: int
    ratio: float
    label: str
    data: bytes
    signal: complex


class Greeter(Protocol):
    def greet(self) -> str:
        ...


class Host:
    greeter: Greeter


class Containers:
    items: list[int]
    pair: tuple[int, str]
    mapping: dict[str, int]
    sequence: Sequence[int]


class Node:
    value: int
    next: Node
    parent: Optional[Node]


class Left:
    right: Right


class Right:
    left: Left
    weight: int


class Engine:
    power: int
    name: str


class Car:
    engine: Engine


class Account:
    __balance: float


class Savings(Account):
    rate: float


class Shape(ABC):
    @abstractmethod
    def area(self) -> float:
        ...


class Canvas:
    shape: Shape


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Peripheral:
    color: Color
    address: ipaddress.IPv4Address
    path: pathlib.Path
    created: datetime.datetime


@dataclasses.dataclass(frozen=True)
class Settings:
    retries: int
    name: str


class Counted:
    instances: ClassVar[int] = 7
    value: int


class Slotted:
    __slots__ = ("a",)
    a: int
    b: int


class Dangling:
    ghost: Missing  # noqa: F821
    count: int


class Various:
    mode: Literal["fast", "slow"]
    maybe: Optional[int]
    either: int | None
    anything: Any


class TestFillWithDefaultValues:
    """Test the values assigned to each kind of field."""

    def test_primitive_fields(self):
        obj = fill_with_default_values(new_instance(Primitives))

        assert obj.flag is False
        assert obj.count == 0
        assert obj.ratio == 0.0
        assert obj.label == ""
        assert obj.data == b""
        assert obj.signal == 0j

    def test_existing_values_are_overwritten(self):
        obj = new_instance(Primitives)
        obj.count = 5

        fill_with_default_values(obj)

        assert obj.count == 0

    def test_returns_the_object(self):
        obj = new_instance(Engine)

        assert fill_with_default_values(obj) is obj

    def test_protocol_field_gets_a_proxy(self):
        host = fill_with_default_values(new_instance(Host))

        assert Greeter in type(host.greeter).__mro__
        assert host.greeter.greet() == ""

    def test_container_fields_are_empty(self):
        obj = fill_with_default_values(new_instance(Containers))

        assert obj.items == []
        assert obj.pair == ()
        assert obj.mapping == {}
        assert obj.sequence == []

    def test_nested_objects_are_filled(self):
        car = fill_with_default_values(new_instance(Car))

        assert isinstance(car.engine, Engine)
        assert car.engine.power == 0
        assert car.engine.name == ""

    def test_private_inherited_field(self):
        savings = fill_with_default_values(new_instance(Savings))

        assert savings._Account__balance == 0.0
        assert savings.rate == 0.0

    def test_abstract_field_gets_a_concrete_subclass(self):
        canvas = fill_with_default_values(new_instance(Canvas))

        assert isinstance(canvas.shape, Shape)
        assert "$$DeepMock" in type(canvas.shape).__name__
        assert canvas.shape.area() == 0.0

    def test_known_problem_types(self):
        obj = fill_with_default_values(new_instance(Peripheral))

        assert obj.color is Color.RED
        assert obj.address == ipaddress.IPv4Address("0.0.0.0")
        assert obj.path == pathlib.Path()
        assert obj.created == datetime.datetime.min

    def test_frozen_dataclass(self):
        settings = fill_with_default_values(Settings(3, "three"))

        assert settings == Settings(0, "")

    def test_class_variable_is_untouched(self):
        obj = fill_with_default_values(new_instance(Counted))

        assert obj.value == 0
        assert Counted.instances == 7
        assert "instances" not in vars(obj)

    def test_special_annotations(self):
        obj = fill_with_default_values(new_instance(Various))

        assert obj.mode == "fast"
        assert obj.maybe == 0
        assert obj.either == 0
        assert type(obj.anything) is object

    def test_dangling_forward_reference(self):
        """An annotation naming nothing leaves the field None."""
        obj = fill_with_default_values(new_instance(Dangling))

        assert obj.ghost is None
        assert obj.count == 0


class TestCycles:
    """Test that the walk terminates on recursive types."""

    def test_self_typed_fields_are_none(self):
        node = fill_with_default_values(new_instance(Node))

        assert node.value == 0
        assert node.next is None
        assert node.parent is None

    def test_two_class_cycle(self):
        left = fill_with_default_values(new_instance(Left))

        assert isinstance(left.right, Right)
        assert left.right.left is None
        assert left.right.weight == 0

    def test_self_typed_fields_without_cycle_detection(self):
        generator = DefaultFieldValueGenerator(cycle_detection=False)

        node = generator.fill_with_default_values(new_instance(Node))

        assert node.next is None


class TestErrors:

    def test_none_object(self):
        with pytest.raises(InvalidArgumentError, match="cannot be None"):
            fill_with_default_values(None)

    def test_unsettable_field(self):
        with pytest.raises(InternalError, match="Failed to set field b"):
            fill_with_default_values(new_instance(Slotted))


class TestNormalizeFieldType:

    def test_generic_uses_origin(self):
        assert normalize_field_type(list[int]) is list
        assert normalize_field_type(dict[str, list[int]]) is dict

    def test_optional_uses_member(self):
        assert normalize_field_type(Optional[Engine]) is Engine
        assert normalize_field_type(Engine | None) is Engine

    def test_plain_class(self):
        assert normalize_field_type(Engine) is Engine

    def test_none_only_union(self):
        assert normalize_field_type(Optional[None]) is type(None)
