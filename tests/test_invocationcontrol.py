"""
Tests for invocation controls, the mock repository and call interception.

Run with: pytest tests/test_invocationcontrol.py -v
"""

import gc
from abc import ABC, abstractmethod

import pytest

from deepmock.core import mock_repository
from deepmock.core.interception import intercept, is_intercepted
from deepmock.core.invocationcontrol import MethodInvocationControl, method_name
from deepmock.core.mock_repository import (
    get_instance_method_invocation_control,
    new_mock_instance,
    put_instance_method_invocation_control,
    remove_instance_method_invocation_control,
)
from deepmock.errors import InvalidArgumentError


class Account:
    balance: float
    owner: str

    def __init__(self, owner):
        self.owner = owner
        self.balance = 100.0

    @intercept
    def deposit(self, amount):
        self.balance += amount
        return self.balance

    @intercept
    def describe(self):
        return f"{self.owner}: {self.balance}"

    @classmethod
    @intercept
    def bank(cls):
        return "real bank"


class Service(ABC):
    name: str

    @abstractmethod
    def status(self) -> int:
        ...


class Plain:
    pass


class NoWeakref:
    __slots__ = ()


def record(calls, result=None):
    def handler(target, method, args, kwargs):
        calls.append((target, method.__name__, args, kwargs))
        return result
    return handler


@pytest.fixture(autouse=True)
def empty_repository():
    mock_repository.clear()
    yield
    mock_repository.clear()


class TestMethodInvocationControl:

    def test_empty_methods_means_all(self):
        control = MethodInvocationControl(record([]))

        assert control.mocked_methods == frozenset()
        assert control.is_mocked("anything")
        assert control.is_mocked(Account.deposit)

    def test_selected_methods(self):
        control = MethodInvocationControl(record([]), ["deposit", Account.describe])

        assert control.mocked_methods == {"deposit", "describe"}
        assert control.is_mocked("deposit")
        assert control.is_mocked(Account.describe)
        assert not control.is_mocked("bank")

    def test_none_handler(self):
        with pytest.raises(InvalidArgumentError, match="cannot be None"):
            MethodInvocationControl(None)

    def test_handler_is_kept(self):
        handler = record([])

        assert MethodInvocationControl(handler).invocation_handler is handler

    def test_method_name(self):
        assert method_name("run") == "run"
        assert method_name(Account.deposit) == "deposit"
        assert method_name(Account("bob").describe) == "describe"
        assert method_name(property(lambda self: None)) == "<lambda>"


class TestMockRepository:
    """Test registration of controls on targets."""

    def test_put_and_get(self):
        target = Plain()
        control = MethodInvocationControl(record([]))

        put_instance_method_invocation_control(target, control)

        assert get_instance_method_invocation_control(target) is control
        assert get_instance_method_invocation_control(Plain()) is None

    def test_replace(self):
        target = Plain()
        second = MethodInvocationControl(record([]))
        put_instance_method_invocation_control(target, MethodInvocationControl(record([])))
        put_instance_method_invocation_control(target, second)

        assert get_instance_method_invocation_control(target) is second

    def test_remove(self):
        target = Plain()
        control = MethodInvocationControl(record([]))
        put_instance_method_invocation_control(target, control)

        assert remove_instance_method_invocation_control(target) is control
        assert get_instance_method_invocation_control(target) is None
        assert remove_instance_method_invocation_control(target) is None

    def test_clear(self):
        target = Plain()
        put_instance_method_invocation_control(target, MethodInvocationControl(record([])))

        mock_repository.clear()

        assert get_instance_method_invocation_control(target) is None

    def test_entry_goes_away_with_target(self):
        target = Plain()
        key = id(target)
        put_instance_method_invocation_control(target, MethodInvocationControl(record([])))

        del target
        gc.collect()

        assert key not in mock_repository._controls

    def test_target_without_weakref_support(self):
        target = NoWeakref()
        control = MethodInvocationControl(record([]))

        put_instance_method_invocation_control(target, control)

        assert get_instance_method_invocation_control(target) is control

    def test_invalid_arguments(self):
        with pytest.raises(InvalidArgumentError):
            put_instance_method_invocation_control(None, MethodInvocationControl(record([])))
        with pytest.raises(InvalidArgumentError):
            put_instance_method_invocation_control(Plain(), None)


class TestIntercept:
    """Test dispatch of intercepted methods."""

    def test_unregistered_instance_runs_the_original(self):
        account = Account("bob")

        assert account.deposit(10) == 110.0
        assert is_intercepted(Account.deposit)
        assert is_intercepted(Account.bank)

    def test_mocked_method_goes_to_handler(self):
        calls = []
        account = Account("bob")
        put_instance_method_invocation_control(
            account, MethodInvocationControl(record(calls, result=-1))
        )

        assert account.deposit(10, note="gift") == -1
        assert account.balance == 100.0
        assert calls == [(account, "deposit", (10,), {"note": "gift"})]

    def test_unmocked_method_runs_the_original(self):
        calls = []
        account = Account("bob")
        put_instance_method_invocation_control(
            account, MethodInvocationControl(record(calls), ["deposit"])
        )

        assert account.describe() == "bob: 100.0"
        assert calls == []

    def test_class_method_with_registered_class(self):
        calls = []
        put_instance_method_invocation_control(
            Account, MethodInvocationControl(record(calls, result="mock bank"))
        )

        assert Account.bank() == "mock bank"
        assert calls == [(Account, "bank", (), {})]


class TestNewMockInstance:

    def test_instance_is_mocked_and_filled(self):
        calls = []

        account = new_mock_instance(Account, record(calls, result=0.5))

        assert account.owner == ""
        assert account.balance == 0.0
        assert account.deposit(3) == 0.5
        assert calls[0][1] == "deposit"

    def test_without_fill(self):
        account = new_mock_instance(Account, record([]), fill=False)

        assert not hasattr(account, "owner")

    def test_selected_methods(self):
        account = new_mock_instance(Account, record([], result="mock"), ["describe"])

        assert account.describe() == "mock"
        assert account.deposit(5) == 5.0

    def test_abstract_class(self):
        service = new_mock_instance(Service, record([]))

        assert isinstance(service, Service)
        assert service.name == ""
        assert service.status() == 0
        assert get_instance_method_invocation_control(service) is not None

    def test_not_a_class(self):
        with pytest.raises(InvalidArgumentError):
            new_mock_instance("Account", record([]))
