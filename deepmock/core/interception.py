"""
Call-time dispatch inserted into transformed classes.

MainMockTransformer decorates every instance and class method of a
transformed class with intercept(); static methods are left alone. The
wrapper consults the invocation control registered for its first argument
(the instance, or the class for class methods): mocked methods are routed
to the control's handler, everything else falls through to the original
body.
"""

from __future__ import annotations

import functools
from typing import Callable

from deepmock.core import mock_repository

# Global name under which the decorator is injected into transformed modules
INTERCEPTOR_NAME = "__deepmock_intercept__"


def intercept(function: Callable) -> Callable:
    @functools.wraps(function)
    def wrapper(*args, **kwargs):
        if args:
            target = args[0]
            control = mock_repository.get_instance_method_invocation_control(target)
            if control is not None and control.is_mocked(function):
                return control.invocation_handler(target, function, args[1:], kwargs)
        return function(*args, **kwargs)

    wrapper.__deepmock_intercepted__ = True
    return wrapper


def is_intercepted(function: Callable) -> bool:
    function = getattr(function, "__func__", function)
    return getattr(function, "__deepmock_intercepted__", False)
