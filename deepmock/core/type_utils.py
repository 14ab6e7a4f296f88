"""
Canonical default values for primitive-like types.

This is the leaf of the default value machinery: the stub synthesizer, the
dynamic proxies and the field value generator all ask this table first and
only build a value themselves when it answers None (absent).
"""

from __future__ import annotations

import typing
from typing import Any

_DEFAULT_VALUES = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
}

# Type names as they appear in unevaluated annotations.
_DEFAULT_VALUES_BY_NAME = {}
for _type, _value in _DEFAULT_VALUES.items():
    _DEFAULT_VALUES_BY_NAME[_type.__name__] = _value
    _DEFAULT_VALUES_BY_NAME["builtins." + _type.__name__] = _value
del _type, _value


def _unwrap_annotated(type_):
    if typing.get_origin(type_) is typing.Annotated:
        return typing.get_args(type_)[0]
    return type_


def get_default_value(type_or_name: Any) -> Any:
    """
    Return the canonical default for a primitive-like type, or None.

    None means the type has no canonical default and the caller has to
    synthesize a value some other way. Void (None / NoneType) also answers
    None, which is exactly what a void operation returns.

    >>> get_default_value(int)
    0
    >>> get_default_value("bool")
    False
    >>> get_default_value(list) is None
    True
    """
    if isinstance(type_or_name, str):
        return _DEFAULT_VALUES_BY_NAME.get(type_or_name.strip())
    type_ = _unwrap_annotated(type_or_name)
    try:
        return _DEFAULT_VALUES.get(type_)
    except TypeError:
        # unhashable annotation objects
        return None


def get_default_value_as_source(type_or_name: Any) -> str:
    """
    Return the default value as a Python source literal.

    >>> get_default_value_as_source(float)
    '0.0'
    >>> get_default_value_as_source(object)
    'None'
    """
    return repr(get_default_value(type_or_name))


def get_return_type(function: Any) -> Any:
    """
    Return the declared return type of a callable, None if it has none.

    Annotations that cannot be evaluated are returned as written (usually a
    string), which get_default_value() still understands for builtins.
    """
    function = getattr(function, "__func__", function)
    try:
        hints = typing.get_type_hints(function)
    except Exception:
        hints = getattr(function, "__annotations__", None) or {}
    return hints.get("return")
