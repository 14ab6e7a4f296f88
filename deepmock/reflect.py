"""
Structural introspection helpers.

Python objects do not declare fields, so deepmock treats the annotated
instance attributes of a class and all of its bases as the object's field
set. Private (name mangled) attributes are included because the compiler
mangles their annotation keys the same way it mangles the attributes.
"""

from __future__ import annotations

import dataclasses
import inspect
import sys
import typing
from typing import Any

from deepmock.errors import InstantiationError, InvalidArgumentError


def _is_class_level(annotation) -> bool:
    if annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar:
        return True
    if isinstance(annotation, dataclasses.InitVar) or annotation is dataclasses.InitVar:
        return True
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar", "InitVar", "dataclasses.InitVar"))
    return False


def _module_namespace(klass: type) -> dict[str, Any]:
    module = sys.modules.get(klass.__module__)
    if module is not None:
        return vars(module)
    # Modules defined by a MockLoader are not in sys.modules: use the
    # globals of one of the class' functions instead.
    for value in vars(klass).values():
        if isinstance(value, (staticmethod, classmethod)):
            value = value.__func__
        elif isinstance(value, property):
            value = value.fget
        if inspect.isfunction(value):
            return inspect.unwrap(value).__globals__
    return {}


def _class_annotations(klass: type) -> dict[str, Any]:
    try:
        return inspect.get_annotations(klass, eval_str=True)
    except Exception:
        pass
    # Evaluate one by one so that a single dangling forward reference does
    # not leave every other annotation of the class unresolved.
    globalns = dict(_module_namespace(klass))
    localns = dict(vars(klass))
    annotations = {}
    for name, annotation in inspect.get_annotations(klass).items():
        if isinstance(annotation, str):
            try:
                annotation = eval(annotation, globalns, localns)
            except Exception:
                # stays a string, the field is left unresolved
                pass
        annotations[name] = annotation
    return annotations


def get_all_instance_fields(obj_or_class: Any) -> dict[str, Any]:
    """
    Return a mapping of field name to declared type for an object or class.

    Base classes are walked first, so a subclass redeclaring a field wins.
    ClassVar and InitVar annotations are not instance fields and are skipped.
    """
    klass = obj_or_class if isinstance(obj_or_class, type) else type(obj_or_class)
    fields: dict[str, Any] = {}
    for base in reversed(klass.__mro__):
        if base is object:
            continue
        for name, annotation in _class_annotations(base).items():
            if _is_class_level(annotation):
                fields.pop(name, None)
                continue
            fields[name] = annotation
    return fields


def new_instance(cls: type) -> Any:
    """
    Create an instance of cls without running its __init__.

    Falls back to object.__new__() for classes whose __new__ wants arguments,
    and to a plain no-argument call for built-in types that refuse both.
    """
    if not isinstance(cls, type):
        raise InvalidArgumentError(f"{cls!r} is not a class")
    attempts = (
        lambda: cls.__new__(cls),
        lambda: object.__new__(cls),
        cls,
    )
    error = None
    for attempt in attempts:
        try:
            return attempt()
        except TypeError as err:
            error = err
    raise InstantiationError(
        f"Failed to instantiate {cls.__module__}.{cls.__qualname__}: {error}"
    ) from error


def set_internal_state(obj: Any, name: str, value: Any) -> None:
    """Set an attribute, bypassing __setattr__ overrides and frozen dataclasses."""
    object.__setattr__(obj, name, value)
