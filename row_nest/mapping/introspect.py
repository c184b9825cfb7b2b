"""Runtime type introspection for dataclasses and Pydantic models."""

from __future__ import annotations

import dataclasses
import types
import typing
from typing import Any, NamedTuple, Union, get_args, get_origin

from pydantic import BaseModel

from row_nest.core.exceptions import UnsupportedTypeError


class AnnotatedField(NamedTuple):
    """An attribute opted into column binding."""

    attribute_name: str
    name: str
    annotation: Any


def is_class(tp: Any) -> bool:
    """True for plain classes; false for parameterized generics such as list[int]."""
    return isinstance(tp, type) and get_origin(tp) is None


def is_pydantic_model(cls: Any) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return is_class(cls) and issubclass(cls, BaseModel)


def is_composite(tp: Any) -> bool:
    """Check if a type has named fields RowNest can bind (dataclass or Pydantic)."""
    if not is_class(tp):
        return False
    return dataclasses.is_dataclass(tp) or is_pydantic_model(tp)


def type_name(tp: Any) -> str:
    if is_class(tp):
        return tp.__name__
    return repr(tp).removeprefix("typing.")


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Strip ``Optional`` wrapping.

    Returns the inner type and whether it was optional. Unions of more than
    one non-None member are returned unchanged.
    """
    if get_origin(tp) not in (Union, types.UnionType):
        return tp, False
    members = [arg for arg in get_args(tp) if arg is not type(None)]
    if len(members) != 1:
        return tp, False
    inner, _ = unwrap_optional(members[0])
    return inner, True


def is_list(tp: Any) -> bool:
    return tp is list or get_origin(tp) is list


def list_element(tp: Any) -> Any:
    """Element type of ``list[X]``; bare ``list`` holds ``Any``."""
    args = get_args(tp)
    return args[0] if args else Any


def annotated_fields(cls: type, tag: str) -> list[AnnotatedField]:
    """Annotated fields of a composite type, in declaration order."""
    if is_pydantic_model(cls):
        result = []
        for attr_name, info in cls.model_fields.items():  # type: ignore[attr-defined]
            extra = info.json_schema_extra
            if isinstance(extra, dict) and tag in extra:
                result.append(AnnotatedField(attr_name, str(extra[tag]), info.annotation))
        return result

    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise UnsupportedTypeError(type_name(cls), f"cannot resolve annotations: {e}") from e

    return [
        AnnotatedField(f.name, str(f.metadata[tag]), hints.get(f.name, Any))
        for f in dataclasses.fields(cls)
        if tag in f.metadata
    ]


def field_default(cls: type, attribute_name: str) -> Any:
    """Declared default of an attribute, calling factories; None when required."""
    if is_pydantic_model(cls):
        info = cls.model_fields[attribute_name]  # type: ignore[attr-defined]
        if info.is_required():
            return None
        return info.get_default(call_default_factory=True)

    for f in dataclasses.fields(cls):
        if f.name != attribute_name:
            continue
        if f.default is not dataclasses.MISSING:
            return f.default
        if f.default_factory is not dataclasses.MISSING:
            return f.default_factory()
        return None
    return None


def new_instance(cls: type) -> Any:
    """Allocate a zero-valued instance without running validation or __init__.

    Every field is set to its declared default (factories are called) or None.
    """
    if is_pydantic_model(cls):
        values = {name: field_default(cls, name) for name in cls.model_fields}  # type: ignore[attr-defined]
        return cls.model_construct(**values)  # type: ignore[attr-defined]

    instance = cls.__new__(cls)
    for f in dataclasses.fields(cls):
        set_attribute(instance, f.name, field_default(cls, f.name))
    return instance


def set_attribute(instance: Any, name: str, value: Any) -> None:
    """Write an attribute, bypassing frozen-dataclass and Pydantic guards."""
    object.__setattr__(instance, name, value)
