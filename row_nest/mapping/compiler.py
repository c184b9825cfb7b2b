"""Schema compiler.

Validates a target type and compiles it into an EntityPlan. Validation runs
in three stages:

1. the root must resolve (through ``Optional``) to a composite type;
2. no annotated path may revisit a composite already on the current path;
3. every annotated field type reachable from the root must have a
   supported shape, unless it implements the codec contract.

Cycle detection must run before the shape checks: the shape traversal
follows annotated fields and would never terminate on a cyclic type.
"""

from __future__ import annotations

import asyncio
import collections.abc
import inspect
import queue
import types
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol, Union, get_origin

import structlog

from row_nest.core.config import BinderConfig
from row_nest.core.enums import FieldKind
from row_nest.core.exceptions import (
    CyclicTypeError,
    NameCollisionError,
    UnsupportedTypeError,
)
from row_nest.mapping.introspect import (
    AnnotatedField,
    annotated_fields,
    is_class,
    is_composite,
    is_list,
    list_element,
    type_name,
    unwrap_optional,
)
from row_nest.mapping.plan import EntityPlan, FieldPlan
from row_nest.mapping.protocol import is_codec

logger = structlog.get_logger(__name__)

_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_SET_ORIGINS = (set, frozenset, collections.abc.Set, collections.abc.MutableSet)
_STREAM_ORIGINS = (
    collections.abc.Iterator,
    collections.abc.Generator,
    collections.abc.AsyncIterator,
    collections.abc.AsyncGenerator,
)
_CHANNEL_TYPES = (queue.Queue, queue.SimpleQueue, asyncio.Queue)


def _origin_or_self(tp: Any) -> Any:
    return get_origin(tp) or tp


def _is_subclass(tp: Any, classes: tuple[type, ...]) -> bool:
    return is_class(tp) and issubclass(tp, classes)


# Shape verifiers: each returns an error detail, or None when the type passes.


def _not_array(tp: Any) -> str | None:
    if _origin_or_self(tp) is tuple or _is_subclass(tp, (tuple,)):
        return "tuples are not supported, consider using a list or codec instead"
    return None


def _not_mapping(tp: Any) -> str | None:
    origin = _origin_or_self(tp)
    if origin in _MAPPING_ORIGINS or _is_subclass(origin, (collections.abc.Mapping,)):
        return "dictionaries are not supported, consider using a list or codec instead"
    return None


def _not_set(tp: Any) -> str | None:
    origin = _origin_or_self(tp)
    if origin in _SET_ORIGINS or _is_subclass(origin, (set, frozenset)):
        return "sets are not supported, consider using a list or codec instead"
    return None


def _not_nested_list(tp: Any) -> str | None:
    if not is_list(tp):
        return None
    element, _ = unwrap_optional(list_element(tp))
    if is_list(element):
        return "multi-level nested lists are not supported, consider using a codec instead"
    return None


def _not_callable(tp: Any) -> str | None:
    origin = _origin_or_self(tp)
    if origin is collections.abc.Callable or _is_subclass(
        origin, (types.FunctionType, types.MethodType)
    ):
        return "callables are not supported"
    return None


def _not_channel(tp: Any) -> str | None:
    origin = _origin_or_self(tp)
    if origin in _STREAM_ORIGINS or _is_subclass(origin, _CHANNEL_TYPES):
        return "channel and stream types are not supported"
    return None


def _not_polymorphic(tp: Any) -> str | None:
    if get_origin(tp) in (Union, types.UnionType):
        return "unions of several types are not supported, consider using a codec instead"
    if is_class(tp) and (Protocol in tp.__mro__ or inspect.isabstract(tp)):
        return "protocol and abstract types are not supported, consider using a codec instead"
    return None


_FIELD_VERIFIERS: list[Callable[[Any], str | None]] = [
    _not_array,
    _not_mapping,
    _not_set,
    _not_nested_list,
    _not_callable,
    _not_channel,
    _not_polymorphic,
]


def _root_type(tp: Any) -> Any:
    """Follow Optional and list wrapping down to the bound type."""
    while True:
        tp, _ = unwrap_optional(tp)
        if is_codec(tp) or not is_list(tp):
            return tp
        tp = list_element(tp)


def _find_cycle(cls: type, tag: str, path: list[type]) -> list[type] | None:
    path.append(cls)
    try:
        for field in annotated_fields(cls, tag):
            child = _root_type(field.annotation)
            if is_codec(child) or not is_composite(child):
                continue
            if child in path:
                return [*path, child]
            cycle = _find_cycle(child, tag, path)
            if cycle is not None:
                return cycle
    finally:
        path.pop()
    return None


def _verify_shapes(tp: Any, tag: str) -> None:
    tp, _ = unwrap_optional(tp)
    if is_codec(tp):
        return

    for verifier in _FIELD_VERIFIERS:
        detail = verifier(tp)
        if detail is not None:
            raise UnsupportedTypeError(type_name(tp), detail)

    if is_list(tp):
        _verify_shapes(list_element(tp), tag)
        return

    if is_composite(tp):
        for field in annotated_fields(tp, tag):
            _verify_shapes(field.annotation, tag)


def validate_type(target: Any, config: BinderConfig | None = None) -> None:
    """Check that ``target`` can be used as a binding target.

    Raises:
        UnsupportedTypeError: If the root is not a composite type, or any
            annotated field has an unsupported shape.
        CyclicTypeError: If annotated fields form a cycle between composites.
    """
    config = config or BinderConfig()
    root, _ = unwrap_optional(target)
    if not is_composite(root):
        raise UnsupportedTypeError(
            type_name(target),
            "target type must be a dataclass or Pydantic model, or Optional of one",
        )

    cycle = _find_cycle(root, config.tag, [])
    if cycle is not None:
        raise CyclicTypeError(type_name(cycle[-1]), [type_name(t) for t in cycle])

    _verify_shapes(root, config.tag)


class _PlanBuilder:
    """Builds the EntityPlan tree, tracking full column names for collisions."""

    def __init__(self, config: BinderConfig) -> None:
        self._config = config
        self._columns: set[str] = set()

    def _claim(self, owner: Any, column: str) -> None:
        if column in self._columns:
            raise NameCollisionError(type_name(owner), column)
        self._columns.add(column)

    def entity(self, cls: type, prefix: str) -> EntityPlan:
        names: set[str] = set()
        fields = []
        for field in annotated_fields(cls, self._config.tag):
            if field.name in names:
                raise NameCollisionError(type_name(cls), field.name)
            names.add(field.name)
            fields.append(self._field(cls, field, self._config.join(prefix, field.name)))
        return EntityPlan(target_class=cls, fields=tuple(fields))

    def _field(self, owner: type, field: AnnotatedField, column: str) -> FieldPlan:
        tp, _ = unwrap_optional(field.annotation)

        if is_codec(tp):
            self._claim(owner, column)
            return FieldPlan(field.attribute_name, field.name, column, FieldKind.CODEC, tp)

        if is_list(tp):
            element, _ = unwrap_optional(list_element(tp))
            if is_composite(element) and not is_codec(element):
                element_plan = self.entity(element, column)
            else:
                element_plan = self._element(owner, element, column)
            return FieldPlan(
                field.attribute_name,
                field.name,
                column,
                FieldKind.ONE_TO_MANY,
                element,
                element_plan,
            )

        if is_composite(tp):
            return FieldPlan(
                field.attribute_name,
                field.name,
                column,
                FieldKind.ONE_TO_ONE,
                tp,
                self.entity(tp, column),
            )

        self._claim(owner, column)
        return FieldPlan(field.attribute_name, field.name, column, FieldKind.SCALAR, tp)

    def _element(self, owner: type, element: Any, column: str) -> EntityPlan:
        self._claim(owner, column)
        kind = FieldKind.CODEC if is_codec(element) else FieldKind.SCALAR
        leaf = FieldPlan("", "", column, kind, element)
        return EntityPlan(target_class=element, fields=(leaf,), element=True)


@lru_cache(maxsize=256)
def _compile(target: Any, config: BinderConfig) -> EntityPlan:
    validate_type(target, config)
    root, _ = unwrap_optional(target)
    plan = _PlanBuilder(config).entity(root, "")
    logger.debug(
        "plan_compiled",
        target=type_name(root),
        columns=len(plan.columns()),
        tag=config.tag,
    )
    return plan


def compile_plan(target: Any, config: BinderConfig | None = None) -> EntityPlan:
    """Validate ``target`` and compile it into a cached EntityPlan.

    Raises:
        SchemaError: If the type is unusable (see ``validate_type``) or two
            annotated fields resolve to the same name.
    """
    return _compile(target, config or BinderConfig())
