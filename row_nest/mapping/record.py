"""Merge engine.

A RecordMap owns the output list and a shadow index mirroring its nested
shape. Each index level maps entity fingerprints to Records; a Record holds
only the entity's position in its owning list plus nested indexes for its
one-to-many children (and nested Records for one-to-one children, whose own
collections accumulate too).

Child lists are always resolved from the matched live parent at merge time
via annotation-name lookup, never carried over from an earlier row.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from row_nest.core.enums import FieldKind
from row_nest.core.exceptions import StructuralMismatchError
from row_nest.mapping.binder import BoundEntity
from row_nest.mapping.fingerprint import fingerprint
from row_nest.mapping.introspect import set_attribute, type_name
from row_nest.mapping.plan import EntityPlan

T = TypeVar("T")


@dataclass
class Record:
    """Shadow of one merged entity."""

    position: int
    collections: dict[str, RecordIndex] = field(default_factory=dict)
    references: dict[str, Record] = field(default_factory=dict)


def _resolve_child(match: Any, plan: EntityPlan, name: str, kind: FieldKind) -> Any:
    field_plan = plan.field(name)
    if field_plan is None or field_plan.kind is not kind:
        raise StructuralMismatchError(type_name(plan.target_class), name)
    value = getattr(match, field_plan.attribute_name, None)
    if kind is FieldKind.ONE_TO_MANY and not isinstance(value, list):
        raise StructuralMismatchError(type_name(plan.target_class), name)
    if value is None:
        raise StructuralMismatchError(type_name(plan.target_class), name)
    return value


def _register(entity: BoundEntity, position: int) -> Record:
    """Build the Record tree for an entity whose children are already in place."""
    record = Record(position=position)
    for name, child in entity.one_to_many.items():
        index = RecordIndex()
        if not child.is_absent:
            # The freshly bound list holds exactly this row's element.
            index.add(fingerprint(child), _register(child, 0))
        record.collections[name] = index
    for name, child in entity.one_to_one.items():
        if not child.is_absent:
            record.references[name] = _register(child, -1)
    return record


def _attach(child: BoundEntity, match: Any, plan: EntityPlan, name: str) -> Record:
    """Install a one-to-one child first seen present on a later row."""
    field_plan = plan.field(name)
    if field_plan is None or field_plan.kind is not FieldKind.ONE_TO_ONE:
        raise StructuralMismatchError(type_name(plan.target_class), name)
    set_attribute(match, field_plan.attribute_name, child.instance)
    return _register(child, -1)


def _merge_children(entity: BoundEntity, record: Record, match: Any) -> None:
    plan = entity.plan
    for name, child in entity.one_to_many.items():
        index = record.collections.get(name)
        if index is None:
            raise StructuralMismatchError(type_name(plan.target_class), name)
        index.merge(child, _resolve_child(match, plan, name, FieldKind.ONE_TO_MANY))

    for name, child in entity.one_to_one.items():
        if child.is_absent:
            continue
        nested = record.references.get(name)
        if nested is None:
            record.references[name] = _attach(child, match, plan, name)
            continue
        _merge_children(child, nested, _resolve_child(match, plan, name, FieldKind.ONE_TO_ONE))


class RecordIndex:
    """One level of the shadow index: fingerprint -> Record."""

    def __init__(self) -> None:
        self._records: dict[bytes, Record] = {}

    def get(self, digest: bytes) -> Record | None:
        return self._records.get(digest)

    def add(self, digest: bytes, record: Record) -> None:
        self._records[digest] = record

    def merge(self, entity: BoundEntity, collection: list[Any]) -> None:
        """Merge ``entity`` into ``collection``, the live list this level shadows.

        A new fingerprint appends the entity; a known one recurses into the
        matched entity's child collections. Wholly absent entities are ignored.
        """
        if entity.is_absent:
            return

        digest = fingerprint(entity)
        record = self.get(digest)
        if record is None:
            collection.append(entity.value)
            self.add(digest, _register(entity, len(collection) - 1))
            return

        _merge_children(entity, record, collection[record.position])


class RecordMap(Generic[T]):
    """Owns the deduplicated output of one scan."""

    def __init__(self) -> None:
        self.entries: list[T] = []
        self._index = RecordIndex()

    def __len__(self) -> int:
        return len(self.entries)

    def merge(self, entity: BoundEntity) -> None:
        self._index.merge(entity, self.entries)
