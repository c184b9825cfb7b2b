"""Per-row entity binder.

``bind`` allocates a fresh target instance and walks its compiled plan,
producing a BoundEntity tree of addressable slots. ``BoundEntity.scan``
then fills it from one row in two passes: null probes first, so every
entity knows whether it is present, then values. Wholly absent children
are collapsed afterwards: one-to-one children are reset to their declared
default and one-to-many elements are removed from their collection.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, cast

from row_nest.core.cursor import DISCARD, Destination, RowScan
from row_nest.core.enums import FieldKind
from row_nest.core.exceptions import NameCollisionError
from row_nest.mapping.introspect import field_default, new_instance, set_attribute, type_name
from row_nest.mapping.plan import EntityPlan, FieldPlan


class FieldSlot:
    """Addressable attribute of a live instance."""

    __slots__ = ("_owner", "_attribute_name")

    def __init__(self, owner: Any, attribute_name: str) -> None:
        self._owner = owner
        self._attribute_name = attribute_name

    def assign(self, value: Any) -> None:
        set_attribute(self._owner, self._attribute_name, value)

    def get(self) -> Any:
        return getattr(self._owner, self._attribute_name)


class ItemSlot:
    """Addressable element of a list of scalars."""

    __slots__ = ("_collection", "_position")

    def __init__(self, collection: list[Any], position: int) -> None:
        self._collection = collection
        self._position = position

    def assign(self, value: Any) -> None:
        self._collection[self._position] = value

    def get(self) -> Any:
        return self._collection[self._position]


class CodecSlot:
    """Hands the raw column value to a codec instance."""

    __slots__ = ("codec",)

    def __init__(self, codec: Any) -> None:
        self.codec = codec

    def assign(self, value: Any) -> None:
        self.codec.scan(value)

    def get(self) -> Any:
        return self.codec


class NullProbe:
    """Records whether a column carried a value. Unscanned columns stay absent."""

    __slots__ = ("absent",)

    def __init__(self) -> None:
        self.absent = True

    def assign(self, value: Any) -> None:
        self.absent = value is None


Slot = FieldSlot | ItemSlot | CodecSlot


class BoundEntity:
    """Binding slots for one composite instance during a scan.

    Slots and probes are keyed by full column name; children are keyed by
    annotation name.
    """

    def __init__(self, plan: EntityPlan, instance: Any, field: FieldPlan | None = None) -> None:
        self.plan = plan
        self.instance = instance
        self.field = field  # position in the parent, None for the root
        self.scalar_slots: dict[str, FieldSlot | ItemSlot] = {}
        self.codec_slots: dict[str, CodecSlot] = {}
        self.null_probes: dict[str, NullProbe] = {}
        self.one_to_one: dict[str, BoundEntity] = {}
        self.one_to_many: dict[str, BoundEntity] = {}
        self._order: list[str] = []
        self._collection: list[Any] | None = None
        self._position = -1

    def add_scalar(self, column: str, slot: FieldSlot | ItemSlot) -> None:
        self._claim(column)
        self.scalar_slots[column] = slot
        self.null_probes[column] = NullProbe()

    def add_codec(self, column: str, slot: CodecSlot) -> None:
        self._claim(column)
        self.codec_slots[column] = slot
        self.null_probes[column] = NullProbe()

    def add_child(self, name: str, child: BoundEntity, many: bool) -> None:
        if name in self.one_to_one or name in self.one_to_many:
            raise NameCollisionError(type_name(self.plan.target_class), name)
        if many:
            self.one_to_many[name] = child
        else:
            self.one_to_one[name] = child

    def _claim(self, column: str) -> None:
        if column in self.scalar_slots or column in self.codec_slots:
            raise NameCollisionError(type_name(self.plan.target_class), column)
        self._order.append(column)

    def slots(self) -> Iterator[tuple[str, Slot]]:
        """Direct scalar and codec slots in declaration order."""
        for column in self._order:
            if column in self.codec_slots:
                yield column, self.codec_slots[column]
            else:
                yield column, self.scalar_slots[column]

    def children(self) -> Iterator[BoundEntity]:
        yield from self.one_to_one.values()
        yield from self.one_to_many.values()

    @property
    def is_absent(self) -> bool:
        """True when every direct column was null (or, without direct columns,
        when every child is absent)."""
        if self.null_probes:
            return all(probe.absent for probe in self.null_probes.values())
        return all(child.is_absent for child in self.children())

    @property
    def has_identity(self) -> bool:
        """True when the entity or a one-to-one descendant owns direct columns."""
        return bool(self.null_probes) or any(
            child.has_identity for child in self.one_to_one.values()
        )

    @property
    def identity_absent(self) -> bool:
        """Absence judged on identity-bearing columns only.

        One-to-many descendants never count, so rows differing only in
        collection content agree on it.
        """
        if self.null_probes:
            return all(probe.absent for probe in self.null_probes.values())
        return all(
            child.identity_absent for child in self.one_to_one.values() if child.has_identity
        )

    @property
    def value(self) -> Any:
        """The live value to store in an owning collection."""
        if self.plan.element and self._collection is not None:
            return self._collection[self._position]
        return self.instance

    def _gather(self, probes: dict[str, Destination], values: dict[str, Destination]) -> None:
        probes.update(self.null_probes)
        values.update(self.scalar_slots)
        values.update(self.codec_slots)
        for child in self.children():
            child._gather(probes, values)

    def scan(self, columns: Sequence[str], raw_scan: RowScan) -> None:
        """Fill the whole tree from one row.

        Errors raised by ``raw_scan`` (driver or codec) propagate unchanged.
        """
        probes: dict[str, Destination] = {}
        values: dict[str, Destination] = {}
        self._gather(probes, values)

        raw_scan([probes.get(column, DISCARD) for column in columns])
        raw_scan([values.get(column, DISCARD) for column in columns])
        self._collapse()

    def _collapse(self) -> None:
        for child in self.one_to_one.values():
            child._collapse()
            if child.is_absent:
                attribute_name = child.field.attribute_name  # type: ignore[union-attr]
                default = field_default(self.plan.target_class, attribute_name)
                set_attribute(self.instance, attribute_name, default)

        for child in self.one_to_many.values():
            child._collapse()
            if child.is_absent:
                child._detach()

    def _detach(self) -> None:
        if self._collection is not None and 0 <= self._position < len(self._collection):
            del self._collection[self._position]
        self._position = -1

    def __repr__(self) -> str:
        return f"BoundEntity({type_name(self.plan.target_class)}, slots={self._order})"


def bind(plan: EntityPlan) -> BoundEntity:
    """Allocate a fresh instance of the plan's target and bind its slots."""
    entity = BoundEntity(plan, new_instance(plan.target_class))
    _bind_fields(entity)
    return entity


def _bind_fields(entity: BoundEntity) -> None:
    instance = entity.instance
    for field_plan in entity.plan.fields:
        if field_plan.kind is FieldKind.CODEC:
            codec = field_plan.field_type()
            set_attribute(instance, field_plan.attribute_name, codec)
            entity.add_codec(field_plan.column, CodecSlot(codec))

        elif field_plan.kind is FieldKind.ONE_TO_MANY:
            collection: list[Any] = []
            set_attribute(instance, field_plan.attribute_name, collection)
            child = _bind_element(field_plan, collection)
            entity.add_child(field_plan.name, child, many=True)

        elif field_plan.kind is FieldKind.ONE_TO_ONE:
            child_plan = cast(EntityPlan, field_plan.entity_plan)
            child = BoundEntity(child_plan, new_instance(child_plan.target_class), field_plan)
            set_attribute(instance, field_plan.attribute_name, child.instance)
            _bind_fields(child)
            entity.add_child(field_plan.name, child, many=False)

        else:
            entity.add_scalar(field_plan.column, FieldSlot(instance, field_plan.attribute_name))


def _bind_element(field_plan: FieldPlan, collection: list[Any]) -> BoundEntity:
    """Append one fresh element to ``collection`` and bind it."""
    plan = cast(EntityPlan, field_plan.entity_plan)

    if not plan.element:
        child = BoundEntity(plan, new_instance(plan.target_class), field_plan)
        collection.append(child.instance)
        _bind_fields(child)
    else:
        leaf = plan.fields[0]
        if leaf.kind is FieldKind.CODEC:
            codec = leaf.field_type()
            collection.append(codec)
            child = BoundEntity(plan, codec, field_plan)
            child.add_codec(leaf.column, CodecSlot(codec))
        else:
            collection.append(None)
            child = BoundEntity(plan, None, field_plan)
            child.add_scalar(leaf.column, ItemSlot(collection, len(collection) - 1))

    child._collection = collection
    child._position = len(collection) - 1
    return child
