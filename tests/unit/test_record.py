"""Unit tests for the merge engine and its shadow index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from row_nest.core.cursor import DictRowCursor
from row_nest.core.exceptions import StructuralMismatchError
from row_nest.mapping.binder import BoundEntity, bind
from row_nest.mapping.columns import column
from row_nest.mapping.compiler import compile_plan
from row_nest.mapping.fingerprint import fingerprint
from row_nest.mapping.record import RecordIndex, RecordMap


@dataclass
class Medium:
    name: str | None = column("name")


@dataclass
class Vehicle:
    type: str | None = column("type")
    mediums: list[Medium] = column("medium", default_factory=list)


@dataclass
class Badge:
    label: str | None = column("label")


@dataclass
class Profile:
    bio: str | None = column("bio")
    badges: list[Badge] = column("badge", default_factory=list)


@dataclass
class Pilot:
    id: int | None = column("id")
    name: str | None = column("name")
    profile: Profile | None = column("profile")
    vehicles: list[Vehicle] = column("vehicle", default_factory=list)


@dataclass
class Item:
    id: int | None = column("id")


@dataclass
class Bag:
    items: list[Item] = column("items", default_factory=list)


@dataclass
class Owner:
    id: int | None = column("id")
    bag: Bag | None = column("bag")


OWNER_COLUMNS = ["id", "bag_items_id"]


def _owner(owner_id: int, item_id: int | None) -> BoundEntity:
    entity = bind(compile_plan(Owner))
    row = {"id": owner_id, "bag_items_id": item_id}
    entity.scan(OWNER_COLUMNS, next(iter(DictRowCursor([row], OWNER_COLUMNS))))
    return entity


COLUMNS = [
    "id",
    "name",
    "profile_bio",
    "profile_badge_label",
    "vehicle_type",
    "vehicle_medium_name",
]


def _row(
    pilot_id: int | None,
    vehicle: str | None = None,
    medium: str | None = None,
    badge: str | None = None,
    bio: str | None = "-",
) -> BoundEntity:
    values = dict(zip(COLUMNS, [pilot_id, f"pilot {pilot_id}", bio, badge, vehicle, medium], strict=True))
    if pilot_id is None:
        values["name"] = None
        values["profile_bio"] = None
    entity = bind(compile_plan(Pilot))
    entity.scan(COLUMNS, next(iter(DictRowCursor([values], COLUMNS))))
    return entity


def _merged(*entities: BoundEntity) -> list[Any]:
    records: RecordMap[Pilot] = RecordMap()
    for entity in entities:
        records.merge(entity)
    return records.entries


class TestRecordMap:
    def test_new_fingerprint_appends(self) -> None:
        result = _merged(_row(1, "car", "land"), _row(2, "boat", "sea"))
        assert [p.id for p in result] == [1, 2]

    def test_same_row_twice_is_idempotent(self) -> None:
        result = _merged(_row(1, "car", "land"), _row(1, "car", "land"))
        assert len(result) == 1
        assert result[0].vehicles == [Vehicle(type="car", mediums=[Medium(name="land")])]

    def test_children_accumulate_in_arrival_order(self) -> None:
        result = _merged(_row(1, "van", "land"), _row(1, "sub", "sea"), _row(1, "car", "land"))
        assert [v.type for v in result[0].vehicles] == ["van", "sub", "car"]

    def test_nested_children_accumulate(self) -> None:
        result = _merged(
            _row(1, "sub", "sea"),
            _row(1, "sub", "swimming pool"),
            _row(1, "van", "land"),
            _row(1, "sub", "sea"),
        )
        assert result[0].vehicles == [
            Vehicle(type="sub", mediums=[Medium(name="sea"), Medium(name="swimming pool")]),
            Vehicle(type="van", mediums=[Medium(name="land")]),
        ]

    def test_first_observation_fixes_position(self) -> None:
        result = _merged(_row(1, "car"), _row(2, "boat"), _row(1, "bike"))
        assert [p.id for p in result] == [1, 2]
        assert [v.type for v in result[0].vehicles] == ["car", "bike"]

    def test_absent_entity_is_noop(self) -> None:
        result = _merged(_row(None), _row(1, "car"), _row(None))
        assert [p.id for p in result] == [1]

    def test_children_arriving_after_empty_row(self) -> None:
        result = _merged(_row(1), _row(1, "car", "land"))
        assert result[0].vehicles == [Vehicle(type="car", mediums=[Medium(name="land")])]

    def test_one_to_many_under_one_to_one_accumulates(self) -> None:
        result = _merged(_row(1, badge="gold"), _row(1, badge="silver"), _row(1, badge="gold"))
        assert result[0].profile == Profile(bio="-", badges=[Badge("gold"), Badge("silver")])

    def test_one_to_one_difference_splits(self) -> None:
        result = _merged(_row(1, bio="pilot"), _row(1, bio="captain"))
        assert len(result) == 2


class TestOneToOneWithoutOwnColumns:
    def test_empty_then_populated_list_merges(self) -> None:
        result = _merged(_owner(1, None), _owner(1, 7))
        assert result == [Owner(1, Bag([Item(7)]))]

    def test_populated_then_empty_list_merges(self) -> None:
        result = _merged(_owner(1, 7), _owner(1, None))
        assert result == [Owner(1, Bag([Item(7)]))]

    def test_items_accumulate_after_late_arrival(self) -> None:
        result = _merged(_owner(1, None), _owner(1, 7), _owner(1, 8), _owner(1, 7))
        assert result == [Owner(1, Bag([Item(7), Item(8)]))]

    def test_all_empty_rows_leave_child_unset(self) -> None:
        result = _merged(_owner(1, None), _owner(1, None))
        assert result == [Owner(1, None)]

    def test_distinct_parents_stay_apart(self) -> None:
        result = _merged(_owner(1, 7), _owner(2, None), _owner(2, 8))
        assert result == [Owner(1, Bag([Item(7)])), Owner(2, Bag([Item(8)]))]

class TestRecordIndex:
    def test_records_positions(self) -> None:
        index = RecordIndex()
        output: list[Any] = []
        first, second = _row(1, "car", "land"), _row(2, "boat", "sea")
        index.merge(first, output)
        index.merge(second, output)

        first_record = index.get(fingerprint(first))
        record = index.get(fingerprint(second))
        assert first_record is not None
        assert first_record.position == 0
        assert record is not None
        assert record.position == 1
        vehicle = record.collections["vehicle"].get(fingerprint(second.one_to_many["vehicle"]))
        assert vehicle is not None
        assert vehicle.position == 0

    def test_child_collection_resolved_from_live_parent(self) -> None:
        index = RecordIndex()
        output: list[Any] = []
        index.merge(_row(1, "car"), output)

        replacement = list(output[0].vehicles)
        output[0].vehicles = replacement
        index.merge(_row(1, "bike"), output)

        assert output[0].vehicles is replacement
        assert [v.type for v in replacement] == ["car", "bike"]

    def test_missing_child_index_is_structural_mismatch(self) -> None:
        index = RecordIndex()
        output: list[Any] = []
        first = _row(1, "car")
        index.merge(first, output)

        record = index.get(fingerprint(first))
        assert record is not None
        record.collections.clear()

        with pytest.raises(StructuralMismatchError, match="'vehicle'") as exc_info:
            index.merge(_row(1, "bike"), output)
        assert exc_info.value.type_name == "Pilot"

    def test_non_list_live_collection_is_structural_mismatch(self) -> None:
        index = RecordIndex()
        output: list[Any] = []
        index.merge(_row(1, "car"), output)
        output[0].vehicles = None

        with pytest.raises(StructuralMismatchError):
            index.merge(_row(1, "bike"), output)
