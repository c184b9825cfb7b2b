"""Binding plan data classes.

Frozen dataclasses representing a compiled, validated target type.
Produced once per target type by the schema compiler and reused by the
binder for every row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from row_nest.core.enums import FieldKind


@dataclass(frozen=True)
class FieldPlan:
    """Binding plan for one annotated field."""

    attribute_name: str
    name: str  # annotation name
    column: str  # full column name (parent prefix + separator + name)
    kind: FieldKind
    field_type: Any
    entity_plan: EntityPlan | None = None  # ONE_TO_ONE / ONE_TO_MANY only


@dataclass(frozen=True)
class EntityPlan:
    """Binding plan for one composite type (or one collection element)."""

    target_class: Any
    fields: tuple[FieldPlan, ...]
    # True for list[scalar] / list[codec] elements: the element itself is the slot.
    element: bool = False

    def field(self, name: str) -> FieldPlan | None:
        """Look up a field by annotation name."""
        for field_plan in self.fields:
            if field_plan.name == name:
                return field_plan
        return None

    def columns(self) -> list[str]:
        """All scalar and codec columns of this entity and its children."""
        result: list[str] = []
        for field_plan in self.fields:
            if field_plan.entity_plan is not None:
                result.extend(field_plan.entity_plan.columns())
            else:
                result.append(field_plan.column)
        return result
