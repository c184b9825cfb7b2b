"""Row-to-graph mapper.

Binds every row of a cursor into a fresh target instance, then merges it
into the accumulated output by content fingerprint. Single pass, one row
at a time: bind, fingerprint, merge, then request the next row.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

import structlog

from row_nest.core.config import BinderConfig
from row_nest.core.cursor import DictRowCursor, RowCursor
from row_nest.core.exceptions import MultipleRowsError, NoRowsError, StrictModeViolation
from row_nest.mapping.binder import bind
from row_nest.mapping.compiler import compile_plan
from row_nest.mapping.introspect import type_name
from row_nest.mapping.plan import EntityPlan
from row_nest.mapping.record import RecordMap

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class GraphMapper(Generic[T]):
    """Reconstruct nested object graphs from joined result sets.

    The target type is validated and compiled on construction, so schema
    errors surface before any row is read.

    Args:
        target_class: Dataclass or Pydantic model with annotated fields.
        config: Binder configuration. Defaults to ``BinderConfig()``.
    """

    def __init__(self, target_class: type[T], config: BinderConfig | None = None) -> None:
        self._target_class = target_class
        self._config = config or BinderConfig()
        self._plan = compile_plan(target_class, self._config)

    @property
    def plan(self) -> EntityPlan:
        return self._plan

    def scan(self, cursor: RowCursor) -> list[T]:
        """Bind all rows of ``cursor`` into a deduplicated list.

        Returns the list, or raises the first binding or scan error. No
        partial result is returned alongside an error.
        """
        columns = cursor.columns
        if self._config.strict:
            self._validate_strict(columns)

        records: RecordMap[T] = RecordMap()
        row_count = 0
        for raw_scan in cursor:
            entity = bind(self._plan)
            entity.scan(columns, raw_scan)
            records.merge(entity)
            row_count += 1

        logger.debug(
            "rows_scanned",
            target=type_name(self._plan.target_class),
            rows=row_count,
            entities=len(records),
        )
        return records.entries

    def scan_one(self, cursor: RowCursor) -> T:
        """Bind all rows of ``cursor`` into exactly one entity.

        Raises:
            NoRowsError: If the rows describe no entity.
            MultipleRowsError: If they describe more than one distinct entity.
        """
        results = self.scan(cursor)
        name = type_name(self._plan.target_class)
        if not results:
            raise NoRowsError(name)
        if len(results) > 1:
            raise MultipleRowsError(name, len(results))
        return results[0]

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Reconstruct object graphs from row dicts."""
        if not rows:
            return []
        return self.scan(DictRowCursor(rows))

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row dict to one entity."""
        return self.scan_one(DictRowCursor([row]))

    def _validate_strict(self, columns: list[str]) -> None:
        """Validate planned columns against the cursor's columns in strict mode."""
        planned = self._plan.columns()
        available = set(columns)
        name = type_name(self._plan.target_class)

        for column in planned:
            if column not in available:
                raise StrictModeViolation(f"Missing mapped column '{column}' for {name}")

        known = set(planned)
        for column in columns:
            if column not in known:
                raise StrictModeViolation(
                    f"Unknown column '{column}' for {name}. Known columns: {sorted(known)}"
                )


def scan_rows(
    target_class: type[T],
    cursor: RowCursor,
    config: BinderConfig | None = None,
) -> list[T]:
    """Bind all rows of a cursor into a deduplicated list of ``target_class``."""
    return GraphMapper(target_class, config).scan(cursor)


def scan_row(
    target_class: type[T],
    cursor: RowCursor,
    config: BinderConfig | None = None,
) -> T:
    """Bind all rows of a cursor into exactly one ``target_class`` entity."""
    return GraphMapper(target_class, config).scan_one(cursor)
