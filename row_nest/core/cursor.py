"""Row cursors.

A cursor exposes its ordered column names once, then yields one raw scan
callable per row. The callable receives a destination sequence aligned with
the column list and assigns each column's value into its destination.
Columns missing from a particular row are skipped.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from functools import partial
from typing import Any, Protocol, runtime_checkable


class Destination(Protocol):
    """Anything a column value can be scanned into."""

    def assign(self, value: Any) -> None:
        """Receive the raw column value."""
        ...


RowScan = Callable[[Sequence[Destination]], None]


@runtime_checkable
class RowCursor(Protocol):
    """Forward-only source of rows."""

    @property
    def columns(self) -> list[str]:
        """Ordered column names, identical for every row."""
        ...

    def __iter__(self) -> Iterator[RowScan]:
        """Yield one raw scan callable per row."""
        ...


class _Discard:
    """Sink for columns that no slot consumes."""

    def assign(self, value: Any) -> None:
        pass


DISCARD = _Discard()

_MISSING = object()


def _scan_values(values: Sequence[Any], dest: Sequence[Destination]) -> None:
    for value, target in zip(values, dest, strict=True):
        if value is _MISSING:
            continue
        target.assign(value)


class DBAPICursor:
    """Adapt a DB-API 2.0 cursor (``description`` + ``fetchone``).

    Rows are fetched lazily, one per iteration step. Handles both tuple-like
    rows and dict-like rows from different drivers.
    """

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        if cursor.description is None:
            self._columns: list[str] = []
        else:
            self._columns = [desc[0] for desc in cursor.description]

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __iter__(self) -> Iterator[RowScan]:
        if not self._columns:
            return
        while True:
            row = self._cursor.fetchone()
            if row is None:
                return
            # Dict-like rows (e.g. psycopg dict_row, MySQL dict cursor)
            if isinstance(row, Mapping):
                values = [row.get(col, _MISSING) for col in self._columns]
            else:
                values = list(row)
            yield partial(_scan_values, values)


class DictRowCursor:
    """Adapt a list of row dicts.

    The column list is the ordered union of keys across all rows unless
    given explicitly.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]],
        columns: list[str] | None = None,
    ) -> None:
        self._rows = rows
        if columns is None:
            columns = list(dict.fromkeys(key for row in rows for key in row))
        self._columns = columns

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __iter__(self) -> Iterator[RowScan]:
        for row in self._rows:
            values = [row.get(col, _MISSING) for col in self._columns]
            yield partial(_scan_values, values)
