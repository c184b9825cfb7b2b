"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from typing import Any

import pytest

from row_nest.core.cursor import DictRowCursor


@pytest.fixture
def make_cursor():
    """Helper to build a cursor from a column list and value tuples.

    Usage:
        make_cursor(["id", "name"], (1, "Alice"), (2, "Bob"))
    """

    def _make(columns: list[str], *rows: tuple[Any, ...]) -> DictRowCursor:
        return DictRowCursor([dict(zip(columns, row, strict=True)) for row in rows], columns)

    return _make


@pytest.fixture
def sqlite_conn() -> Iterator[sqlite3.Connection]:
    """SQLite in-memory connection."""
    conn = sqlite3.connect(":memory:")
    try:
        yield conn
    finally:
        conn.close()
