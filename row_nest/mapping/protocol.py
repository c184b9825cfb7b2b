"""Mapper and codec protocols.

A field whose declared type implements ``Codec`` is scanned by the codec
itself instead of being bound structurally, and contributes its
``identity()`` bytes to the owning entity's fingerprint.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, get_origin, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class Codec(Protocol):
    """Pluggable per-field scan + identity capability."""

    def scan(self, value: Any) -> None:
        """Consume a raw column value. Raise to abort the scan."""
        ...

    def identity(self) -> bytes | None:
        """Bytes identifying the scanned value, or None when absent."""
        ...


class Mapper(Protocol[T]):
    """Base mapper protocol."""

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row dict to a target object."""
        ...

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map multiple row dicts to a list of target objects."""
        ...


def is_codec(tp: Any) -> bool:
    """Check whether a type opts into the codec contract."""
    return isinstance(tp, type) and get_origin(tp) is None and issubclass(tp, Codec)
