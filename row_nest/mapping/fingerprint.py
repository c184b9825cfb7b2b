"""Content fingerprints for bound entities.

The byte print of an entity is, in declaration order, one token per direct
scalar or codec slot followed by the byte prints of its one-to-one
children. One-to-many children never contribute: two rows describing the
same parent with different child items must fingerprint identically.

Token layout: ``{<column>#<length>:<payload>}``. The column name prefix keeps
values of neighbouring fields from running into each other; the length
keeps payloads containing delimiter bytes unambiguous. An absent codec
identity, or a one-to-one child whose identity-bearing columns are all
null, is written as ``{<column>!}``. A one-to-one child with no columns in
its own one-to-one subtree writes nothing.
"""

from __future__ import annotations

import hashlib

from row_nest.mapping.binder import BoundEntity, CodecSlot


def _token(column: str, payload: bytes | None) -> bytes:
    name = column.encode("utf-8")
    if payload is None:
        return b"{" + name + b"!}"
    return b"{" + name + b"#" + str(len(payload)).encode("ascii") + b":" + payload + b"}"


def _write(entity: BoundEntity, buf: bytearray) -> None:
    for column, slot in entity.slots():
        if isinstance(slot, CodecSlot):
            buf += _token(column, slot.codec.identity())
        else:
            buf += _token(column, repr(slot.get()).encode("utf-8"))

    for child in entity.one_to_one.values():
        if not child.has_identity:
            continue
        if child.identity_absent:
            buf += _token(child.field.column, None)  # type: ignore[union-attr]
        else:
            _write(child, buf)


def byte_print(entity: BoundEntity) -> bytes:
    """Deterministic serialization of an entity's identifying content."""
    buf = bytearray()
    _write(entity, buf)
    return bytes(buf)


def fingerprint(entity: BoundEntity) -> bytes:
    """SHA-256 digest of ``byte_print(entity)``."""
    return hashlib.sha256(byte_print(entity)).digest()
