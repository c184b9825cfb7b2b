"""Field binding kinds."""

from __future__ import annotations

from enum import Enum


class FieldKind(Enum):
    """How an annotated field is bound to row columns."""

    SCALAR = "scalar"
    CODEC = "codec"
    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
