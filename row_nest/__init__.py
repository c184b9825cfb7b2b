"""RowNest - turn joined SQL result sets into nested, deduplicated object graphs."""

from __future__ import annotations

from row_nest.core.config import BinderConfig
from row_nest.core.cursor import DBAPICursor, DictRowCursor, RowCursor
from row_nest.core.enums import FieldKind
from row_nest.core.exceptions import (
    CardinalityError,
    CyclicTypeError,
    MappingError,
    MultipleRowsError,
    NameCollisionError,
    NoRowsError,
    RowNestError,
    SchemaError,
    StrictModeViolation,
    StructuralMismatchError,
    UnsupportedTypeError,
)
from row_nest.mapping.columns import column, model_column
from row_nest.mapping.compiler import compile_plan, validate_type
from row_nest.mapping.graph import GraphMapper, scan_row, scan_rows
from row_nest.mapping.protocol import Codec

__all__ = [
    # Config
    "BinderConfig",
    # Cursors
    "RowCursor",
    "DBAPICursor",
    "DictRowCursor",
    # Mapping
    "GraphMapper",
    "scan_rows",
    "scan_row",
    "column",
    "model_column",
    "compile_plan",
    "validate_type",
    "Codec",
    # Enums
    "FieldKind",
    # Exceptions
    "RowNestError",
    "SchemaError",
    "UnsupportedTypeError",
    "CyclicTypeError",
    "NameCollisionError",
    "MappingError",
    "StrictModeViolation",
    "StructuralMismatchError",
    "CardinalityError",
    "NoRowsError",
    "MultipleRowsError",
]
