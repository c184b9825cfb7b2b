"""Mapping layer - bind joined rows into nested, deduplicated object graphs."""

from __future__ import annotations

from row_nest.mapping.binder import BoundEntity, bind
from row_nest.mapping.columns import column, model_column
from row_nest.mapping.compiler import compile_plan, validate_type
from row_nest.mapping.fingerprint import byte_print, fingerprint
from row_nest.mapping.graph import GraphMapper, scan_row, scan_rows
from row_nest.mapping.plan import EntityPlan, FieldPlan
from row_nest.mapping.protocol import Codec, Mapper
from row_nest.mapping.record import Record, RecordIndex, RecordMap

__all__ = [
    "GraphMapper",
    "scan_rows",
    "scan_row",
    "column",
    "model_column",
    "compile_plan",
    "validate_type",
    "bind",
    "BoundEntity",
    "fingerprint",
    "byte_print",
    "Record",
    "RecordIndex",
    "RecordMap",
    "EntityPlan",
    "FieldPlan",
    "Codec",
    "Mapper",
]
