"""RowNest exception hierarchy.

Schema problems surface before the first row is read. Errors raised while
reading a column (driver or codec failures) are never wrapped and reach the
caller unchanged.
"""

from __future__ import annotations


class RowNestError(Exception):
    """Base exception for all RowNest errors."""


# --- Schema ---


class SchemaError(RowNestError):
    """Base for target-type validation errors."""

    def __init__(self, type_name: str, message: str) -> None:
        self.type_name = type_name
        super().__init__(message)


class UnsupportedTypeError(SchemaError):
    """Raised when a target type or one of its annotated fields has an unusable shape."""

    def __init__(self, type_name: str, detail: str) -> None:
        self.detail = detail
        super().__init__(type_name, f"Unsupported type ({type_name}): {detail}")


class CyclicTypeError(SchemaError):
    """Raised when annotated fields form a reference cycle between composites."""

    def __init__(self, type_name: str, path: list[str]) -> None:
        self.path = path
        super().__init__(
            type_name,
            f"Cyclic types are not supported: {type_name} ({' -> '.join(path)})",
        )


class NameCollisionError(SchemaError):
    """Raised when two annotated fields resolve to the same name."""

    def __init__(self, type_name: str, name: str) -> None:
        self.name = name
        super().__init__(type_name, f"Name collision in {type_name}: '{name}' already bound")


# --- Mapping ---


class MappingError(RowNestError):
    """Base for errors raised while binding or merging rows."""


class StrictModeViolation(MappingError):
    """Raised in strict mode when cursor columns and planned columns disagree."""


class StructuralMismatchError(MappingError):
    """Raised when an incoming entity disagrees with the accumulated structure."""

    def __init__(self, type_name: str, name: str) -> None:
        self.type_name = type_name
        self.name = name
        super().__init__(f"Structural mismatch in {type_name}: no child collection for '{name}'")


# --- Cardinality ---


class CardinalityError(RowNestError):
    """Base for single-result cardinality errors."""


class NoRowsError(CardinalityError):
    """Raised when a single-result scan yields no entity."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Expected exactly one {type_name}, got none")


class MultipleRowsError(CardinalityError):
    """Raised when a single-result scan yields more than one distinct entity."""

    def __init__(self, type_name: str, entity_count: int) -> None:
        self.type_name = type_name
        self.entity_count = entity_count
        super().__init__(
            f"Expected exactly one {type_name}, got {entity_count} distinct entities"
        )
