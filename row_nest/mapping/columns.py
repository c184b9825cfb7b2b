"""Column-binding annotations.

Usage:
    @dataclass
    class Pet:
        id: int = column("id")
        colour: Colour | None = column("colour", default=None)

    class Account(BaseModel):
        id: int = model_column("id")
        pets: list[Pet] = model_column("pets", default_factory=list)
"""

from __future__ import annotations

import dataclasses
from typing import Any

from pydantic import Field

from row_nest.core.config import DEFAULT_TAG


def column(name: str, *, tag: str = DEFAULT_TAG, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to the column ``name``."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[tag] = name
    if "default" not in kwargs and "default_factory" not in kwargs:
        kwargs["default"] = None
    return dataclasses.field(metadata=metadata, **kwargs)


def model_column(name: str, *, tag: str = DEFAULT_TAG, **kwargs: Any) -> Any:
    """Declare a Pydantic field bound to the column ``name``."""
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[tag] = name
    return Field(json_schema_extra=extra, **kwargs)
