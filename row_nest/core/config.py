"""Binder configuration.

BinderConfig is a frozen Pydantic model so a single instance can key the
compiled-plan cache.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TAG = "column"
DEFAULT_SEPARATOR = "_"


class BinderConfig(BaseModel):
    """Configuration for schema compilation and row binding."""

    model_config = ConfigDict(frozen=True)

    tag: str = Field(default=DEFAULT_TAG, min_length=1)
    separator: str = DEFAULT_SEPARATOR
    strict: bool = False

    def join(self, prefix: str, name: str) -> str:
        """Compose a nested column name from a parent prefix and a child name."""
        if prefix and name:
            return f"{prefix}{self.separator}{name}"
        return prefix or name
