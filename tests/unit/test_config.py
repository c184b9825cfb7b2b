"""Unit tests for BinderConfig."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from row_nest.core.config import DEFAULT_SEPARATOR, DEFAULT_TAG, BinderConfig


class TestBinderConfig:
    def test_defaults(self) -> None:
        config = BinderConfig()
        assert config.tag == DEFAULT_TAG == "column"
        assert config.separator == DEFAULT_SEPARATOR == "_"
        assert config.strict is False

    def test_frozen(self) -> None:
        config = BinderConfig()
        with pytest.raises(ValidationError):
            config.tag = "db"  # type: ignore[misc]

    def test_hashable_and_equal(self) -> None:
        assert BinderConfig(separator=".") == BinderConfig(separator=".")
        assert hash(BinderConfig(separator=".")) == hash(BinderConfig(separator="."))

    def test_empty_tag_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BinderConfig(tag="")

    @pytest.mark.parametrize(
        ("separator", "prefix", "name", "expected"),
        [
            ("_", "vehicle", "type", "vehicle_type"),
            ("_", "", "type", "type"),
            ("_", "vehicle", "", "vehicle"),
            (".", "vehicle", "medium", "vehicle.medium"),
            ("", "vehicle", "type", "vehicletype"),
        ],
    )
    def test_join(self, separator: str, prefix: str, name: str, expected: str) -> None:
        assert BinderConfig(separator=separator).join(prefix, name) == expected
