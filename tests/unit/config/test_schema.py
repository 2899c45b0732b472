"""Tests for StepFlow settings schema."""

import pytest
from pydantic import ValidationError

from stepflow import Settings


class TestSettings:
    """Tests for Settings model."""

    def test_defaults(self) -> None:
        """Test default values."""
        settings = Settings()

        assert settings.loop_count == 1
        assert settings.duration == -1
        assert settings.step_delay == 0
        assert settings.action_delay == 0
        assert settings.wait_timeout == 30
        assert settings.tries == 1
        assert settings.blocked_domains == []
        assert settings.on_hook_error == "fail"

    def test_extra_fields_forbidden(self) -> None:
        """Test unknown fields are rejected."""
        with pytest.raises(ValidationError):
            Settings(loop_cuont=3)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("step_delay", -0.1),
            ("action_delay", -1),
            ("wait_timeout", 0),
            ("tries", -1),
            ("on_hook_error", "ignore"),
        ],
    )
    def test_invalid_values(self, field: str, value: object) -> None:
        """Test field constraints."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_blocked_domains_reject_blank_entries(self) -> None:
        """Test blank domain entries are rejected."""
        with pytest.raises(ValidationError, match="non-empty"):
            Settings(blocked_domains=["ads.example.com", "  "])

    def test_assignment_is_validated(self) -> None:
        """Test validate_assignment is enabled."""
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.step_delay = -5


class TestSettingsMerged:
    """Tests for Settings.merged."""

    def test_merged_applies_overrides(self) -> None:
        """Test overrides take precedence and the original is untouched."""
        base = Settings(name="base", wait_timeout=10)
        merged = base.merged({"wait_timeout": 2, "step_delay": 1})

        assert merged.name == "base"
        assert merged.wait_timeout == 2
        assert merged.step_delay == 1
        assert base.wait_timeout == 10
        assert base.step_delay == 0

    def test_merged_without_overrides_is_a_copy(self) -> None:
        """Test merging nothing returns an equal but distinct instance."""
        base = Settings(blocked_domains=["a.example"])
        copy = base.merged()

        assert copy == base
        assert copy is not base
        copy.blocked_domains.append("b.example")
        assert base.blocked_domains == ["a.example"]

    def test_merged_validates(self) -> None:
        """Test invalid overrides are rejected."""
        with pytest.raises(ValidationError):
            Settings().merged({"wait_timeout": -1})
