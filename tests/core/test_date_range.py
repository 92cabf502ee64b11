"""Unit tests for date window presets.

Pure function tests - the current time is passed in.
"""

import pytest
from datetime import datetime, timezone

from src.core.date_range import (
    PRESETS,
    DateWindow,
    is_valid_date,
    resolve_preset,
)


# 22:30 UTC is already the next civil day in Istanbul (UTC+3)
NOW = datetime(2024, 3, 10, 22, 30, tzinfo=timezone.utc)


class TestResolvePreset:
    """Tests for resolve_preset()."""

    @pytest.mark.parametrize("preset,start", [
        ("today", "2024-03-11"),
        ("yesterday", "2024-03-10"),
        ("3days", "2024-03-08"),
        ("7days", "2024-03-04"),
        ("14days", "2024-02-26"),
        ("30days", "2024-02-10"),
    ])
    def test_day_presets(self, preset, start):
        assert resolve_preset(preset, NOW) == DateWindow(start=start, end="2024-03-11")

    @pytest.mark.parametrize("preset,start", [
        ("1hour", "2024-03-11"),
        ("6hours", "2024-03-10"),
        ("24hours", "2024-03-10"),
    ])
    def test_hour_presets(self, preset, start):
        assert resolve_preset(preset, NOW) == DateWindow(start=start, end="2024-03-11")

    def test_custom_timezone(self):
        window = resolve_preset("today", NOW, tz=timezone.utc)
        assert window == DateWindow(start="2024-03-10", end="2024-03-10")

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown"):
            resolve_preset("fortnight", NOW)

    def test_every_preset_resolves(self):
        for preset in PRESETS:
            window = resolve_preset(preset, NOW)
            assert window.start <= window.end


class TestIsValidDate:
    """Tests for is_valid_date()."""

    @pytest.mark.parametrize("value", ["2024-01-01", "2024-02-29"])
    def test_valid(self, value):
        assert is_valid_date(value)

    @pytest.mark.parametrize("value", [None, "", "2024-1-1", "2023-02-29", "01-01-2024", "2024/01/01"])
    def test_invalid(self, value):
        assert not is_valid_date(value)
