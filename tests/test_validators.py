from datetime import datetime, timedelta, timezone

import pytest

from slotswap.errors import ValidationError
from slotswap.shared.validators import (
    parse_instant,
    normalize_title,
    validate_positive_id,
    validate_time_range,
)


class TestParseInstant:
    def test_naive_iso_string(self):
        assert parse_instant("2026-11-02T09:00:00") == datetime(2026, 11, 2, 9, 0)

    def test_zulu_suffix_becomes_naive_utc(self):
        assert parse_instant("2026-11-02T09:00:00Z") == datetime(2026, 11, 2, 9, 0)

    def test_offset_is_converted_to_utc(self):
        assert parse_instant("2026-11-02T11:00:00+02:00") == datetime(2026, 11, 2, 9, 0)

    def test_aware_datetime_is_normalised(self):
        value = datetime(2026, 11, 2, 4, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert parse_instant(value) == datetime(2026, 11, 2, 9, 0)

    def test_none_passes_through(self):
        assert parse_instant(None) is None

    def test_garbage_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_instant("next tuesday", "startTime")
        assert "startTime" in exc.value.detail


def test_time_range_requires_strict_order():
    start = datetime(2026, 11, 2, 9, 0)
    validate_time_range(start, start + timedelta(minutes=1))
    with pytest.raises(ValidationError):
        validate_time_range(start, start)
    with pytest.raises(ValidationError):
        validate_time_range(start, start - timedelta(hours=1))


@pytest.mark.parametrize("value", [0, -3, "abc", None, True, "1.5"])
def test_positive_id_rejects(value):
    with pytest.raises(ValidationError):
        validate_positive_id(value, "event id")


def test_positive_id_accepts_numeric_strings():
    assert validate_positive_id("42") == 42
    assert validate_positive_id(7) == 7


def test_normalize_title():
    assert normalize_title("  Standup  ") == "Standup"
    assert normalize_title("<b>Tom & Jerry</b>") == "<b>Tom & Jerry</b>"
    assert normalize_title(" " + "x" * 255 + " ") == "x" * 255
    assert normalize_title("   ") is None
    assert normalize_title(None) is None
    with pytest.raises(ValidationError):
        normalize_title("x" * 300)
