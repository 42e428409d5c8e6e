from datetime import date, datetime, timedelta, timezone

import pytest

from template_advisor.utils.date_utils import (
    calculate_age_years,
    expiry_after_days,
    is_expired,
    safe_parse_date,
)

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2024-03-05T10:00:00Z", datetime(2024, 3, 5, 10, tzinfo=timezone.utc)),
        ("2024-03-05", datetime(2024, 3, 5, tzinfo=timezone.utc)),
        ("2023-07", datetime(2023, 7, 1, tzinfo=timezone.utc)),
        ("2022", datetime(2022, 1, 1, tzinfo=timezone.utc)),
        (date(2021, 2, 3), datetime(2021, 2, 3, tzinfo=timezone.utc)),
        (datetime(2020, 1, 1), datetime(2020, 1, 1, tzinfo=timezone.utc)),
    ],
)
def test_safe_parse_date_accepts_common_shapes(raw, expected):
    assert safe_parse_date(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "  ", "yesterday", "2023-13", 12345])
def test_safe_parse_date_rejects_garbage(raw):
    assert safe_parse_date(raw) is None


def test_expiry_and_is_expired():
    expires = expiry_after_days(7, NOW)
    assert expires == NOW + timedelta(days=7)
    assert is_expired(expires, NOW) is False
    assert is_expired(expires, expires) is False
    assert is_expired(expires, expires + timedelta(seconds=1)) is True
    assert is_expired("not a date", NOW) is True


def test_calculate_age_years():
    assert calculate_age_years(2020, NOW) == 5
    assert calculate_age_years(None, NOW) is None
