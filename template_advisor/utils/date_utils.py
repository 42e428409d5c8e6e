"""
Date helpers for record timestamps, cache expiry and benchmark age.

All datetimes leaving this module are timezone-aware UTC.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

# Partial dates seen in seed files and research snippets
_YEAR = re.compile(r"(\d{4})")
_YEAR_MONTH = re.compile(r"(\d{4})-(\d{1,2})")


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def safe_parse_date(raw: Any) -> Optional[datetime]:
    """Best-effort conversion to an aware datetime.

    Accepts datetimes, dates, ISO 8601 strings (``Z`` suffix included),
    bare years and ``YYYY-MM``. Anything else yields None.
    """
    if isinstance(raw, datetime):
        return _as_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if not isinstance(raw, str) or not raw.strip():
        return None

    text = raw.strip()
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    year_month = _YEAR_MONTH.fullmatch(text)
    if year_month and 1 <= int(year_month.group(2)) <= 12:
        return datetime(int(year_month.group(1)), int(year_month.group(2)), 1, tzinfo=timezone.utc)
    year = _YEAR.fullmatch(text)
    if year:
        return datetime(int(year.group(1)), 1, 1, tzinfo=timezone.utc)
    return None


def get_current_utc() -> datetime:
    return datetime.now(timezone.utc)


def expiry_after_days(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or get_current_utc()) + timedelta(days=days)


def is_expired(expires_at: Any, now: Optional[datetime] = None) -> bool:
    """True once ``now`` is strictly past ``expires_at``; unparseable dates count as expired."""
    parsed = safe_parse_date(expires_at)
    if parsed is None:
        return True
    return (now or get_current_utc()) > parsed


def calculate_age_years(year: Optional[int], now: Optional[datetime] = None) -> Optional[int]:
    if year is None:
        return None
    return (now or get_current_utc()).year - int(year)
