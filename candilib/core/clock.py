"""
Civil calendar helpers.

Every date handled by the booking rules lives in one civil timezone
(``APP_TIMEZONE``, Europe/Paris by default). Storage keeps UTC; values coming
back naive from the database are read as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta
from candilib.core.config import get_settings

FRENCH_DAYS = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")
FRENCH_MONTHS = (
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
)


@lru_cache
def civil_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


class Clock:
    """Source of "now" in the civil timezone. A fixed instant freezes it."""

    def __init__(self, fixed: datetime | None = None) -> None:
        self._fixed = to_civil(fixed) if fixed is not None else None

    def now(self) -> datetime:
        if self._fixed is not None:
            return self._fixed
        return datetime.now(civil_zone())


def to_civil(value: datetime) -> datetime:
    """Express ``value`` in the civil timezone (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(civil_zone())


def parse_civil_iso(value: str | None) -> datetime | None:
    """Parse an ISO date or date-time; ``None`` when missing or invalid.

    Values without an offset are civil wall-clock times.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=civil_zone())
    return parsed.astimezone(civil_zone())


def start_of_day(value: datetime) -> datetime:
    return to_civil(value).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    return to_civil(value).replace(hour=23, minute=59, second=59, microsecond=999999)


def plus_days(value: datetime, days: int) -> datetime:
    # Wall-clock arithmetic: a day stays a calendar day across DST changes.
    return value + timedelta(days=days)


def plus_months(value: datetime, months: int) -> datetime:
    return value + relativedelta(months=months)


def plus_years(value: datetime, years: int) -> datetime:
    return value + relativedelta(years=years)


def whole_days_between(later: datetime, earlier: datetime) -> int:
    """Signed number of whole days from ``earlier`` to ``later``, truncated toward zero."""
    return int((later - earlier).total_seconds() / 86400)


def format_french_date(value: datetime) -> str:
    """Format a date the way candidates read it, e.g. ``lundi 10 juin 2024``."""
    civil = to_civil(value)
    return (
        f"{FRENCH_DAYS[civil.weekday()]} {civil.day} "
        f"{FRENCH_MONTHS[civil.month - 1]} {civil.year}"
    )


def format_french_time(value: datetime) -> str:
    civil = to_civil(value)
    return f"{civil.hour:02d}h{civil.minute:02d}"
