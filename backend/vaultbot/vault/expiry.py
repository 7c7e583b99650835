"""Expiry date parsing and urgency classification."""

import re
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

# Quick-pick offsets offered after the password step
QUICK_PICK_DAYS = (7, 30, 90, 365)

_DATE_PATTERN = re.compile(r"^(?:(\d{4})[-/])?(\d{1,2})[-/](\d{1,2})$")

_tz: tzinfo = ZoneInfo("UTC")


def set_timezone(tz: tzinfo) -> None:
    """Set the zone that defines "today". Called once at startup."""
    global _tz
    _tz = tz


def current_date() -> date:
    """Current calendar date in the configured timezone."""
    return datetime.now(_tz).date()


class Urgency(str, Enum):
    """How close a record is to its expiry date."""
    EXPIRED = "expired"    # past the date
    TODAY = "today"        # expires today
    RED = "red"            # 1-3 days
    YELLOW = "yellow"      # 4-7 days
    GREEN = "green"        # 8-30 days
    FAR = "far"            # more than 30 days, no marker

    @property
    def marker(self) -> str:
        return _MARKERS[self]


_MARKERS = {
    Urgency.EXPIRED: "⚠️",
    Urgency.TODAY: "🔴",
    Urgency.RED: "🔴",
    Urgency.YELLOW: "🟡",
    Urgency.GREEN: "🟢",
    Urgency.FAR: "",
}


def parse_expiry_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Parse YYYY-MM-DD, YYYY/MM/DD, MM-DD or MM/DD.

    Without a year the current year is used, rolling over to next year if
    that date is already behind us. Returns None for anything else,
    including dates that don't exist on the calendar (13-45, 02-30).
    """
    match = _DATE_PATTERN.match(text.strip())
    if not match:
        return None

    current = today or current_date()
    year_text, month_text, day_text = match.groups()
    month, day = int(month_text), int(day_text)

    if year_text:
        try:
            return date(int(year_text), month, day)
        except ValueError:
            return None

    try:
        candidate = date(current.year, month, day)
    except ValueError:
        # Feb 29 of a non-leap year may still exist next year
        candidate = None
    if candidate is not None and candidate >= current:
        return candidate
    try:
        return date(current.year + 1, month, day)
    except ValueError:
        return None


def days_until(expires_at: date, today: Optional[date] = None) -> int:
    """Whole days from today to the expiry date; negative once expired."""
    return (expires_at - (today or current_date())).days


def classify_days(days: int) -> Urgency:
    if days < 0:
        return Urgency.EXPIRED
    if days == 0:
        return Urgency.TODAY
    if days <= 3:
        return Urgency.RED
    if days <= 7:
        return Urgency.YELLOW
    if days <= 30:
        return Urgency.GREEN
    return Urgency.FAR


def classify_urgency(expires_at: date, today: Optional[date] = None) -> Urgency:
    return classify_days(days_until(expires_at, today))


def expiry_after(days: int, today: Optional[date] = None) -> date:
    """Date for a quick-pick offset."""
    return (today or current_date()) + timedelta(days=days)
