from __future__ import annotations

from datetime import date, datetime, timezone

from ..core.constants import BUSINESS_UTC_OFFSET
from ..core.exceptions import ValidationError


def parse_iso_datetime(value, field_name: str) -> datetime:
    """Parse an ISO date or datetime into an aware UTC datetime.

    A bare ``YYYY-MM-DD`` is taken as UTC midnight; naive datetimes are
    assumed to already be UTC.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"{field_name} is not a valid date")
    else:
        raise ValidationError(f"{field_name} is required")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def to_business_date(value: datetime) -> date:
    """Civil date of an instant in the fixed UTC+5 business calendar."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value.astimezone(timezone.utc) + BUSINESS_UTC_OFFSET).date()


def business_days_between(start: datetime, end: datetime) -> int:
    """Whole days between the business dates of two instants."""
    return (to_business_date(end) - to_business_date(start)).days


def days_in_year(year: int) -> int:
    return (date(year, 12, 31) - date(year, 1, 1)).days + 1


def days_remaining_in_year(effective: date) -> int:
    """Inclusive count of days from ``effective`` through December 31st."""
    return (date(effective.year, 12, 31) - effective).days + 1


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end
