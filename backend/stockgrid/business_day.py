# backend/stockgrid/business_day.py
"""
Business-day boundaries at a fixed UTC+8 offset.

Every read scoped to "today" or to an explicit YYYY-MM-DD goes through
resolve_day(); no other module does its own day arithmetic.

Semantics:
- A business day is 00:00:00.000 .. 23:59:59.999 local time at UTC+8.
- Bounds are returned as UTC-naive datetimes (the storage convention, see
  time_utils) and are inclusive on both ends: start <= created_at <= end.
- No daylight-saving, no per-request timezone, no dependence on the
  server's local zone.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .services.errors import ValidationError
from .time_utils import to_utc_z, utcnow


UTC_OFFSET = timedelta(hours=8)
LOCAL_TZ = timezone(UTC_OFFSET, name="Asia/Manila")
END_OF_DAY = time(23, 59, 59, 999000)
DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class DayRange:
    """Inclusive UTC-naive bounds of one or more local business days."""

    start: datetime
    end: datetime
    label: str

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def to_dict(self) -> dict:
        return {
            "date": self.label,
            "start": to_utc_z(self.start, millis=True),
            "end": to_utc_z(self.end, millis=True),
        }


def today_local(now: Optional[datetime] = None) -> str:
    """Current calendar date at UTC+8 as YYYY-MM-DD."""
    moment = now or utcnow()
    return (moment + UTC_OFFSET).strftime(DATE_FORMAT)


def parse_local_date(value: str) -> date:
    """Strict YYYY-MM-DD parse; anything else is a caller error."""
    if not isinstance(value, str):
        raise ValidationError("Date must be a YYYY-MM-DD string", details={"date": value})
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(
            f"Invalid date '{value}', expected YYYY-MM-DD",
            details={"date": value},
        )


def _local_start(day: date) -> datetime:
    return datetime.combine(day, time.min) - UTC_OFFSET


def _local_end(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY) - UTC_OFFSET


def resolve_day(date_str: Optional[str] = None, *, now: Optional[datetime] = None) -> DayRange:
    """
    Resolve a business day into UTC bounds.

    None (or "") means today at UTC+8. A malformed string raises
    ValidationError; it never falls back to today.

    >>> resolve_day("2025-09-10").to_dict()["start"]
    '2025-09-09T16:00:00.000Z'
    """
    label = date_str if date_str else today_local(now)
    day = parse_local_date(label)
    return DayRange(start=_local_start(day), end=_local_end(day), label=day.strftime(DATE_FORMAT))


def resolve_range(
    start_str: Optional[str] = None,
    end_str: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> DayRange:
    """Span from the first local day's start to the last local day's end."""
    today = today_local(now)
    first = parse_local_date(start_str or end_str or today)
    last = parse_local_date(end_str or start_str or today)
    if last < first:
        raise ValidationError(
            "End date is before start date",
            details={"start": start_str, "end": end_str},
        )
    label = first.strftime(DATE_FORMAT)
    if last != first:
        label = f"{label}..{last.strftime(DATE_FORMAT)}"
    return DayRange(start=_local_start(first), end=_local_end(last), label=label)


def resolve_window(
    date_str: Optional[str] = None,
    start_str: Optional[str] = None,
    end_str: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> DayRange:
    """A start/end pair wins over a single date; neither means today."""
    if start_str or end_str:
        return resolve_range(start_str, end_str, now=now)
    return resolve_day(date_str, now=now)


def manila_to_utc(value: Optional[str | datetime]) -> Optional[datetime]:
    """
    Normalise a user-entered local time to UTC-naive storage time.

    Naive inputs are read as UTC+8 wall-clock time; inputs with an explicit
    offset are converted as-is.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(s)
        except ValueError:
            raise ValidationError(f"Invalid datetime '{value}'", details={"value": value})
    if value.tzinfo is None:
        value = value.replace(tzinfo=LOCAL_TZ)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local_iso(dt: Optional[datetime]) -> Optional[str]:
    """Render a UTC-naive datetime as UTC+8 ISO-8601 (with +08:00 offset)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(LOCAL_TZ).replace(microsecond=0).isoformat()
