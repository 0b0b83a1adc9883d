from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime], *, millis: bool = False) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.

    With millis=True the fraction is kept to milliseconds
    (2025-09-10T15:59:59.999Z), which day bounds need.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc)
    if millis:
        return dt_utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"
    return dt_utc.replace(microsecond=0).isoformat().replace("+00:00", "Z")
