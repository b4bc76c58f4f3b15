from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Return current time as tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp (as returned by Drive) into a tz-aware UTC datetime.

    Accepts `2025-01-01T12:34:56Z`, fractional seconds and explicit offsets.
    Raises ValueError for empty or malformed input and for naive timestamps.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("RFC3339 value must be a non-empty string")

    s = value.strip()
    # fromisoformat only accepts a trailing 'Z' from 3.11 on.
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        raise ValueError(f"timestamp has no timezone: {value!r}")
    return dt.astimezone(timezone.utc)


def parse_rfc3339_or_none(value: object) -> Optional[datetime]:
    """Lenient variant for payload fields: anything unparseable becomes None."""
    if not isinstance(value, str):
        return None
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None


def to_rfc3339(dt: datetime) -> str:
    """Format a tz-aware datetime as RFC3339 in UTC with a 'Z' suffix."""
    if dt.tzinfo is None:
        raise ValueError("naive datetime is not allowed; timezone-aware required")
    s = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return s.replace("+00:00", "Z")


def same_instant(a: Optional[datetime], b: Optional[datetime]) -> bool:
    """
    True if both timestamps denote the same instant.

    Two missing timestamps compare equal; a missing and a present one do not.
    """
    if a is None or b is None:
        return a is None and b is None
    return a.astimezone(timezone.utc) == b.astimezone(timezone.utc)
