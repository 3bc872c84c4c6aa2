from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

# Shared type for incoming instants which can be a datetime, a date, epoch ms or an ISO8601 string
InstantInput = Union[datetime, date, int, float, str]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Instants a datetime can represent: 0001-01-01 .. 9999-12-31T23:59:59.999 UTC
MIN_INSTANT_MS = -62135596800000
MAX_INSTANT_MS = 253402300799999

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def in_instant_range(ms: int) -> bool:
    return MIN_INSTANT_MS <= ms <= MAX_INSTANT_MS


def check_instant(ms: int) -> int:
    """Return ``ms`` unchanged, or raise ValueError when no datetime can represent it."""
    if not in_instant_range(ms):
        raise ValueError("Instant is outside the supported date range (years 1 to 9999).")
    return ms


def to_epoch_ms(value: datetime) -> int:
    """Naive datetimes are read as local time, like a browser datetime-local input."""
    return int(round(value.timestamp() * 1000))


def from_epoch_ms(ms: int) -> datetime:
    """UTC datetime for ``ms``; values past either end of the datetime range are pinned to it."""
    return _EPOCH + timedelta(milliseconds=min(max(ms, MIN_INSTANT_MS), MAX_INSTANT_MS))


def _datetime_ms(value: datetime) -> int:
    try:
        ms = to_epoch_ms(value)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError("Instant is outside the supported date range (years 1 to 9999).") from e
    return check_instant(ms)


# PUBLIC_INTERFACE
def parse_instant(value: Optional[InstantInput]) -> Optional[int]:
    """
    Normalize an instant into epoch milliseconds.
    - None stays None.
    - Numbers are taken as epoch milliseconds (bools are rejected).
    - A date (not datetime) is promoted to midnight.
    - Strings are parsed as ISO8601 date or datetime; a trailing 'Z' is accepted.

    Raises:
        ValueError if the value cannot be interpreted or falls outside
        MIN_INSTANT_MS..MAX_INSTANT_MS.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise ValueError("Invalid type for instant; expected datetime, date, epoch ms or ISO8601 string.")

    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError("Instant must be a finite number of milliseconds.")
        return check_instant(int(value))

    if isinstance(value, datetime):
        return _datetime_ms(value)

    if isinstance(value, date):
        return _datetime_ms(datetime(value.year, value.month, value.day, 0, 0, 0))

    if isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid date/time format. Use ISO8601 date or datetime string "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e
            parsed = datetime(d.year, d.month, d.day, 0, 0, 0)
        return _datetime_ms(parsed)

    raise ValueError("Invalid type for instant; expected datetime, date, epoch ms or ISO8601 string.")


# PUBLIC_INTERFACE
def parse_deadline(value: Optional[Union[date, str]]) -> Optional[str]:
    """
    Normalize a goal deadline into a 'YYYY-MM-DD' string, or None when blank.

    Raises:
        ValueError if the value is not an ISO8601 date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10]).isoformat()
    except ValueError as e:
        raise ValueError("Invalid deadline format. Use an ISO8601 date (e.g., '2025-01-31').") from e


# PUBLIC_INTERFACE
def parse_target(value: Optional[Union[int, float, str]]) -> Optional[int]:
    """
    Parse a goal target the way a form's number field is read.

    Text contributes its leading integer ("10.5" -> 10, "12 books" -> 12) and
    fractional numbers are truncated. Blank, non-numeric and negative input all
    yield None; the goal then counts without an upper bound.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        value = int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match is None:
            return None
        value = int(match.group(1))
    if not isinstance(value, int) or value < 0:
        return None
    return value
