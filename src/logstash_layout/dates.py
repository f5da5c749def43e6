"""ISO-8601 timestamp rendering for event documents.

Two conventions exist across the schema versions:

- UTC with a literal ``Z`` suffix: ``2013-04-01T19:36:31.207Z``
- local time with a numeric offset: ``2013-04-01T21:36:31.207+02:00``

Both are pure functions over immutable ``datetime`` values, so they are safe
to call from any number of threads.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# The Gregorian calendar repeats every 400 years (146097 days)
_CYCLE_YEARS = 400
_CYCLE_MS = 146_097 * 86_400_000
_ANCHOR_MS = 946_684_800_000  # 2000-01-01T00:00:00Z


class DateStyle(str, Enum):
    """Timestamp offset convention used by a schema."""

    UTC = "utc"
    LOCAL_OFFSET = "local"


def _from_millis(timestamp_ms: int) -> datetime:
    # timedelta arithmetic keeps millisecond precision for negative values too
    return _EPOCH + timedelta(milliseconds=timestamp_ms)


def _shifted(timestamp_ms: int) -> tuple[datetime, int]:
    """Move an instant into the 2000-2399 cycle.

    Returns:
        The shifted moment and the number of years to add back.
    """
    cycles = (timestamp_ms - _ANCHOR_MS) // _CYCLE_MS
    return _from_millis(timestamp_ms - cycles * _CYCLE_MS), cycles * _CYCLE_YEARS


def _format_year(year: int) -> str:
    if 0 <= year <= 9999:
        return f"{year:04d}"
    if year > 9999:
        return f"+{year}"
    return f"-{-year:04d}"


def _with_year_shift(rendered: str, year: int, shift: int) -> str:
    if not shift:
        return rendered
    # shifted moments always render a four-digit year
    return _format_year(year + shift) + rendered[4:]


def format_utc(timestamp_ms: int) -> str:
    """Format epoch milliseconds as UTC with a ``Z`` suffix.

    Instants outside ``datetime``'s range are written with an expanded
    year, e.g. ``+33658-09-27T01:46:40.000Z``.

    Args:
        timestamp_ms: Milliseconds since the Unix epoch.

    Returns:
        Timestamp like ``2013-04-01T19:36:31.207Z``.
    """
    try:
        moment, shift = _from_millis(timestamp_ms), 0
    except (OverflowError, ValueError):
        moment, shift = _shifted(timestamp_ms)
    moment = moment.replace(tzinfo=None)
    rendered = moment.isoformat(timespec="milliseconds") + "Z"
    return _with_year_shift(rendered, moment.year, shift)


def format_local(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    """Format epoch milliseconds in local time with a ``+HH:MM`` offset.

    Args:
        timestamp_ms: Milliseconds since the Unix epoch.
        tz: Zone to render in. Defaults to the system local zone.

    Returns:
        Timestamp like ``2013-04-01T21:36:31.207+02:00``.
    """
    try:
        moment, shift = _from_millis(timestamp_ms), 0
        local = moment.astimezone(tz)
    except (OverflowError, ValueError):
        moment, shift = _shifted(timestamp_ms)
        local = moment.astimezone(tz)
    rendered = local.isoformat(timespec="milliseconds")
    return _with_year_shift(rendered, local.year, shift)


def format_timestamp(timestamp_ms: int, style: DateStyle = DateStyle.UTC) -> str:
    """Format epoch milliseconds using the given convention."""
    if style is DateStyle.LOCAL_OFFSET:
        return format_local(timestamp_ms)
    return format_utc(timestamp_ms)
