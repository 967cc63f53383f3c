# -*- coding: utf-8 -*-
"""ISO-8601 timestamp helpers used as merge tie-breakers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

# Rank for missing or unparseable timestamps: older than any real instant.
OLDEST = datetime.min.replace(tzinfo=timezone.utc)

_ONE_MS = timedelta(milliseconds=1)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Accepts `Z` or numeric offsets, fractional seconds and date-only values.
    Naive values are read as UTC. Anything else ranks as OLDEST instead of
    raising, so one bad record can't abort a whole merge.
    """
    if not isinstance(value, str) or not value.strip():
        return OLDEST
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return OLDEST
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Millisecond precision with a `Z` suffix, the shape browsers emit."""
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def _truncate_ms(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def next_stamp(existing: Iterable[Optional[str]], now: Optional[datetime] = None) -> str:
    """Return a stamp for a local write, strictly newer than every stamp in `existing`.

    Normally that is just "now". A clock that went backwards, or an entry
    dated in the future, bumps the stamp to one millisecond past the newest.
    """
    candidate = _truncate_ms((now or datetime.now(timezone.utc)).astimezone(timezone.utc))
    newest = max((parse_timestamp(ts) for ts in existing), default=OLDEST)
    if candidate <= newest:
        try:
            candidate = _truncate_ms(newest) + _ONE_MS
        except OverflowError:
            candidate = _truncate_ms(newest)
    return format_timestamp(candidate)
