"""Lenient decoders for values read from the task store.

Rows come from a store this package does not control, so every decoder here
degrades to an empty/None sentinel instead of raising.
"""

import json
from datetime import date, datetime

from dateutil import parser as dateutil_parser


def decode_days(raw: object) -> frozenset[str | int]:
    """Decode a stored recurring-days value into a set of day tokens.

    Weekday tokens ("mon", "Tue ") are normalized to lower-case strings and
    day-of-month entries stay integers. Anything that is not a JSON array (or an
    already-decoded sequence) yields the empty set, meaning "no days configured".

    Examples:
        decode_days('["mon", "wed"]') → frozenset({"mon", "wed"})
        decode_days("[1, 15]") → frozenset({1, 15})
        decode_days("mon,wed") → frozenset()
    """
    if raw is None or raw == "":
        return frozenset()

    value = raw
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, RecursionError):
            return frozenset()

    if not isinstance(value, list | tuple | set | frozenset):
        return frozenset()

    days: set[str | int] = set()
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            days.add(item)
        elif isinstance(item, str) and item.strip():
            days.add(item.strip().lower())
    return frozenset(days)


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when it cannot be read."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return dateutil_parser.isoparse(raw.strip())
    except (ValueError, OverflowError):
        return None


def parse_date(raw: object) -> date | None:
    """Parse a calendar date (or the date part of a timestamp), or None."""
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    parsed = parse_timestamp(raw)
    return parsed.date() if parsed else None


def parse_clock_minutes(raw: object) -> int | None:
    """Convert an "HH:MM" clock string into minutes after midnight, or None."""
    if not isinstance(raw, str):
        return None
    hours, sep, minutes = raw.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes[:2].isdigit():
        return None
    h, m = int(hours), int(minutes[:2])
    if h > 23 or m > 59:  # noqa: PLR2004
        return None
    return h * 60 + m
