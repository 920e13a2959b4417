"""Time-of-day helpers.

Times travel as zero-padded ``HH:MM`` strings (or ``datetime.time`` values from
the database) and are compared internally as minutes since midnight. There is
no timezone or DST handling: these are local wall-clock times.

Windows that cross midnight are not supported. Configuration rejects any
window whose start is not strictly before its end, so a window never wraps.
"""

import re
from datetime import time

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def is_valid_hhmm(value: str) -> bool:
    return bool(_HHMM_PATTERN.match(value))


def parse_hhmm(value: str | time) -> int:
    """Return minutes since midnight for an ``HH:MM`` string or a ``time``."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    candidate = value.strip()
    # Postgres TIME columns serialise as HH:MM:SS.
    if len(candidate) == 8 and candidate[5] == ':':
        candidate = candidate[:5]

    match = _HHMM_PATTERN.match(candidate)
    if not match:
        raise ValueError(f'Invalid time of day: {value!r}. Expected HH:MM.')

    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def to_time(value: str | int) -> time:
    minutes = parse_hhmm(value) if isinstance(value, str) else value % MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def add_minutes(start: str | time, minutes: int) -> str:
    """Step a time of day forward, wrapping past 23:59 back to 00:00."""
    if minutes <= 0:
        raise ValueError('Step must be a positive number of minutes.')
    return format_minutes(parse_hhmm(start) + minutes)


def compare_times(first: str | time, second: str | time) -> int:
    first_minutes = parse_hhmm(first)
    second_minutes = parse_hhmm(second)
    return (first_minutes > second_minutes) - (first_minutes < second_minutes)


def overlaps(
    first_start: str | time,
    first_end: str | time,
    second_start: str | time,
    second_end: str | time,
) -> bool:
    """True when the half-open intervals [first_start, first_end) and [second_start, second_end) share a minute."""
    return parse_hhmm(first_start) < parse_hhmm(second_end) and parse_hhmm(second_start) < parse_hhmm(first_end)
