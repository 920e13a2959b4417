"""Free slot enumeration.

Weekly rules give each date its open windows, each window is expanded into
start times at the rule's slot duration, and blocked intervals and live
bookings are subtracted. Everything here is a pure function of its inputs;
callers load the rows and supply the clock.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

from clinicbook.core import config
from clinicbook.scheduling.filters import is_blocked, is_booked
from clinicbook.scheduling.time_utils import format_minutes, parse_hhmm, to_time
from clinicbook.scheduling.weekly import Interval, resolve_weekly_intervals


@dataclass
class DaySlots:
    date: date
    times: list[str] = field(default_factory=list)


@dataclass
class SlotStatus:
    time: str
    is_available: bool
    is_blocked: bool
    is_booked: bool
    is_past: bool


def iterate_dates(start_date: date, end_date: date) -> Iterator[date]:
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def candidate_starts(interval: Interval, require_full_fit: bool | None = None) -> list[int]:
    """Start times in ``interval`` stepping by its slot duration while ``candidate < end``.

    By default the last slot may run past the window's end. With
    ``require_full_fit`` a slot must also finish by the end.
    """
    if require_full_fit is None:
        require_full_fit = config.SLOT_REQUIRE_FULL_FIT

    duration = interval.slot_duration_minutes
    if duration <= 0:
        raise ValueError('Slot duration must be a positive number of minutes.')

    starts: list[int] = []
    current = interval.start
    while current < interval.end:
        if require_full_fit and current + duration > interval.end:
            break
        starts.append(current)
        current += duration

    return starts


def _day_candidates(rules: Iterable, target_date: date, require_full_fit: bool | None) -> list[int]:
    candidates: set[int] = set()
    for interval in resolve_weekly_intervals(rules, target_date):
        candidates.update(candidate_starts(interval, require_full_fit))
    return sorted(candidates)


def free_times_for_date(
    rules: Iterable,
    blocked_intervals: Iterable,
    appointments: Iterable,
    target_date: date,
    exclude_appointment_id: int | None = None,
    require_full_fit: bool | None = None,
) -> list[str]:
    blocked_intervals = list(blocked_intervals)
    appointments = list(appointments)

    return [
        format_minutes(candidate)
        for candidate in _day_candidates(rules, target_date, require_full_fit)
        if not is_blocked(target_date, candidate, blocked_intervals)
        and not is_booked(target_date, candidate, appointments, exclude_appointment_id)
    ]


def generate_free_slots(
    rules: Iterable,
    blocked_intervals: Iterable,
    appointments: Iterable,
    start_date: date,
    end_date: date,
    exclude_appointment_id: int | None = None,
    require_full_fit: bool | None = None,
) -> list[DaySlots]:
    """Free start times for every date in the inclusive range.

    Dates with no surviving slot, including dates with no rule at all, are
    left out of the result rather than returned with an empty list.
    """
    rules = list(rules)
    blocked_intervals = list(blocked_intervals)
    appointments = list(appointments)

    result: list[DaySlots] = []
    for target_date in iterate_dates(start_date, end_date):
        times = free_times_for_date(
            rules,
            blocked_intervals,
            appointments,
            target_date,
            exclude_appointment_id=exclude_appointment_id,
            require_full_fit=require_full_fit,
        )
        if times:
            result.append(DaySlots(date=target_date, times=times))

    return result


def describe_day_slots(
    rules: Iterable,
    blocked_intervals: Iterable,
    appointments: Iterable,
    target_date: date,
    now: datetime,
    require_full_fit: bool | None = None,
) -> list[SlotStatus]:
    """Every candidate on one date with the reason it is or is not bookable."""
    blocked_intervals = list(blocked_intervals)
    appointments = list(appointments)

    statuses: list[SlotStatus] = []
    for candidate in _day_candidates(rules, target_date, require_full_fit):
        slot_blocked = is_blocked(target_date, candidate, blocked_intervals)
        slot_booked = is_booked(target_date, candidate, appointments)
        slot_past = datetime.combine(target_date, to_time(candidate)) <= now
        statuses.append(
            SlotStatus(
                time=format_minutes(candidate),
                is_available=not (slot_blocked or slot_booked or slot_past),
                is_blocked=slot_blocked,
                is_booked=slot_booked,
                is_past=slot_past,
            )
        )

    return statuses


def is_candidate_start(rules: Iterable, target_date: date, slot_time, require_full_fit: bool | None = None) -> bool:
    return parse_hhmm(slot_time) in _day_candidates(rules, target_date, require_full_fit)


def reschedule_range(today: date) -> tuple[date, date]:
    """Tomorrow through ``RESCHEDULE_RANGE_DAYS`` days out. Never same-day."""
    return today + timedelta(days=1), today + timedelta(days=config.RESCHEDULE_RANGE_DAYS)
