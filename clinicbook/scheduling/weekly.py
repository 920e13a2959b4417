from dataclasses import dataclass
from datetime import date
from typing import Iterable

from clinicbook.core import config
from clinicbook.scheduling.time_utils import format_minutes, parse_hhmm


@dataclass(frozen=True)
class Interval:
    """An open window for one day, in minutes since midnight."""

    start: int
    end: int
    slot_duration_minutes: int

    @property
    def start_hhmm(self) -> str:
        return format_minutes(self.start)

    @property
    def end_hhmm(self) -> str:
        return format_minutes(self.end)


def day_of_week(target_date: date) -> int:
    """Sunday=0 .. Saturday=6."""
    return target_date.isoweekday() % 7


def resolve_weekly_intervals(rules: Iterable, target_date: date) -> list[Interval]:
    """Active windows for ``target_date``'s weekday, ordered by start time.

    ``rules`` are ``WeeklyAvailabilityRule`` rows or anything with the same
    attributes. Several rules on one weekday are independent windows. An empty
    result means the doctor is closed that day.
    """
    weekday = day_of_week(target_date)
    intervals = [
        Interval(
            start=parse_hhmm(rule.start_time),
            end=parse_hhmm(rule.end_time),
            slot_duration_minutes=rule.slot_duration or config.DEFAULT_SLOT_DURATION_MINUTES,
        )
        for rule in rules
        if rule.day_of_week == weekday and rule.is_available is not False
    ]
    intervals.sort(key=lambda interval: (interval.start, interval.end))
    return intervals
