from datetime import date, time
from typing import Iterable

from clinicbook.scheduling.time_utils import parse_hhmm
from clinicbook.scheduling.window import CANCELLED


def is_blocked(slot_date: date, slot_time: str | time | int, blocked_intervals: Iterable) -> bool:
    """A slot is blocked when ``start <= slot < end`` for a blocked interval on its date.

    The interval is half-open: a slot starting exactly at a block's end is
    still offered. All-day blocks cover every slot on their date.
    """
    slot_minutes = slot_time if isinstance(slot_time, int) else parse_hhmm(slot_time)

    for blocked in blocked_intervals:
        if blocked.date != slot_date:
            continue
        if getattr(blocked, 'is_all_day', False):
            return True
        if parse_hhmm(blocked.start_time) <= slot_minutes < parse_hhmm(blocked.end_time):
            return True

    return False

def is_booked(
    slot_date: date,
    slot_time: str | time | int,
    appointments: Iterable,
    exclude_appointment_id: int | None = None,
) -> bool:
    """A slot is taken when a non-cancelled appointment starts at exactly that time.

    Only identical start times collide. Appointments of different lengths are
    not checked for partial overlap.
    """
    slot_minutes = slot_time if isinstance(slot_time, int) else parse_hhmm(slot_time)

    for appointment in appointments:
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if appointment.status == CANCELLED:
            continue
        if appointment.appointment_date == slot_date and parse_hhmm(appointment.time_slot) == slot_minutes:
            return True

    return False
