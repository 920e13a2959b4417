import os
from datetime import date, time

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinicbook.models.appointment import Appointment  # noqa: E402
from clinicbook.models.availability import BlockedInterval  # noqa: E402
from clinicbook.scheduling.filters import is_blocked, is_booked  # noqa: E402

MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)


def _blocked(day: date, start: time, end: time, is_all_day: bool = False) -> BlockedInterval:
    return BlockedInterval(doctor_id=1, date=day, start_time=start, end_time=end, is_all_day=is_all_day)


def _appointment(appointment_id: int, day: date, slot: time, status: str) -> Appointment:
    return Appointment(
        id=appointment_id,
        doctor_id=1,
        patient_id=1,
        appointment_date=day,
        time_slot=slot,
        status=status,
    )


@pytest.mark.parametrize(
    ('slot', 'expected'),
    [
        ('11:30', False),
        ('12:00', True),
        ('12:30', True),
        ('12:59', True),
        ('13:00', False),
    ],
)
def test_is_blocked_uses_half_open_interval(slot: str, expected: bool) -> None:
    blocked = [_blocked(MONDAY, time(12, 0), time(13, 0))]

    assert is_blocked(MONDAY, slot, blocked) is expected


def test_is_blocked_only_applies_to_its_own_date() -> None:
    blocked = [_blocked(MONDAY, time(12, 0), time(13, 0))]

    assert not is_blocked(TUESDAY, '12:00', blocked)


def test_is_blocked_all_day_block_covers_every_slot() -> None:
    blocked = [_blocked(MONDAY, time(0, 0), time(0, 30), is_all_day=True)]

    assert is_blocked(MONDAY, '16:00', blocked)
    assert not is_blocked(TUESDAY, '16:00', blocked)


def test_is_booked_matches_exact_start_time_only() -> None:
    appointments = [_appointment(1, MONDAY, time(10, 0), 'confirmed')]

    assert is_booked(MONDAY, '10:00', appointments)
    assert not is_booked(MONDAY, '10:30', appointments)
    assert not is_booked(TUESDAY, '10:00', appointments)


def test_is_booked_ignores_cancelled_appointments() -> None:
    appointments = [_appointment(1, MONDAY, time(10, 0), 'cancelled')]

    assert not is_booked(MONDAY, '10:00', appointments)


def test_is_booked_does_not_check_duration_overlap() -> None:
    appointments = [_appointment(1, MONDAY, time(10, 0), 'pending')]
    appointments[0].duration = 60

    assert not is_booked(MONDAY, '10:30', appointments)


def test_is_booked_can_exclude_one_appointment() -> None:
    appointments = [_appointment(7, MONDAY, time(10, 0), 'pending')]

    assert not is_booked(MONDAY, '10:00', appointments, exclude_appointment_id=7)
    assert is_booked(MONDAY, '10:00', appointments, exclude_appointment_id=8)
