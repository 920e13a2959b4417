from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from clinicbook.core import config
from clinicbook.core.errors import InvalidStatusTransition, WindowExpired
from clinicbook.scheduling.time_utils import to_time

PENDING = 'pending'
CONFIRMED = 'confirmed'
COMPLETED = 'completed'
CANCELLED = 'cancelled'

APPOINTMENT_STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED)
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class ModificationWindow:
    can_modify: bool
    deadline: datetime


def scheduled_datetime(scheduled_date: date, scheduled_time: str | time) -> datetime:
    if isinstance(scheduled_time, str):
        scheduled_time = to_time(scheduled_time)
    return datetime.combine(scheduled_date, scheduled_time.replace(second=0, microsecond=0))


def get_modification_window(
    created_at: datetime,
    scheduled_date: date,
    scheduled_time: str | time,
    now: datetime,
) -> ModificationWindow:
    """Reschedule and cancel share one window.

    The deadline is ``created_at + MODIFY_WINDOW_HOURS``. Changes are allowed
    while ``now`` is strictly before the deadline and the appointment itself
    is still strictly in the future.
    """
    deadline = created_at + timedelta(hours=config.MODIFY_WINDOW_HOURS)
    can_modify = now < deadline and scheduled_datetime(scheduled_date, scheduled_time) > now
    return ModificationWindow(can_modify=can_modify, deadline=deadline)


def ensure_can_modify(window: ModificationWindow) -> None:
    if not window.can_modify:
        raise WindowExpired('The modification window has expired.')


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    if target not in ALLOWED_TRANSITIONS:
        raise InvalidStatusTransition(f'Unknown appointment status: {target}.')
    if not can_transition(current, target):
        raise InvalidStatusTransition(f'Cannot change an appointment from {current} to {target}.')
