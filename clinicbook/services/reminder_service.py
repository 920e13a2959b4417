"""Day-before and hour-before appointment reminders.

Meant to be triggered periodically by an external scheduler. Each reminder
is sent at most once per appointment; the flags on the appointment row record
what has already gone out.
"""

import logging
from datetime import datetime, time, timedelta

from sqlalchemy.orm import Session

from clinicbook.models.appointment import Appointment
from clinicbook.scheduling import window
from clinicbook.services import booking_service, notifications

logger = logging.getLogger(__name__)


def _live_appointments(db: Session):
    return db.query(Appointment).filter(Appointment.status.notin_(sorted(window.TERMINAL_STATUSES)))


def due_day_before(db: Session, now: datetime) -> list[Appointment]:
    """Appointments on the date 24 hours from ``now`` still waiting for their day-before reminder."""
    target_date = (now + timedelta(hours=24)).date()
    return _live_appointments(db).filter(
        Appointment.appointment_date == target_date,
        Appointment.reminder_sent_24h.is_(False),
    ).order_by(Appointment.time_slot.asc()).all()


def due_hour_before(db: Session, now: datetime) -> list[Appointment]:
    """Appointments starting during the next clock hour still waiting for their hour-before reminder."""
    next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return _live_appointments(db).filter(
        Appointment.appointment_date == next_hour.date(),
        Appointment.time_slot >= next_hour.time(),
        Appointment.time_slot <= time(next_hour.hour, 59),
        Appointment.reminder_sent_1h.is_(False),
    ).order_by(Appointment.time_slot.asc()).all()


def send_due_reminders(db: Session, now: datetime) -> dict[str, int]:
    sent_24h = 0
    for appointment in due_day_before(db, now):
        notifications.send_appointment_notice(
            notifications.REMINDER_24H_NOTICE,
            booking_service.build_notice(db, appointment),
        )
        appointment.reminder_sent_24h = True
        db.commit()
        sent_24h += 1

    sent_1h = 0
    for appointment in due_hour_before(db, now):
        notifications.send_appointment_notice(
            notifications.REMINDER_1H_NOTICE,
            booking_service.build_notice(db, appointment),
        )
        appointment.reminder_sent_1h = True
        db.commit()
        sent_1h += 1

    logger.info('Sent %s day-before and %s hour-before reminders', sent_24h, sent_1h)
    return {'reminders_24h': sent_24h, 'reminders_1h': sent_1h}
