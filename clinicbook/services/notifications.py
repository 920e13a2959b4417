"""Outbound appointment notifications.

Messages are built from a plain ``AppointmentNotice`` snapshot so they can be
sent after the request's database session is closed. Delivery goes through
whatever senders are registered per channel; the default senders only log.
A failing sender is logged and never affects the booking that triggered it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable

from clinicbook.core import config
from clinicbook.scheduling.time_utils import parse_hhmm

logger = logging.getLogger(__name__)

EMAIL_CHANNEL = 'email'
WHATSAPP_CHANNEL = 'whatsapp'

CONFIRMED_NOTICE = 'confirmed'
RESCHEDULED_NOTICE = 'rescheduled'
CANCELLED_NOTICE = 'cancelled'
REMINDER_24H_NOTICE = 'reminder_24h'
REMINDER_1H_NOTICE = 'reminder_1h'

Sender = Callable[[str, str, str], None]


@dataclass(frozen=True)
class AppointmentNotice:
    patient_name: str
    doctor_name: str
    appointment_date: date
    time_slot: str
    patient_email: str | None = None
    patient_whatsapp: str | None = None
    clinic_name: str | None = None
    edit_link: str | None = None
    cancel_reason: str | None = None


def _log_sender(channel: str) -> Sender:
    def send(recipient: str, subject: str, body: str) -> None:
        logger.info('[%s] to %s: %s | %s', channel, recipient, subject, body)
    return send


_senders: dict[str, Sender] = {
    EMAIL_CHANNEL: _log_sender(EMAIL_CHANNEL),
    WHATSAPP_CHANNEL: _log_sender(WHATSAPP_CHANNEL),
}


def register_sender(channel: str, sender: Sender) -> None:
    _senders[channel] = sender


def edit_link_for(edit_token: str) -> str:
    return f"{config.APP_URL.rstrip('/')}/appointment/manage/{edit_token}"


def display_time(time_slot: str) -> str:
    minutes = parse_hhmm(time_slot)
    hour = minutes // 60
    suffix = 'PM' if hour >= 12 else 'AM'
    return f'{hour % 12 or 12}:{minutes % 60:02d} {suffix}'


def display_date(value: date) -> str:
    return value.strftime('%A, %B %d, %Y')


def build_message(kind: str, notice: AppointmentNotice) -> tuple[str, str]:
    when = f'{display_date(notice.appointment_date)} at {display_time(notice.time_slot)}'
    doctor = f'Dr. {notice.doctor_name}'
    if notice.clinic_name:
        doctor = f'{doctor} ({notice.clinic_name})'

    if kind == CONFIRMED_NOTICE:
        subject = 'Appointment Booked'
        body = f'Dear {notice.patient_name}, your appointment with {doctor} is booked for {when}.'
    elif kind == RESCHEDULED_NOTICE:
        subject = 'Appointment Rescheduled'
        body = f'Dear {notice.patient_name}, your appointment with {doctor} has been moved to {when}.'
    elif kind == CANCELLED_NOTICE:
        subject = 'Appointment Cancelled'
        body = f'Dear {notice.patient_name}, your appointment with {doctor} on {when} has been cancelled.'
        if notice.cancel_reason:
            body = f'{body} Reason: {notice.cancel_reason}.'
    elif kind == REMINDER_24H_NOTICE:
        subject = 'Appointment Reminder'
        body = f'Dear {notice.patient_name}, this is a reminder of your appointment with {doctor} tomorrow, {when}.'
    elif kind == REMINDER_1H_NOTICE:
        subject = 'Appointment Reminder'
        body = f'Dear {notice.patient_name}, your appointment with {doctor} starts in about an hour, {when}.'
    else:
        raise ValueError(f'Unknown notification kind: {kind}')

    if notice.edit_link and kind != CANCELLED_NOTICE:
        body = f'{body} Manage your appointment: {notice.edit_link}'

    return subject, body


def send_appointment_notice(kind: str, notice: AppointmentNotice) -> dict[str, bool]:
    """Send ``notice`` on every channel the patient can be reached on.

    Returns which channels were delivered.
    """
    result = {EMAIL_CHANNEL: False, WHATSAPP_CHANNEL: False}
    if not config.NOTIFICATIONS_ENABLED:
        logger.debug('Notifications disabled, skipping %s notice', kind)
        return result

    subject, body = build_message(kind, notice)
    recipients = {
        EMAIL_CHANNEL: notice.patient_email,
        WHATSAPP_CHANNEL: notice.patient_whatsapp,
    }

    for channel, recipient in recipients.items():
        if not recipient:
            continue
        sender = _senders.get(channel)
        if sender is None:
            continue
        try:
            sender(recipient, subject, body)
            result[channel] = True
        except Exception:
            logger.exception('Failed to send %s %s notice to %s', kind, channel, recipient)

    return result
