from datetime import date

import pytest

from clinicbook.services import notifications
from clinicbook.services.notifications import AppointmentNotice

NOTICE = AppointmentNotice(
    patient_name='Jane Doe',
    doctor_name='Meredith Grey',
    appointment_date=date(2026, 1, 5),
    time_slot='14:30',
    patient_email='jane@example.com',
    patient_whatsapp='+15550001111',
    clinic_name='Seattle Grace',
    edit_link='http://localhost:3000/appointment/manage/abc',
)


def test_display_time_uses_twelve_hour_clock() -> None:
    assert notifications.display_time('00:15') == '12:15 AM'
    assert notifications.display_time('12:00') == '12:00 PM'
    assert notifications.display_time('14:30') == '2:30 PM'


def test_build_message_for_each_kind() -> None:
    subject, body = notifications.build_message(notifications.CONFIRMED_NOTICE, NOTICE)
    assert subject == 'Appointment Booked'
    assert 'Monday, January 05, 2026 at 2:30 PM' in body
    assert body.endswith('Manage your appointment: http://localhost:3000/appointment/manage/abc')

    subject, body = notifications.build_message(notifications.RESCHEDULED_NOTICE, NOTICE)
    assert subject == 'Appointment Rescheduled'

    subject, body = notifications.build_message(notifications.CANCELLED_NOTICE, NOTICE)
    assert subject == 'Appointment Cancelled'
    assert 'Manage your appointment' not in body


def test_build_message_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        notifications.build_message('reminder', NOTICE)


def test_send_appointment_notice_uses_registered_senders(monkeypatch: pytest.MonkeyPatch) -> None:
    sent = []
    monkeypatch.setitem(notifications._senders, notifications.EMAIL_CHANNEL, lambda *args: sent.append(('email', args)))
    monkeypatch.setitem(
        notifications._senders, notifications.WHATSAPP_CHANNEL, lambda *args: sent.append(('whatsapp', args))
    )

    result = notifications.send_appointment_notice(notifications.CONFIRMED_NOTICE, NOTICE)

    assert result == {'email': True, 'whatsapp': True}
    assert [channel for channel, _ in sent] == ['email', 'whatsapp']
    assert sent[0][1][0] == 'jane@example.com'


def test_registered_failing_sender_is_logged_not_raised(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(notifications, '_senders', dict(notifications._senders))

    def broken_sender(recipient: str, subject: str, body: str) -> None:
        raise ConnectionError('smtp down')

    notifications.register_sender(notifications.EMAIL_CHANNEL, broken_sender)

    result = notifications.send_appointment_notice(notifications.CANCELLED_NOTICE, NOTICE)

    assert result['email'] is False
    assert result['whatsapp'] is True
    assert 'Failed to send cancelled email notice to jane@example.com' in caplog.text


def test_disabled_notifications_send_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('clinicbook.core.config.NOTIFICATIONS_ENABLED', False)

    assert notifications.send_appointment_notice(notifications.CONFIRMED_NOTICE, NOTICE) == {
        'email': False,
        'whatsapp': False,
    }


def test_build_message_for_reminders() -> None:
    subject, body = notifications.build_message(notifications.REMINDER_24H_NOTICE, NOTICE)
    assert subject == 'Appointment Reminder'
    assert 'tomorrow, Monday, January 05, 2026 at 2:30 PM' in body
    assert 'Manage your appointment' in body

    subject, body = notifications.build_message(notifications.REMINDER_1H_NOTICE, NOTICE)
    assert subject == 'Appointment Reminder'
    assert 'in about an hour' in body
