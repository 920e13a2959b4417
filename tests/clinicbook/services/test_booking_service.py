import os
from datetime import date, datetime, time, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinicbook.core.errors import (  # noqa: E402
    BookingRejected,
    InvalidStatusTransition,
    NotFound,
    SlotConflict,
    WindowExpired,
)
from clinicbook.database import Base  # noqa: E402
from clinicbook.models.appointment import Appointment  # noqa: E402
from clinicbook.models.availability import WeeklyAvailabilityRule  # noqa: E402
from clinicbook.models.doctor import Doctor, Patient  # noqa: E402
from clinicbook.models.user import User  # noqa: E402
from clinicbook.services import booking_service  # noqa: E402

MONDAY = date(2026, 1, 5)
NEXT_MONDAY = date(2026, 1, 12)
NOW = datetime(2026, 1, 4, 8, 0)


@pytest.fixture
def booking_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def doctor(booking_db) -> Doctor:
    user = User(email='grey@example.com', hashed_password='', role='doctor')
    booking_db.add(user)
    booking_db.flush()

    doctor = Doctor(user_id=user.id, slug='dr-grey', full_name='Meredith Grey', clinic_name='Seattle Grace')
    booking_db.add(doctor)
    booking_db.flush()

    booking_db.add(
        WeeklyAvailabilityRule(
            doctor_id=doctor.id,
            day_of_week=1,
            start_time=time(9, 0),
            end_time=time(12, 0),
            slot_duration=30,
            is_available=True,
        )
    )
    booking_db.commit()
    booking_db.refresh(doctor)
    return doctor


def _book(db, doctor: Doctor, slot: time = time(10, 0), day: date = MONDAY, now: datetime = NOW, whatsapp: str = '+15550001111'):
    return booking_service.book_appointment(
        db,
        doctor,
        full_name='Jane Doe',
        whatsapp_number=whatsapp,
        appointment_date=day,
        time_slot=slot,
        reason='Annual check-up',
        now=now,
        email='jane@example.com',
    )


def test_book_appointment_creates_pending_appointment_with_token(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    assert appointment.status == 'pending'
    assert appointment.duration == 30
    assert appointment.created_at == NOW
    assert len(appointment.edit_token) == 36
    assert booking_db.query(Patient).count() == 1


def test_book_appointment_reuses_patient_by_whatsapp_number(booking_db, doctor: Doctor) -> None:
    _book(booking_db, doctor, slot=time(9, 0))
    _book(booking_db, doctor, slot=time(9, 30))

    assert booking_db.query(Patient).count() == 1
    assert booking_db.query(Appointment).count() == 2


def test_book_appointment_rejects_taken_slot(booking_db, doctor: Doctor) -> None:
    _book(booking_db, doctor)

    with pytest.raises(SlotConflict) as exception_info:
        _book(booking_db, doctor, whatsapp='+15559998888')

    assert exception_info.value.message == 'This time slot is no longer available.'


def test_book_appointment_allows_slot_of_cancelled_booking(booking_db, doctor: Doctor) -> None:
    first = _book(booking_db, doctor)
    booking_service.cancel_appointment(booking_db, first, now=NOW + timedelta(hours=1))

    second = _book(booking_db, doctor, whatsapp='+15559998888')

    assert second.id != first.id
    assert second.status == 'pending'


def test_book_appointment_rejects_past_and_off_grid_slots(booking_db, doctor: Doctor) -> None:
    with pytest.raises(BookingRejected):
        _book(booking_db, doctor, now=datetime(2026, 1, 5, 11, 0))

    with pytest.raises(SlotConflict):
        _book(booking_db, doctor, slot=time(10, 15))


def test_storage_constraint_rejects_duplicate_live_booking(booking_db, doctor: Doctor) -> None:
    existing = _book(booking_db, doctor)

    duplicate = Appointment(
        doctor_id=doctor.id,
        patient_id=existing.patient_id,
        appointment_date=MONDAY,
        time_slot=time(10, 0),
        status='pending',
    )
    booking_db.add(duplicate)

    with pytest.raises(SlotConflict):
        booking_service._commit_slot_change(booking_db, duplicate)


def test_get_appointment_by_token(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    assert booking_service.get_appointment_by_token(booking_db, appointment.edit_token).id == appointment.id

    with pytest.raises(NotFound):
        booking_service.get_appointment_by_token(booking_db, 'not-a-token')

    with pytest.raises(NotFound):
        booking_service.get_appointment_by_token(booking_db, '   ')


def test_reschedule_options_exclude_own_slot(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)
    other = _book(booking_db, doctor, slot=time(11, 0), whatsapp='+15559998888')

    options = booking_service.reschedule_options(booking_db, appointment, now=NOW + timedelta(hours=1))

    assert [day.date for day in options] == [MONDAY, NEXT_MONDAY]
    assert '10:00' in options[0].times
    assert '11:00' not in options[0].times
    assert other.id != appointment.id


def test_reschedule_options_empty_after_window(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    assert booking_service.reschedule_options(booking_db, appointment, now=NOW + timedelta(hours=9)) == []


def test_reschedule_moves_appointment_and_keeps_status(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)
    booking_service.update_status(booking_db, appointment, 'confirmed', now=NOW)

    moved = booking_service.reschedule_appointment(
        booking_db, appointment, NEXT_MONDAY, time(9, 30), now=NOW + timedelta(hours=2)
    )

    assert moved.appointment_date == NEXT_MONDAY
    assert moved.time_slot == time(9, 30)
    assert moved.status == 'confirmed'


def test_reschedule_rejects_same_day_target(booking_db, doctor: Doctor) -> None:
    booked_at = datetime(2026, 1, 5, 8, 0)
    appointment = _book(booking_db, doctor, slot=time(11, 0), now=booked_at)

    with pytest.raises(BookingRejected):
        booking_service.reschedule_appointment(booking_db, appointment, MONDAY, time(9, 30), now=booked_at)

    assert appointment.time_slot == time(11, 0)


def test_reschedule_rejects_target_beyond_reschedule_range(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    with pytest.raises(BookingRejected):
        booking_service.reschedule_appointment(
            booking_db, appointment, MONDAY + timedelta(days=14), time(9, 0), now=NOW
        )

    assert appointment.appointment_date == MONDAY


def test_reschedule_rejects_taken_slot(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)
    _book(booking_db, doctor, slot=time(11, 0), whatsapp='+15559998888')

    with pytest.raises(SlotConflict):
        booking_service.reschedule_appointment(booking_db, appointment, MONDAY, time(11, 0), now=NOW)


def test_reschedule_after_window_is_rejected(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    with pytest.raises(WindowExpired):
        booking_service.reschedule_appointment(
            booking_db, appointment, NEXT_MONDAY, time(9, 0), now=NOW + timedelta(hours=8, minutes=1)
        )


def test_cancel_sets_status_and_default_reason(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    cancelled = booking_service.cancel_appointment(booking_db, appointment, now=NOW + timedelta(hours=7, minutes=59))

    assert cancelled.status == 'cancelled'
    assert cancelled.cancel_reason == 'Cancelled by patient'
    assert booking_db.query(Appointment).filter(Appointment.id == appointment.id).first() is not None


def test_cancel_after_window_is_rejected(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    with pytest.raises(WindowExpired):
        booking_service.cancel_appointment(booking_db, appointment, now=NOW + timedelta(hours=8, minutes=1))


def test_cancelled_appointment_cannot_be_changed_again(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)
    booking_service.cancel_appointment(booking_db, appointment, now=NOW, reason='Feeling better')

    with pytest.raises(InvalidStatusTransition):
        booking_service.cancel_appointment(booking_db, appointment, now=NOW)

    with pytest.raises(InvalidStatusTransition):
        booking_service.reschedule_appointment(booking_db, appointment, NEXT_MONDAY, time(9, 0), now=NOW)

    assert appointment.cancel_reason == 'Feeling better'


def test_doctor_status_lifecycle(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    booking_service.update_status(booking_db, appointment, 'confirmed', now=NOW)
    booking_service.update_status(booking_db, appointment, 'completed', now=NOW)

    assert appointment.status == 'completed'

    with pytest.raises(InvalidStatusTransition):
        booking_service.update_status(booking_db, appointment, 'cancelled', now=NOW)


def test_list_doctor_appointments_filters(booking_db, doctor: Doctor) -> None:
    first = _book(booking_db, doctor, slot=time(11, 0))
    _book(booking_db, doctor, slot=time(9, 0), day=NEXT_MONDAY, whatsapp='+15559998888')
    booking_service.update_status(booking_db, first, 'confirmed', now=NOW)

    assert [item.appointment_date for item in booking_service.list_doctor_appointments(booking_db, doctor.id)] == [
        MONDAY, NEXT_MONDAY,
    ]
    assert len(booking_service.list_doctor_appointments(booking_db, doctor.id, appointment_date=MONDAY)) == 1
    assert len(booking_service.list_doctor_appointments(booking_db, doctor.id, status='pending')) == 1


def test_build_notice_snapshots_contact_details(booking_db, doctor: Doctor) -> None:
    appointment = _book(booking_db, doctor)

    notice = booking_service.build_notice(booking_db, appointment)

    assert notice.patient_name == 'Jane Doe'
    assert notice.doctor_name == 'Meredith Grey'
    assert notice.time_slot == '10:00'
    assert notice.patient_email == 'jane@example.com'
    assert notice.edit_link.endswith(f'/appointment/manage/{appointment.edit_token}')
