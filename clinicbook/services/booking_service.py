"""Booking, self-service reschedule/cancel and doctor status changes."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinicbook.core import config
from clinicbook.core.errors import BookingRejected, InvalidStatusTransition, NotFound, SlotConflict
from clinicbook.models.appointment import Appointment
from clinicbook.models.doctor import Doctor, Patient
from clinicbook.scheduling import slots, weekly, window
from clinicbook.scheduling.time_utils import format_minutes, parse_hhmm
from clinicbook.services import availability_service, form_service
from clinicbook.services.notifications import AppointmentNotice, edit_link_for

logger = logging.getLogger(__name__)

PATIENT_CANCEL_REASON = 'Cancelled by patient'


def _flush_slot_change(db: Session) -> None:
    # The partial unique index is the final word when two requests race for one slot.
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise SlotConflict('This time slot is no longer available.') from exc


def _commit_slot_change(db: Session, appointment: Appointment) -> Appointment:
    _flush_slot_change(db)
    db.commit()
    db.refresh(appointment)
    return appointment


def find_or_create_patient(
    db: Session,
    doctor: Doctor,
    full_name: str,
    whatsapp_number: str,
    email: str | None = None,
    phone: str | None = None,
) -> Patient:
    patient = db.query(Patient).filter(
        Patient.doctor_id == doctor.id,
        Patient.whatsapp_number == whatsapp_number,
    ).first()
    if patient is not None:
        return patient

    patient = Patient(
        doctor_id=doctor.id,
        full_name=full_name,
        email=email,
        phone=phone,
        whatsapp_number=whatsapp_number,
    )
    db.add(patient)
    db.flush()
    return patient


def book_appointment(
    db: Session,
    doctor: Doctor,
    full_name: str,
    whatsapp_number: str,
    appointment_date: date,
    time_slot: time,
    reason: str,
    now: datetime,
    email: str | None = None,
    phone: str | None = None,
    form_data: dict[str, Any] | None = None,
) -> Appointment:
    slot_start = window.scheduled_datetime(appointment_date, time_slot)
    if slot_start <= now:
        raise BookingRejected('Appointments must be scheduled in the future.')
    if appointment_date > now.date() + timedelta(days=config.BOOKING_RANGE_DAYS):
        raise BookingRejected(f'Appointments can only be booked within the next {config.BOOKING_RANGE_DAYS} days.')

    if not availability_service.is_slot_free(db, doctor.id, appointment_date, time_slot):
        raise SlotConflict('This time slot is no longer available.')

    rules = availability_service.load_rules(db, doctor.id)
    intervals = [
        interval
        for interval in weekly.resolve_weekly_intervals(rules, appointment_date)
        if interval.start <= parse_hhmm(time_slot) < interval.end
    ]
    duration = intervals[0].slot_duration_minutes if intervals else config.DEFAULT_SLOT_DURATION_MINUTES

    patient = find_or_create_patient(db, doctor, full_name, whatsapp_number, email=email, phone=phone)
    appointment = Appointment(
        doctor_id=doctor.id,
        patient_id=patient.id,
        appointment_date=appointment_date,
        time_slot=time_slot,
        duration=duration,
        status=window.PENDING,
        reason=reason,
        created_at=now,
        updated_at=now,
    )
    db.add(appointment)
    _flush_slot_change(db)
    if form_data:
        form_service.attach_submission(db, doctor.id, appointment.id, patient.id, form_data)
    _commit_slot_change(db, appointment)

    logger.info(
        'Booked appointment %s for doctor %s on %s at %s',
        appointment.id, doctor.id, appointment_date, format_minutes(parse_hhmm(time_slot)),
    )
    return appointment


def get_appointment(db: Session, appointment_id: int, doctor_id: int | None = None) -> Appointment:
    query = db.query(Appointment).filter(Appointment.id == appointment_id)
    if doctor_id is not None:
        query = query.filter(Appointment.doctor_id == doctor_id)
    appointment = query.first()
    if appointment is None:
        raise NotFound('Appointment not found.')
    return appointment


def get_appointment_by_token(db: Session, token: str) -> Appointment:
    normalized = (token or '').strip()
    appointment = db.query(Appointment).filter(Appointment.edit_token == normalized).first() if normalized else None
    if appointment is None:
        raise NotFound('Appointment not found.')
    return appointment


def _ensure_patient_can_change(appointment: Appointment, now: datetime) -> None:
    if appointment.status in window.TERMINAL_STATUSES:
        raise InvalidStatusTransition(f'This appointment is already {appointment.status}.')
    window.ensure_can_modify(availability_service.get_modification_window(appointment, now))


def reschedule_options(db: Session, appointment: Appointment, now: datetime) -> list[slots.DaySlots]:
    """Free slots a patient may move to. Empty once the window has closed."""
    if appointment.status in window.TERMINAL_STATUSES:
        return []
    if not availability_service.get_modification_window(appointment, now).can_modify:
        return []

    start_date, end_date = slots.reschedule_range(now.date())
    return availability_service.generate_free_slots(
        db,
        appointment.doctor_id,
        start_date,
        end_date,
        exclude_appointment_id=appointment.id,
    )


def reschedule_appointment(
    db: Session,
    appointment: Appointment,
    new_date: date,
    new_time: time,
    now: datetime,
) -> Appointment:
    """Move an appointment in place. Its status is left untouched.

    The new date must fall inside the same tomorrow-onward range the patient
    is offered, so same-day moves are refused.
    """
    _ensure_patient_can_change(appointment, now)

    first_day, last_day = slots.reschedule_range(now.date())
    if not first_day <= new_date <= last_day:
        raise BookingRejected(
            f'Appointments can only be moved to a date between {first_day.isoformat()} and {last_day.isoformat()}.'
        )

    if not availability_service.is_slot_free(
        db,
        appointment.doctor_id,
        new_date,
        new_time,
        exclude_appointment_id=appointment.id,
    ):
        raise SlotConflict('This slot is no longer available.')

    previous = (appointment.appointment_date, appointment.time_slot)
    appointment.appointment_date = new_date
    appointment.time_slot = new_time
    appointment.updated_at = now
    _commit_slot_change(db, appointment)

    logger.info(
        'Rescheduled appointment %s from %s %s to %s %s',
        appointment.id, previous[0], previous[1], new_date, new_time,
    )
    return appointment


def cancel_appointment(
    db: Session,
    appointment: Appointment,
    now: datetime,
    reason: str | None = None,
) -> Appointment:
    """Patient self-service cancellation, gated by the modification window."""
    _ensure_patient_can_change(appointment, now)

    appointment.status = window.CANCELLED
    appointment.cancel_reason = (reason or '').strip() or PATIENT_CANCEL_REASON
    appointment.updated_at = now
    db.commit()
    db.refresh(appointment)

    logger.info('Patient cancelled appointment %s', appointment.id)
    return appointment


def update_status(
    db: Session,
    appointment: Appointment,
    target_status: str,
    now: datetime,
    cancel_reason: str | None = None,
) -> Appointment:
    """Doctor-driven status change along the appointment lifecycle."""
    window.ensure_transition(appointment.status, target_status)

    appointment.status = target_status
    if target_status == window.CANCELLED:
        appointment.cancel_reason = (cancel_reason or '').strip() or None
    appointment.updated_at = now
    db.commit()
    db.refresh(appointment)

    logger.info('Appointment %s moved to %s', appointment.id, target_status)
    return appointment


def list_doctor_appointments(
    db: Session,
    doctor_id: int,
    appointment_date: date | None = None,
    status: str | None = None,
) -> list[Appointment]:
    query = db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
    if appointment_date is not None:
        query = query.filter(Appointment.appointment_date == appointment_date)
    if status is not None:
        query = query.filter(Appointment.status == status)
    return query.order_by(Appointment.appointment_date.asc(), Appointment.time_slot.asc()).all()


def build_notice(db: Session, appointment: Appointment) -> AppointmentNotice:
    doctor = db.query(Doctor).filter(Doctor.id == appointment.doctor_id).first()
    patient = db.query(Patient).filter(Patient.id == appointment.patient_id).first()

    return AppointmentNotice(
        patient_name=patient.full_name if patient else 'Patient',
        doctor_name=doctor.full_name if doctor else 'Doctor',
        appointment_date=appointment.appointment_date,
        time_slot=format_minutes(parse_hhmm(appointment.time_slot)),
        patient_email=patient.email if patient else None,
        patient_whatsapp=patient.whatsapp_number if patient else None,
        clinic_name=doctor.clinic_name if doctor else None,
        edit_link=edit_link_for(appointment.edit_token) if appointment.edit_token else None,
        cancel_reason=appointment.cancel_reason,
    )
