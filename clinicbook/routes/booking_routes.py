from datetime import date, datetime, time, timedelta
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_db
from clinicbook.core import config
from clinicbook.core.errors import SchedulingError
from clinicbook.core.rate_limit import limiter
from clinicbook.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from clinicbook.scheduling import window
from clinicbook.services import availability_service, booking_service, notifications

router = APIRouter(tags=['booking'])

MIN_REASON_LENGTH = 5
MAX_REASON_LENGTH = 500
MIN_WHATSAPP_LENGTH = 10


class DoctorProfileResponse(BaseModel):
    slug: str
    full_name: str
    specialty: str | None = None
    clinic_name: str | None = None
    address: str | None = None
    phone: str | None = None
    welcome_message: str | None = None

    class Config:
        from_attributes = True


class SlotStatusResponse(BaseModel):
    time: str
    is_available: bool
    is_blocked: bool
    is_booked: bool
    is_past: bool


class DaySlotStatusResponse(BaseModel):
    date: date
    slots: list[SlotStatusResponse]
    is_available: bool


class FreeSlotsResponse(BaseModel):
    date: date
    times: list[str]


class BookingRequest(BaseModel):
    doctor_slug: str
    full_name: str
    whatsapp_number: str
    appointment_date: date
    time_slot: time
    reason: str
    email: str | None = None
    phone: str | None = None
    form_data: dict[str, Any] | None = None

    @field_validator('doctor_slug')
    @classmethod
    def validate_doctor_slug(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Doctor slug is required.')
        return normalized

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < 2:
            raise ValueError('Full name must be at least 2 characters.')
        return normalized

    @field_validator('whatsapp_number')
    @classmethod
    def validate_whatsapp_number(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < MIN_WHATSAPP_LENGTH:
            raise ValueError('WhatsApp number is required for notifications.')
        return normalized

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < MIN_REASON_LENGTH:
            raise ValueError('Please describe your reason for visit.')
        if len(normalized) > MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if not normalized:
            return None
        if '@' not in normalized:
            raise ValueError('Invalid email address.')
        return normalized


class BookingResponse(BaseModel):
    appointment_id: int
    edit_link: str
    status: str
    message: str


class RescheduleRequest(BaseModel):
    token: str
    new_date: date
    new_time: time


class ManagedAppointmentResponse(BaseModel):
    id: int
    doctor_name: str
    doctor_slug: str
    clinic_name: str | None = None
    patient_name: str
    date: date
    time: str
    status: str
    reason: str | None = None
    cancel_reason: str | None = None
    can_modify: bool
    modify_deadline: datetime
    available_slots: list[FreeSlotsResponse]


class AppointmentChangeResponse(BaseModel):
    id: int
    date: date
    time: str
    status: str
    cancel_reason: str | None = None
    message: str


def _change_response(appointment, message: str) -> AppointmentChangeResponse:
    return AppointmentChangeResponse(
        id=appointment.id,
        date=appointment.appointment_date,
        time=appointment.time_slot.strftime('%H:%M'),
        status=appointment.status,
        cancel_reason=appointment.cancel_reason,
        message=message,
    )


@router.get('/manage', response_model=ManagedAppointmentResponse)
def get_managed_appointment(token: str = Query(...), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        now = datetime.now()
        appointment = booking_service.get_appointment_by_token(db, token)
        doctor = availability_service.get_doctor(db, appointment.doctor_id)
        notice = booking_service.build_notice(db, appointment)
        modification_window = availability_service.get_modification_window(appointment, now)
        can_modify = modification_window.can_modify and appointment.status not in window.TERMINAL_STATUSES
        options = booking_service.reschedule_options(db, appointment, now) if can_modify else []

        return ManagedAppointmentResponse(
            id=appointment.id,
            doctor_name=doctor.full_name,
            doctor_slug=doctor.slug,
            clinic_name=doctor.clinic_name,
            patient_name=notice.patient_name,
            date=appointment.appointment_date,
            time=notice.time_slot,
            status=appointment.status,
            reason=appointment.reason,
            cancel_reason=appointment.cancel_reason,
            can_modify=can_modify,
            modify_deadline=modification_window.deadline,
            available_slots=[FreeSlotsResponse(date=day.date, times=day.times) for day in options],
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.patch('/manage', response_model=AppointmentChangeResponse)
def reschedule_managed_appointment(
    data: RescheduleRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking_service.get_appointment_by_token(db, data.token)
        appointment = booking_service.reschedule_appointment(
            db,
            appointment,
            new_date=data.new_date,
            new_time=data.new_time.replace(second=0, microsecond=0),
            now=datetime.now(),
        )
        background_tasks.add_task(
            notifications.send_appointment_notice,
            notifications.RESCHEDULED_NOTICE,
            booking_service.build_notice(db, appointment),
        )
        return _change_response(appointment, 'Appointment rescheduled successfully.')
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/manage', response_model=AppointmentChangeResponse)
def cancel_managed_appointment(
    background_tasks: BackgroundTasks,
    token: str = Query(...),
    reason: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking_service.get_appointment_by_token(db, token)
        appointment = booking_service.cancel_appointment(db, appointment, now=datetime.now(), reason=reason)
        background_tasks.add_task(
            notifications.send_appointment_notice,
            notifications.CANCELLED_NOTICE,
            booking_service.build_notice(db, appointment),
        )
        return _change_response(appointment, 'Appointment cancelled successfully.')
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/submit', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.BOOKING_RATE_LIMIT)
def submit_booking(
    request: Request,
    data: BookingRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        doctor = availability_service.get_active_doctor_by_slug(db, data.doctor_slug)
        appointment = booking_service.book_appointment(
            db,
            doctor,
            full_name=data.full_name,
            whatsapp_number=data.whatsapp_number,
            appointment_date=data.appointment_date,
            time_slot=data.time_slot.replace(second=0, microsecond=0),
            reason=data.reason,
            now=datetime.now(),
            email=data.email,
            phone=data.phone,
            form_data=data.form_data,
        )
        notice = booking_service.build_notice(db, appointment)
        background_tasks.add_task(notifications.send_appointment_notice, notifications.CONFIRMED_NOTICE, notice)

        return BookingResponse(
            appointment_id=appointment.id,
            edit_link=notice.edit_link or '',
            status=appointment.status,
            message='Appointment booked successfully! You will receive a confirmation shortly.',
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/{doctor_slug}', response_model=DoctorProfileResponse)
def get_booking_page(doctor_slug: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return availability_service.get_active_doctor_by_slug(db, doctor_slug)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{doctor_slug}/slots', response_model=DaySlotStatusResponse)
def list_day_slots(
    doctor_slug: str,
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        doctor = availability_service.get_active_doctor_by_slug(db, doctor_slug)
        statuses = availability_service.describe_day(db, doctor.id, slot_date, datetime.now())

        return DaySlotStatusResponse(
            date=slot_date,
            slots=[SlotStatusResponse(**vars(slot_status)) for slot_status in statuses],
            is_available=any(slot_status.is_available for slot_status in statuses),
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{doctor_slug}/free-slots', response_model=list[FreeSlotsResponse])
def list_free_slots(
    doctor_slug: str,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    today = date.today()
    start_date = start_date or today
    end_date = end_date or today + timedelta(days=config.RESCHEDULE_RANGE_DAYS)

    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='End date must not be before start date.',
        )

    if (end_date - start_date).days > config.BOOKING_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Date range cannot exceed {config.BOOKING_RANGE_DAYS} days.',
        )

    try:
        doctor = availability_service.get_active_doctor_by_slug(db, doctor_slug)
        free_slots = availability_service.generate_free_slots(db, doctor.id, start_date, end_date)
        now = datetime.now()
        current_hhmm = now.strftime('%H:%M')

        response: list[FreeSlotsResponse] = []
        for day in free_slots:
            if day.date < now.date():
                continue
            times = [slot for slot in day.times if day.date > now.date() or slot > current_hhmm]
            if times:
                response.append(FreeSlotsResponse(date=day.date, times=times))

        return response
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
