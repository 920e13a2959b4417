from datetime import date, datetime, time

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_current_doctor, get_db
from clinicbook.core.errors import SchedulingError
from clinicbook.models.doctor import Doctor, Patient
from clinicbook.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from clinicbook.scheduling import window
from clinicbook.services import booking_service, notifications

router = APIRouter(tags=['appointments'])


class UpdateStatusRequest(BaseModel):
    status: str
    cancel_reason: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in window.APPOINTMENT_STATUSES:
            raise ValueError('Invalid appointment status.')
        return normalized


class DoctorAppointmentResponse(BaseModel):
    id: int
    patient_name: str
    patient_whatsapp: str | None = None
    appointment_date: date
    time_slot: time
    duration: int
    status: str
    reason: str | None = None
    cancel_reason: str | None = None
    created_at: datetime


def _to_response(appointment, patient: Patient | None) -> DoctorAppointmentResponse:
    return DoctorAppointmentResponse(
        id=appointment.id,
        patient_name=patient.full_name if patient else '',
        patient_whatsapp=patient.whatsapp_number if patient else None,
        appointment_date=appointment.appointment_date,
        time_slot=appointment.time_slot,
        duration=appointment.duration or 0,
        status=appointment.status,
        reason=appointment.reason,
        cancel_reason=appointment.cancel_reason,
        created_at=appointment.created_at,
    )


@router.get('', response_model=list[DoctorAppointmentResponse])
def list_appointments(
    appointment_date: date | None = Query(default=None, alias='date'),
    appointment_status: str | None = Query(default=None, alias='status'),
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    normalized_status = appointment_status.strip().lower() if appointment_status else None
    if normalized_status and normalized_status not in window.APPOINTMENT_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid appointment status.',
        )

    ensure_database_ready()

    try:
        appointments = booking_service.list_doctor_appointments(
            db,
            doctor.id,
            appointment_date=appointment_date,
            status=normalized_status,
        )
        patient_ids = {appointment.patient_id for appointment in appointments}
        patients = {
            patient.id: patient
            for patient in db.query(Patient).filter(Patient.id.in_(patient_ids)).all()
        } if patient_ids else {}

        return [_to_response(appointment, patients.get(appointment.patient_id)) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.patch('/{appointment_id}/status', response_model=DoctorAppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    background_tasks: BackgroundTasks,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking_service.get_appointment(db, appointment_id, doctor_id=doctor.id)
        appointment = booking_service.update_status(
            db,
            appointment,
            data.status,
            now=datetime.now(),
            cancel_reason=data.cancel_reason,
        )
        if appointment.status == window.CANCELLED:
            background_tasks.add_task(
                notifications.send_appointment_notice,
                notifications.CANCELLED_NOTICE,
                booking_service.build_notice(db, appointment),
            )

        patient = db.query(Patient).filter(Patient.id == appointment.patient_id).first()
        return _to_response(appointment, patient)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
