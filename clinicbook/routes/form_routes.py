from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_current_doctor, get_db
from clinicbook.core.errors import NotFound, SchedulingError
from clinicbook.models.doctor import Doctor
from clinicbook.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from clinicbook.services import booking_service, form_service

router = APIRouter(tags=['forms'])

FieldType = Literal['text', 'textarea', 'select', 'checkbox', 'radio', 'date', 'file', 'email', 'phone', 'number']


class FormFieldSchema(BaseModel):
    id: str
    type: FieldType
    label: str
    placeholder: str | None = None
    required: bool = False
    options: list[str] | None = None

    @field_validator('label')
    @classmethod
    def validate_label(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field label is required.')
        return normalized


class CreateFormRequest(BaseModel):
    form_name: str
    description: str | None = None
    fields: list[FormFieldSchema] = Field(min_length=1)
    is_default: bool = False

    @field_validator('form_name')
    @classmethod
    def validate_form_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Form name is required.')
        return normalized


class FormTemplateResponse(BaseModel):
    id: int
    form_name: str
    description: str | None = None
    fields: list[dict[str, Any]]
    is_active: bool
    is_default: bool
    created_at: datetime

    class Config:
        from_attributes = True


class FormSubmissionResponse(BaseModel):
    id: int
    form_template_id: int | None = None
    appointment_id: int
    data: dict[str, Any]
    submitted_at: datetime

    class Config:
        from_attributes = True


@router.get('', response_model=list[FormTemplateResponse])
def list_forms(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return form_service.list_templates(db, doctor.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=FormTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_form(
    data: CreateFormRequest,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return form_service.create_template(
            db,
            doctor.id,
            form_name=data.form_name,
            description=data.description,
            fields=[field.model_dump(exclude_none=True) for field in data.fields],
            is_default=data.is_default,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{form_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_form(
    form_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        form_service.delete_template(db, doctor.id, form_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/submissions/{appointment_id}', response_model=FormSubmissionResponse)
def get_appointment_submission(
    appointment_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking_service.get_appointment(db, appointment_id, doctor_id=doctor.id)
        submission = form_service.get_submission_for_appointment(db, appointment.id)
        if submission is None:
            raise NotFound('No intake form was submitted for this appointment.')
        return submission
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
