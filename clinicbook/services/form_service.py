"""Doctor intake form templates and the answers patients submit with a booking."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from clinicbook.core.errors import NotFound
from clinicbook.models.form import FormSubmission, FormTemplate

logger = logging.getLogger(__name__)


def list_templates(db: Session, doctor_id: int) -> list[FormTemplate]:
    return db.query(FormTemplate).filter(
        FormTemplate.doctor_id == doctor_id,
    ).order_by(FormTemplate.created_at.desc(), FormTemplate.id.desc()).all()


def get_default_template(db: Session, doctor_id: int) -> FormTemplate | None:
    return db.query(FormTemplate).filter(
        FormTemplate.doctor_id == doctor_id,
        FormTemplate.is_default.is_(True),
        FormTemplate.is_active.is_(True),
    ).first()


def create_template(
    db: Session,
    doctor_id: int,
    form_name: str,
    fields: list[dict[str, Any]],
    description: str | None = None,
    is_default: bool = False,
    now: datetime | None = None,
) -> FormTemplate:
    """Store a new template. Making it the default clears the doctor's previous default."""
    now = now or datetime.now()
    if is_default:
        db.query(FormTemplate).filter(
            FormTemplate.doctor_id == doctor_id,
            FormTemplate.is_default.is_(True),
        ).update({FormTemplate.is_default: False, FormTemplate.updated_at: now}, synchronize_session=False)

    template = FormTemplate(
        doctor_id=doctor_id,
        form_name=form_name,
        description=description,
        fields=fields,
        is_active=True,
        is_default=is_default,
        created_at=now,
        updated_at=now,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def delete_template(db: Session, doctor_id: int, template_id: int) -> None:
    template = db.query(FormTemplate).filter(
        FormTemplate.id == template_id,
        FormTemplate.doctor_id == doctor_id,
    ).first()
    if template is None:
        raise NotFound('Form not found.')
    # Past submissions keep their answers after the template goes away.
    db.query(FormSubmission).filter(FormSubmission.form_template_id == template.id).update(
        {FormSubmission.form_template_id: None}, synchronize_session=False
    )
    db.delete(template)
    db.commit()


def attach_submission(
    db: Session,
    doctor_id: int,
    appointment_id: int,
    patient_id: int,
    data: dict[str, Any],
) -> FormSubmission | None:
    """Record ``data`` against the doctor's default form. Does not commit.

    Answers are dropped when the doctor has no default form, since there is
    nothing to interpret them against.
    """
    template = get_default_template(db, doctor_id)
    if template is None:
        logger.info('Doctor %s has no default form, ignoring intake answers', doctor_id)
        return None

    submission = FormSubmission(
        form_template_id=template.id,
        appointment_id=appointment_id,
        patient_id=patient_id,
        data=data,
    )
    db.add(submission)
    return submission


def get_submission_for_appointment(db: Session, appointment_id: int) -> FormSubmission | None:
    return db.query(FormSubmission).filter(FormSubmission.appointment_id == appointment_id).first()
