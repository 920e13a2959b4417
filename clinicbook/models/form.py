"""Intake form model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from clinicbook.database import Base


class FormTemplate(Base):
    """A doctor's intake questionnaire. At most one per doctor is the default."""
    __tablename__ = "form_templates"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    form_name = Column(String(255), nullable=False)
    description = Column(Text)
    fields = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True)
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class FormSubmission(Base):
    __tablename__ = "form_submissions"

    id = Column(Integer, primary_key=True)
    form_template_id = Column(Integer, ForeignKey("form_templates.id"))
    appointment_id = Column(Integer, ForeignKey("appointments.id"), index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"))
    data = Column(JSON, nullable=False)
    submitted_at = Column(DateTime, default=datetime.now, nullable=False)
