"""Appointment model definitions."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, Time, text
from clinicbook.database import Base


def _new_edit_token() -> str:
    return str(uuid.uuid4())


class Appointment(Base):
    """Represents a booked appointment. Cancellation is a status, never a delete."""
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one live booking per doctor, date and start time.
        Index(
            'uq_appointments_active_slot',
            'doctor_id',
            'appointment_date',
            'time_slot',
            unique=True,
            sqlite_where=text("status <> 'cancelled'"),
            postgresql_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    time_slot = Column(Time, nullable=False)
    duration = Column(Integer, default=30)
    status = Column(String, default="pending", nullable=False)
    reason = Column(Text)
    notes = Column(Text)
    cancel_reason = Column(Text)
    edit_token = Column(String(36), unique=True, default=_new_edit_token)
    reminder_sent_24h = Column(Boolean, default=False, nullable=False)
    reminder_sent_1h = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
