"""Doctor and patient model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from clinicbook.database import Base


class Doctor(Base):
    """A practice owner whose public booking page is reached by slug."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    specialty = Column(String(100))
    clinic_name = Column(String(255))
    address = Column(Text)
    phone = Column(String(20))
    welcome_message = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class Patient(Base):
    """A patient record, scoped to the doctor whose page created it."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(20))
    whatsapp_number = Column(String(20), index=True)
    created_at = Column(DateTime, default=datetime.now)
