"""Availability model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Text, Time
from clinicbook.database import Base


class WeeklyAvailabilityRule(Base):
    """A recurring open window on one day of the week (0=Sunday .. 6=Saturday)."""
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration = Column(Integer, default=30)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class BlockedInterval(Base):
    """A one-off blocked stretch of a specific calendar date."""
    __tablename__ = "blocked_slots"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    reason = Column(Text)
    is_all_day = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now)
