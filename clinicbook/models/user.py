"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from clinicbook.database import Base


class User(Base):
    """Represents a login account for a doctor or an administrator."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(String, default="doctor")  # doctor/admin
    is_active = Column(Boolean, default=True)
