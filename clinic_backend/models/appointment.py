"""Appointment model definitions."""

from sqlalchemy import Column, Date, Integer, String, Time
from clinic_backend.database import Base


class Appointment(Base):
    """Represents a scheduled appointment or a reserved block."""
    __tablename__ = "appointments"

    id = Column(String, primary_key=True)
    # Not a foreign key: reserved blocks carry a sentinel instead of a patient id.
    patient_id = Column(String, index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)
    type = Column(String, nullable=False)
    status = Column(String, nullable=False)
    notes = Column(String)
    provider = Column(String)
