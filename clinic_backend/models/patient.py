"""Patient model definitions."""

from sqlalchemy import JSON, Column, Date, String
from clinic_backend.database import Base


class Patient(Base):
    """Represents a patient profile shown on the calendar."""
    __tablename__ = "patients"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    date_of_birth = Column(Date)
    gender = Column(String)  # male/female/other
    email = Column(String)
    phone = Column(String)
    address = Column(String)
    avatar = Column(String)
    conditions = Column(JSON, default=list)
    allergies = Column(JSON, default=list)
    last_visit = Column(Date)
    next_appointment = Column(Date)
    created_at = Column(Date)
