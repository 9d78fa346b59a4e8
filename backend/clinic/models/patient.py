from sqlalchemy import Column, String, Date, Text, Boolean

from .base import Base, TimestampMixin, generate_uuid


class Patient(Base, TimestampMixin):
    __tablename__ = "patients"

    id = Column(String, primary_key=True, default=generate_uuid)
    mrn = Column(String(50), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    specialty = Column(String(100), nullable=True)
    doctor_id = Column(String, nullable=True, index=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
