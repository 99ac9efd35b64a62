from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from clinic.database import Base


class DoctorStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String, unique=True, index=True, nullable=False)

    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    gender = Column(String, nullable=True)

    # Stored lowercase so patient search can match exactly
    specialization = Column(String, nullable=True, index=True)
    location = Column(String, nullable=True, index=True)
    hospital_name = Column(String, default="", nullable=False)

    status = Column(String, default=DoctorStatus.pending.value, nullable=False, index=True)

    medical_license_url = Column(String, nullable=True)
    medical_license_key = Column(String, nullable=True)
    license_uploaded_at = Column(DateTime, nullable=True)
    license_verified = Column(Boolean, default=False, nullable=False)
    license_notes = Column(Text, default="", nullable=False)

    profile_picture = Column(String, nullable=True)
    profile_picture_key = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
