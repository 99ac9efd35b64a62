from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String

from clinic.database import Base


class VerificationMethod(str, Enum):
    google = "google"
    normal = "normal"


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # NULL is allowed for many rows; a present email is unique
    email = Column(String, unique=True, index=True, nullable=True)
    username = Column(String, nullable=True)

    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)
    phone = Column(String, nullable=True, index=True)
    address = Column(String, nullable=True)

    verified = Column(String, default=VerificationMethod.normal.value, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
