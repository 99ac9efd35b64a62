from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from clinic.database import Base


class UrgencyLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(
        String, ForeignKey("doctors.doctor_id", ondelete="CASCADE"), nullable=False, index=True
    )
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Snapshot of the patient at booking time
    patient_name = Column(String, nullable=False)
    patient_email = Column(String, nullable=True)
    patient_phone = Column(String, nullable=False)
    patient_age = Column(Integer, nullable=True)
    patient_gender = Column(String, nullable=True)
    patient_address = Column(String, nullable=True)

    urgency_level = Column(String, default=UrgencyLevel.low.value, nullable=False)
    description = Column(Text, default="", nullable=False)
    status = Column(String, default=AppointmentStatus.pending.value, nullable=False, index=True)

    time_slot = Column(String, nullable=True)
    appointment_date = Column(Date, nullable=True)
    confirmation_message = Column(Text, nullable=True)

    idempotency_key = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
