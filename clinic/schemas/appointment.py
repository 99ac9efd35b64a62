from datetime import date, datetime

from pydantic import BaseModel, EmailStr, field_validator

from clinic.models.appointment import UrgencyLevel


class AppointmentCreate(BaseModel):
    doctor_id: str
    patient_name: str
    patient_email: EmailStr | None = None
    patient_phone: str
    patient_age: int | None = None
    patient_gender: str | None = None
    patient_address: str | None = None
    urgency: UrgencyLevel | None = None
    description: str = ""

    @field_validator("patient_email", "urgency", "patient_age", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("doctor_id", "patient_name", "patient_phone")
    @classmethod
    def validate_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class AppointmentConfirm(BaseModel):
    time_slot: str
    appointment_date: date
    confirmation_message: str | None = None

    @field_validator("time_slot")
    @classmethod
    def validate_slot(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: str
    patient_id: int
    patient_name: str
    patient_email: str | None
    patient_phone: str
    patient_age: int | None
    patient_gender: str | None
    patient_address: str | None
    urgency_level: str
    description: str
    status: str
    time_slot: str | None
    appointment_date: date | None
    confirmation_message: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
