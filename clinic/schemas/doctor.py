from datetime import datetime

from pydantic import BaseModel, EmailStr, ValidationInfo, field_validator


class DoctorRegistration(BaseModel):
    name: str
    email: EmailStr
    password: str
    phone: str | None = None
    gender: str | None = None
    specialization: str
    location: str
    hospital_name: str | None = None

    @field_validator("name", "password", "specialization", "location")
    @classmethod
    def validate_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()


class DoctorProfileUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    specialization: str | None = None
    location: str | None = None
    hospital_name: str | None = None

    @field_validator("name", "specialization", "location")
    @classmethod
    def validate_required(cls, value: str | None, info: ValidationInfo) -> str:
        # Omit a field to keep it; an explicit null or blank is rejected
        if value is None or not value.strip():
            raise ValueError("must not be empty")
        value = value.strip()
        if info.field_name in ("specialization", "location"):
            return value.lower()
        return value


class DoctorResponse(BaseModel):
    id: int
    doctor_id: str
    name: str
    email: EmailStr
    phone: str | None
    gender: str | None
    specialization: str | None
    location: str | None
    hospital_name: str | None
    status: str
    medical_license_url: str | None
    license_uploaded_at: datetime | None
    license_verified: bool
    license_notes: str | None
    profile_picture: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DoctorListing(BaseModel):
    doctor_id: str
    name: str
    gender: str | None
    specialization: str | None
    location: str | None
    hospital_name: str | None
    profile_picture: str | None

    model_config = {"from_attributes": True}
