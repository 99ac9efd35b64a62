from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clinic.database import get_db
from clinic.models.user_session import UserSession
from clinic.schemas.appointment import AppointmentConfirm, AppointmentResponse
from clinic.schemas.auth import DoctorLogin
from clinic.schemas.doctor import DoctorProfileUpdate, DoctorRegistration, DoctorResponse
from clinic.services import appointment_service, doctor_service
from clinic.services.auth_middleware import get_current_doctor, get_current_session
from clinic.services.auth_service import attach_session_cookie, clear_session_cookie, revoke_session
from clinic.utils.errors import ValidationFailed
from clinic.utils.response import create_response, handle_exception

router = APIRouter(prefix="/doctor", tags=["Doctors"])


def _appointments_payload(appointments) -> list[dict]:
    return [AppointmentResponse.model_validate(item).model_dump() for item in appointments]


@router.post("/register")
async def register_doctor(
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    phone: str | None = Form(None),
    gender: str | None = Form(None),
    specialization: str = Form(""),
    location: str = Form(""),
    hospital_name: str | None = Form(None),
    medical_license: UploadFile | None = File(None),
    db: Session = Depends(get_db),
):
    try:
        try:
            body = DoctorRegistration(
                name=name,
                email=email,
                password=password,
                phone=phone,
                gender=gender,
                specialization=specialization,
                location=location,
                hospital_name=hospital_name,
            )
        except ValidationError as exc:
            fields = ", ".join(str(error["loc"][0]) for error in exc.errors())
            raise ValidationFailed(f"Missing or invalid fields: {fields}") from exc

        doctor = await doctor_service.register(db, body, medical_license)
        return create_response(
            message="Doctor registered successfully! Please wait for admin approval.",
            data={
                "doctor_id": doctor.doctor_id,
                "medical_license_url": doctor.medical_license_url,
            },
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/login")
def doctor_login(body: DoctorLogin, db: Session = Depends(get_db)):
    try:
        doctor, session_record = doctor_service.login(db, body.email, body.password)
        response = create_response(
            message="Login successful",
            data={
                "doctor_id": doctor.doctor_id,
                "access_token": session_record.token,
                "token_type": "bearer",
                "redirect_url": "/doctor/dashboard",
            },
            status_code=status.HTTP_200_OK
        )
        return attach_session_cookie(response, session_record.token)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/dashboard")
def doctor_dashboard(
    db: Session = Depends(get_db),
    current_doctor: UserSession = Depends(get_current_doctor),
):
    try:
        doctor = doctor_service.get_doctor(db, current_doctor.subject)
        appointments = doctor_service.list_appointments(db, doctor.doctor_id)
        return create_response(
            message="Dashboard fetched",
            data={
                "doctor": DoctorResponse.model_validate(doctor).model_dump(),
                "appointments": _appointments_payload(appointments),
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/profile")
def get_profile(
    db: Session = Depends(get_db),
    current_doctor: UserSession = Depends(get_current_doctor),
):
    try:
        doctor = doctor_service.get_doctor(db, current_doctor.subject)
        return create_response(
            message="Profile fetched successfully",
            data=DoctorResponse.model_validate(doctor).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/profile")
def update_profile(
    update: DoctorProfileUpdate,
    db: Session = Depends(get_db),
    current_doctor: UserSession = Depends(get_current_doctor),
):
    try:
        doctor = doctor_service.update_profile(db, current_doctor.subject, update)
        return create_response(
            message="Profile updated successfully",
            data=DoctorResponse.model_validate(doctor).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/profile/picture")
async def upload_profile_picture(
    profile_picture: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current_doctor: UserSession = Depends(get_current_doctor),
):
    try:
        doctor = await doctor_service.update_picture(db, current_doctor.subject, profile_picture)
        return create_response(
            message="Profile picture uploaded successfully",
            data=DoctorResponse.model_validate(doctor).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/appointments")
def list_appointments(
    db: Session = Depends(get_db),
    current_doctor: UserSession = Depends(get_current_doctor),
):
    try:
        appointments = doctor_service.list_appointments(db, current_doctor.subject)
        payload = _appointments_payload(appointments)
        return create_response(
            message="Appointments fetched",
            data={"count": len(payload), "appointments": payload},
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/appointments/{appointment_id}/confirm")
def confirm_appointment(
    appointment_id: int,
    body: AppointmentConfirm,
    db: Session = Depends(get_db),
    current_doctor: UserSession = Depends(get_current_doctor),
):
    try:
        appointment, email_sent = appointment_service.confirm(db, appointment_id, current_doctor.subject, body)
        message = (
            "Appointment confirmed successfully. Patient will be notified."
            if email_sent
            else "Appointment confirmed successfully. The patient could not be notified by email."
        )
        return create_response(
            message=message,
            data={
                "appointment": AppointmentResponse.model_validate(appointment).model_dump(),
                "email_sent": email_sent,
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def doctor_logout(
    current_doctor: UserSession = Depends(get_current_doctor),
    auth_context=Depends(get_current_session),
):
    try:
        revoke_session(auth_context["db"], current_doctor)
        response = create_response(message="Logged out successfully", data=None)
        return clear_session_cookie(response)
    except Exception as exc:
        return handle_exception(exc)
