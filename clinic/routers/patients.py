from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from clinic.database import get_db
from clinic.models.patient import Patient
from clinic.models.user_session import SessionRole, UserSession
from clinic.schemas.appointment import AppointmentCreate
from clinic.schemas.auth import SendOtp, VerifyOtp
from clinic.schemas.doctor import DoctorListing
from clinic.schemas.patient import PatientResponse
from clinic.services import appointment_service, doctor_service, otp_service
from clinic.services.auth_middleware import get_current_patient, get_current_session, get_optional_session
from clinic.services.auth_service import attach_session_cookie, clear_session_cookie, revoke_session
from clinic.utils.response import create_response, handle_exception

router = APIRouter(prefix="/patient", tags=["Patients"])


def _patient_name(db: Session, session_record: UserSession | None) -> str:
    if not session_record or session_record.role != SessionRole.patient.value:
        return "Patient"
    patient = db.query(Patient).filter(Patient.id == int(session_record.subject)).first()
    if patient and patient.name:
        return patient.name
    return session_record.display_name or "Patient"


def _listing(doctors) -> list[dict]:
    return [DoctorListing.model_validate(doctor).model_dump() for doctor in doctors]


@router.get("")
def patient_home(
    db: Session = Depends(get_db),
    session_record: UserSession | None = Depends(get_optional_session),
):
    try:
        doctors = doctor_service.search_approved(db)
        return create_response(
            message="Approved doctors fetched",
            data={
                "patient_name": _patient_name(db, session_record),
                "doctors": _listing(doctors),
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/doctors")
def search_doctors(
    location: str | None = Query(None),
    specialization: str | None = Query(None),
    db: Session = Depends(get_db),
    session_record: UserSession | None = Depends(get_optional_session),
):
    try:
        doctors = doctor_service.search_approved(db, location, specialization)
        return create_response(
            message="Doctors fetched",
            data={
                "patient_name": _patient_name(db, session_record),
                "count": len(doctors),
                "doctors": _listing(doctors),
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/otp/send")
def send_otp(body: SendOtp, db: Session = Depends(get_db)):
    try:
        otp_service.issue_code(db, body.email)
        return create_response(
            message="OTP sent successfully to your email. Please check your inbox (and spam folder).",
            data={"email": body.email},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/otp/verify")
def verify_otp(body: VerifyOtp, db: Session = Depends(get_db)):
    try:
        patient, session_record = otp_service.verify_code(db, body.email, body.otp)
        response = create_response(
            message="Email verified successfully! Redirecting to patient portal...",
            data={
                "patient_name": patient.name,
                "patient_id": patient.id,
                "patient": PatientResponse.model_validate(patient).model_dump(),
                "access_token": session_record.token,
                "token_type": "bearer",
                "redirect_url": "/patient",
            },
            status_code=status.HTTP_200_OK
        )
        return attach_session_cookie(response, session_record.token)
    except Exception as exc:
        return handle_exception(exc)


@router.post("/appointments")
def book_appointment(
    body: AppointmentCreate,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
):
    try:
        appointment, created = appointment_service.book(db, body, idempotency_key=idempotency_key)
        return create_response(
            message=(
                "Appointment booked successfully! The doctor will confirm your appointment soon."
                if created
                else "Appointment already booked"
            ),
            data={
                "appointment_id": appointment.id,
                "patient_id": appointment.patient_id,
                "status": appointment.status,
            },
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def patient_logout(
    current_patient: UserSession = Depends(get_current_patient),
    auth_context=Depends(get_current_session),
):
    try:
        revoke_session(auth_context["db"], current_patient)
        response = create_response(message="Logged out successfully", data=None)
        return clear_session_cookie(response)
    except Exception as exc:
        return handle_exception(exc)
