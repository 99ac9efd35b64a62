from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clinic.database import get_db
from clinic.models.user_session import UserSession
from clinic.schemas.auth import AdminLogin
from clinic.schemas.doctor import DoctorResponse
from clinic.services import doctor_service
from clinic.services.auth_middleware import get_current_admin, get_current_session
from clinic.services.auth_service import (
    attach_session_cookie,
    authenticate_admin,
    clear_session_cookie,
    revoke_session,
)
from clinic.utils.response import create_response, handle_exception

router = APIRouter(prefix="/admin", tags=["Admin"])


def _doctor_payload(doctor) -> dict:
    return DoctorResponse.model_validate(doctor).model_dump()


@router.post("/login")
def admin_login(body: AdminLogin, db: Session = Depends(get_db)):
    try:
        session_record = authenticate_admin(db, body.email, body.password)
        response = create_response(
            message="Admin login successful",
            data={"access_token": session_record.token, "token_type": "bearer", "redirect_url": "/admin/dashboard"},
            status_code=status.HTTP_200_OK
        )
        return attach_session_cookie(response, session_record.token)
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def admin_logout(
    admin: UserSession = Depends(get_current_admin),
    auth_context=Depends(get_current_session),
):
    try:
        revoke_session(auth_context["db"], admin)
        response = create_response(message="Logged out successfully", data=None)
        return clear_session_cookie(response)
    except Exception as exc:
        return handle_exception(exc)


@router.get("/dashboard")
def admin_dashboard(
    db: Session = Depends(get_db),
    admin: UserSession = Depends(get_current_admin),
):
    try:
        overview = doctor_service.admin_overview(db)
        return create_response(
            message="Admin dashboard fetched",
            data={
                "pending_doctors": [_doctor_payload(doctor) for doctor in overview["pending_doctors"]],
                "approved_doctors": [_doctor_payload(doctor) for doctor in overview["approved_doctors"]],
                "approved_doctors_count": overview["approved_count"],
                "rejected_doctors_count": overview["rejected_count"],
                "total_doctors_count": overview["total_count"],
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/doctors/{doctor_id}")
def doctor_details(
    doctor_id: str,
    db: Session = Depends(get_db),
    admin: UserSession = Depends(get_current_admin),
):
    try:
        doctor = doctor_service.get_doctor(db, doctor_id)
        return create_response(message="Doctor details fetched", data=_doctor_payload(doctor))
    except Exception as exc:
        return handle_exception(exc)


@router.post("/doctors/{doctor_id}/approve")
def approve_doctor(
    doctor_id: str,
    db: Session = Depends(get_db),
    admin: UserSession = Depends(get_current_admin),
):
    try:
        doctor = doctor_service.approve(db, doctor_id)
        return create_response(
            message="Doctor approved successfully",
            data=_doctor_payload(doctor),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/doctors/{doctor_id}/reject")
def reject_doctor(
    doctor_id: str,
    db: Session = Depends(get_db),
    admin: UserSession = Depends(get_current_admin),
):
    try:
        doctor_service.reject(db, doctor_id)
        return create_response(
            message="The doctor application has been rejected and removed from the system",
            data={"doctor_id": doctor_id, "deleted": True},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
