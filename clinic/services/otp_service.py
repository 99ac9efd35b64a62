"""Email one-time codes and federated sign-in for patients.

A code lives from ``issue_code`` until it is verified, expires or is superseded
by a newer code for the same email. Every terminal state deletes the row.
"""
import logging
import random
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from clinic.config import settings
from clinic.models.one_time_code import OneTimeCode
from clinic.models.patient import Patient, VerificationMethod
from clinic.models.user_session import SessionRole, UserSession
from clinic.services import email_services
from clinic.services.auth_service import open_session
from clinic.services.identifier_service import default_display_name, generate_email_username
from clinic.utils.errors import CodeExpired, FederatedAccountRequired, InvalidOrExpiredCode, ValidationFailed

logger = logging.getLogger(__name__)


def generate_code() -> str:
    return str(random.randint(100000, 999999))


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def issue_code(db: Session, email: str) -> OneTimeCode:
    """Store a fresh code for ``email`` and mail it.

    Raises EmailDispatchFailed if the mail could not be sent; the stored code
    stays valid so a retry of the delivery is not required to verify it.
    """
    email = _normalize_email(email)
    existing = db.query(Patient).filter(Patient.email == email).first()
    if existing and existing.verified == VerificationMethod.google.value:
        raise FederatedAccountRequired()

    db.query(OneTimeCode).filter(OneTimeCode.email == email).delete(synchronize_session=False)

    record = OneTimeCode(email=email, code=generate_code(), verified=False, created_at=datetime.utcnow())
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Issued one-time code id=%s for %s", record.id, email)

    email_services.send_email_otp(email, record.code)
    return record


def verify_code(db: Session, email: str, code: str, now: datetime | None = None) -> tuple[Patient, UserSession]:
    email = _normalize_email(email)
    code = (code or "").strip()
    if not code:
        raise ValidationFailed("Email and OTP are required")

    record = (
        db.query(OneTimeCode)
        .filter(
            OneTimeCode.email == email,
            OneTimeCode.code == code,
            OneTimeCode.verified == False,
        )
        .first()
    )
    if not record:
        raise InvalidOrExpiredCode()

    now = now or datetime.utcnow()
    if now - record.created_at > timedelta(minutes=settings.OTP_EXPIRE_MINUTES):
        db.delete(record)
        db.commit()
        logger.info("One-time code id=%s for %s expired", record.id, email)
        raise CodeExpired()

    record.verified = True
    db.flush()

    patient = db.query(Patient).filter(Patient.email == email).first()
    if not patient:
        patient = Patient(
            name=default_display_name(email),
            email=email,
            username=generate_email_username(email),
            verified=VerificationMethod.normal.value,
        )
        db.add(patient)
        db.flush()
        logger.info("Created patient id=%s from email verification", patient.id)

    db.delete(record)
    db.commit()
    db.refresh(patient)

    session_record = open_session(
        db,
        SessionRole.patient,
        subject=str(patient.id),
        email=patient.email,
        display_name=patient.name,
    )
    return patient, session_record


def complete_google_sign_in(db: Session, user_info: dict) -> tuple[Patient, UserSession]:
    """Resolve the patient for a verified Google identity and open a session."""
    email = user_info.get("email")
    if not email:
        raise ValidationFailed("Google account did not provide an email address")
    email = _normalize_email(email)

    patient = db.query(Patient).filter(Patient.email == email).first()
    if not patient:
        patient = Patient(
            name=user_info.get("name") or default_display_name(email),
            email=email,
            username=generate_email_username(email),
            verified=VerificationMethod.google.value,
        )
        db.add(patient)
        db.commit()
        db.refresh(patient)
        logger.info("Created patient id=%s from Google sign-in", patient.id)

    session_record = open_session(
        db,
        SessionRole.patient,
        subject=str(patient.id),
        email=patient.email,
        display_name=patient.name,
    )
    return patient, session_record
