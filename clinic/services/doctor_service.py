import logging
from datetime import datetime

from fastapi import UploadFile
from sqlalchemy.orm import Session

from clinic.models.appointment import Appointment
from clinic.models.doctor import Doctor, DoctorStatus
from clinic.models.user_session import SessionRole, UserSession
from clinic.schemas.doctor import DoctorProfileUpdate, DoctorRegistration
from clinic.services import spaces_service
from clinic.services.auth_service import get_password_hash, open_session, verify_password
from clinic.services.identifier_service import generate_doctor_id
from clinic.utils.errors import DuplicateEmail, InvalidCredentials, NotApproved, NotFound
from clinic.utils.uploads import DOCUMENT_TYPES, IMAGE_TYPES, staged_upload

logger = logging.getLogger(__name__)


def get_doctor(db: Session, doctor_id: str) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.doctor_id == doctor_id).first()
    if not doctor:
        raise NotFound("Doctor not found")
    return doctor


async def register(db: Session, body: DoctorRegistration, license_file: UploadFile | None) -> Doctor:
    """Create a pending doctor after uploading the credential document.

    The duplicate check runs before the upload is staged, so a rejected
    registration never reaches object storage.
    """
    email = body.email.lower()
    if db.query(Doctor).filter(Doctor.email == email).first():
        if license_file is not None:
            await license_file.close()
        raise DuplicateEmail()

    doctor_id = generate_doctor_id(db)
    async with staged_upload(license_file, DOCUMENT_TYPES) as local_path:
        stored = spaces_service.upload_license_document(
            local_path,
            license_file.filename,
            owner=doctor_id,
            content_type=license_file.content_type,
        )

    doctor = Doctor(
        doctor_id=doctor_id,
        name=body.name,
        email=email,
        password_hash=get_password_hash(body.password),
        phone=body.phone,
        gender=body.gender,
        specialization=body.specialization.lower(),
        location=body.location.lower(),
        hospital_name=body.hospital_name or "",
        status=DoctorStatus.pending.value,
        medical_license_url=stored.secure_url,
        medical_license_key=stored.storage_id,
        license_uploaded_at=datetime.utcnow(),
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    logger.info("Registered doctor %s pending approval", doctor.doctor_id)
    return doctor


def login(db: Session, email: str, password: str) -> tuple[Doctor, UserSession]:
    doctor = db.query(Doctor).filter(Doctor.email == email.lower()).first()
    if not doctor or not verify_password(password, doctor.password_hash):
        raise InvalidCredentials()
    if doctor.status != DoctorStatus.approved.value:
        raise NotApproved()

    session_record = open_session(
        db,
        SessionRole.doctor,
        subject=doctor.doctor_id,
        email=doctor.email,
        display_name=doctor.name,
    )
    return doctor, session_record


def approve(db: Session, doctor_id: str) -> Doctor:
    doctor = get_doctor(db, doctor_id)
    doctor.status = DoctorStatus.approved.value
    doctor.license_verified = True
    db.commit()
    db.refresh(doctor)
    logger.info("Approved doctor %s", doctor_id)
    return doctor


def reject(db: Session, doctor_id: str) -> None:
    doctor = get_doctor(db, doctor_id)
    revoked = (
        db.query(UserSession)
        .filter(
            UserSession.role == SessionRole.doctor.value,
            UserSession.subject == doctor.doctor_id,
            UserSession.is_active.is_(True),
        )
        .update(
            {"is_active": False, "revoked_at": datetime.utcnow(), "token": None},
            synchronize_session=False,
        )
    )
    db.delete(doctor)
    db.commit()
    logger.info("Rejected and removed doctor %s, revoked %s session(s)", doctor_id, revoked)


def update_profile(db: Session, doctor_id: str, update: DoctorProfileUpdate) -> Doctor:
    doctor = get_doctor(db, doctor_id)
    for field, value in update.model_dump(exclude_unset=True).items():
        if value is None and field == "hospital_name":
            value = ""
        setattr(doctor, field, value)
    db.commit()
    db.refresh(doctor)
    return doctor


async def update_picture(db: Session, doctor_id: str, image: UploadFile | None) -> Doctor:
    doctor = get_doctor(db, doctor_id)
    async with staged_upload(image, IMAGE_TYPES) as local_path:
        stored = spaces_service.upload_profile_picture(
            local_path,
            image.filename,
            owner=doctor.doctor_id,
            content_type=image.content_type,
        )

    doctor.profile_picture = stored.secure_url
    doctor.profile_picture_key = stored.storage_id
    db.commit()
    db.refresh(doctor)
    return doctor


def list_appointments(db: Session, doctor_id: str) -> list[Appointment]:
    return (
        db.query(Appointment)
        .filter(Appointment.doctor_id == doctor_id)
        .order_by(Appointment.created_at.desc(), Appointment.id.desc())
        .all()
    )


def admin_overview(db: Session) -> dict:
    base_query = db.query(Doctor)
    return {
        "pending_doctors": base_query.filter(Doctor.status == DoctorStatus.pending.value)
        .order_by(Doctor.created_at.asc())
        .all(),
        "approved_doctors": base_query.filter(Doctor.status == DoctorStatus.approved.value)
        .order_by(Doctor.name.asc())
        .all(),
        "approved_count": base_query.filter(Doctor.status == DoctorStatus.approved.value).count(),
        "rejected_count": base_query.filter(Doctor.status == DoctorStatus.rejected.value).count(),
        "total_count": base_query.count(),
    }


def search_approved(db: Session, location: str | None = None, specialization: str | None = None) -> list[Doctor]:
    query = db.query(Doctor).filter(Doctor.status == DoctorStatus.approved.value)

    location = (location or "").strip().lower()
    if location and location != "all":
        query = query.filter(Doctor.location == location)

    specialization = (specialization or "").strip().lower()
    if specialization and specialization != "all":
        query = query.filter(Doctor.specialization == specialization)

    return query.order_by(Doctor.name.asc()).all()
