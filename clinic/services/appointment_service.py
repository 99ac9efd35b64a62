import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic.models.appointment import Appointment, AppointmentStatus, UrgencyLevel
from clinic.models.doctor import Doctor, DoctorStatus
from clinic.models.patient import Patient
from clinic.schemas.appointment import AppointmentConfirm, AppointmentCreate
from clinic.services import email_services
from clinic.services.identifier_service import generate_booking_username
from clinic.utils.errors import EmailDispatchFailed, NotFound

logger = logging.getLogger(__name__)


def default_confirmation_message(time_slot: str, appointment_date) -> str:
    return f"Your appointment has been confirmed for {time_slot} on {appointment_date.strftime('%d/%m/%Y')}"


def _email_owned_by_other(db: Session, email: str, patient_id: int | None) -> bool:
    query = db.query(Patient).filter(Patient.email == email)
    if patient_id is not None:
        query = query.filter(Patient.id != patient_id)
    return query.first() is not None


def _upsert_patient(db: Session, body: AppointmentCreate) -> Patient:
    email = body.patient_email.lower() if body.patient_email else None

    patient = db.query(Patient).filter(Patient.phone == body.patient_phone).first()
    if not patient:
        patient = Patient(
            username=generate_booking_username(),
            name=body.patient_name,
            age=body.patient_age,
            gender=body.patient_gender,
            phone=body.patient_phone,
            address=body.patient_address,
        )
        db.add(patient)
    else:
        # Booking doubles as a profile update
        patient.name = body.patient_name
        patient.age = body.patient_age
        patient.gender = body.patient_gender
        patient.address = body.patient_address

    if email:
        if _email_owned_by_other(db, email, patient.id):
            logger.info("Email on booking belongs to another patient; keeping it on the appointment only")
        else:
            patient.email = email

    db.flush()
    return patient


def book(db: Session, body: AppointmentCreate, idempotency_key: str | None = None) -> tuple[Appointment, bool]:
    """Create a pending appointment, returning ``(appointment, created)``.

    The patient upsert and the appointment insert share one transaction. A
    repeated ``idempotency_key`` returns the appointment created the first time.
    """
    if idempotency_key:
        existing = db.query(Appointment).filter(Appointment.idempotency_key == idempotency_key).first()
        if existing:
            return existing, False

    doctor = (
        db.query(Doctor)
        .filter(Doctor.doctor_id == body.doctor_id, Doctor.status == DoctorStatus.approved.value)
        .first()
    )
    if not doctor:
        raise NotFound("Doctor not found")

    try:
        patient = _upsert_patient(db, body)
        appointment = Appointment(
            doctor_id=doctor.doctor_id,
            patient_id=patient.id,
            patient_name=body.patient_name,
            patient_email=body.patient_email.lower() if body.patient_email else "",
            patient_phone=body.patient_phone,
            patient_age=body.patient_age,
            patient_gender=body.patient_gender,
            patient_address=body.patient_address,
            urgency_level=(body.urgency or UrgencyLevel.low).value,
            description=body.description or "",
            status=AppointmentStatus.pending.value,
            idempotency_key=idempotency_key,
        )
        db.add(appointment)
        db.commit()
    except IntegrityError:
        db.rollback()
        if idempotency_key:
            existing = db.query(Appointment).filter(Appointment.idempotency_key == idempotency_key).first()
            if existing:
                return existing, False
        raise

    db.refresh(appointment)
    logger.info("Booked appointment id=%s with doctor %s", appointment.id, doctor.doctor_id)
    return appointment, True


def confirm(db: Session, appointment_id: int, doctor_id: str, body: AppointmentConfirm) -> tuple[Appointment, bool]:
    """Confirm a doctor's own appointment and try to notify the patient.

    Returns ``(appointment, email_sent)``. The confirmation is committed before
    the email is attempted and stays in place if delivery fails.
    """
    appointment = (
        db.query(Appointment)
        .filter(Appointment.id == appointment_id, Appointment.doctor_id == doctor_id)
        .first()
    )
    if not appointment:
        raise NotFound("Appointment not found")

    appointment.status = AppointmentStatus.confirmed.value
    appointment.time_slot = body.time_slot
    appointment.appointment_date = body.appointment_date
    appointment.confirmation_message = body.confirmation_message or default_confirmation_message(
        body.time_slot, body.appointment_date
    )
    db.commit()
    db.refresh(appointment)
    logger.info("Doctor %s confirmed appointment id=%s", doctor_id, appointment.id)

    doctor = db.query(Doctor).filter(Doctor.doctor_id == doctor_id).first()
    try:
        email_services.send_appointment_confirmation(appointment, doctor)
    except EmailDispatchFailed as exc:
        logger.warning("Confirmation email for appointment id=%s not sent: %s", appointment.id, exc.detail)
        return appointment, False
    return appointment, True
