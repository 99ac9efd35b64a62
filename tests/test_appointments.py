from datetime import date

from conftest import auth_header, create_doctor, login_doctor

from clinic.models.appointment import Appointment, AppointmentStatus
from clinic.models.doctor import DoctorStatus
from clinic.models.patient import Patient
from clinic.services.appointment_service import default_confirmation_message

BOOKING = {
    "doctor_id": "DRHOUSE1",
    "patient_name": "Rebecca Adler",
    "patient_email": "rebecca@school.org",
    "patient_phone": "5551234",
    "patient_age": 29,
    "patient_gender": "female",
    "patient_address": "12 Elm Street",
    "urgency": "high",
    "description": "Slurred speech during class",
}


def _book(client, **overrides):
    return client.post("/patient/appointments", json={**BOOKING, **overrides})


def test_booking_new_phone_creates_patient_and_pending_appointment(client, db_session):
    create_doctor(db_session)

    response = _book(client)

    assert response.status_code == 201
    payload = response.json()["data"]
    assert payload["status"] == AppointmentStatus.pending.value

    patients = db_session.query(Patient).all()
    assert len(patients) == 1
    assert patients[0].phone == "5551234"
    assert patients[0].username.startswith("patient")

    appointment = db_session.query(Appointment).one()
    assert appointment.patient_id == patients[0].id
    assert appointment.urgency_level == "high"
    assert appointment.patient_name == "Rebecca Adler"


def test_second_booking_reuses_patient_and_updates_profile(client, db_session):
    create_doctor(db_session)

    first = _book(client).json()["data"]
    second = _book(client, patient_name="Rebecca A.", patient_address="7 Oak Road", urgency="").json()["data"]

    assert second["patient_id"] == first["patient_id"]
    assert second["appointment_id"] != first["appointment_id"]

    db_session.expire_all()
    patient = db_session.query(Patient).one()
    assert patient.name == "Rebecca A."
    assert patient.address == "7 Oak Road"

    appointments = db_session.query(Appointment).order_by(Appointment.id).all()
    assert len(appointments) == 2
    # Earlier bookings keep the details captured at the time
    assert appointments[0].patient_name == "Rebecca Adler"
    assert appointments[1].urgency_level == "low"


def test_booking_requires_approved_doctor(client, db_session):
    create_doctor(db_session, status=DoctorStatus.pending)

    response = _book(client)

    assert response.status_code == 404
    assert db_session.query(Patient).count() == 0


def test_idempotency_key_collapses_duplicate_submissions(client, db_session):
    create_doctor(db_session)
    headers = {"Idempotency-Key": "booking-5551234-1"}

    first = client.post("/patient/appointments", json=BOOKING, headers=headers)
    second = client.post("/patient/appointments", json=BOOKING, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["data"]["appointment_id"] == first.json()["data"]["appointment_id"]
    assert db_session.query(Appointment).count() == 1


def test_booking_email_of_other_patient_stays_on_appointment(client, db_session):
    create_doctor(db_session)
    db_session.add(Patient(name="Someone", email="rebecca@school.org"))
    db_session.commit()

    response = _book(client)

    assert response.status_code == 201
    db_session.expire_all()
    booked = db_session.query(Patient).filter(Patient.phone == "5551234").one()
    assert booked.email is None
    assert db_session.query(Appointment).one().patient_email == "rebecca@school.org"


def test_owner_confirms_and_patient_is_notified(client, outbox, db_session):
    create_doctor(db_session)
    appointment_id = _book(client).json()["data"]["appointment_id"]
    token = login_doctor(client)

    response = client.post(
        f"/doctor/appointments/{appointment_id}/confirm",
        json={"time_slot": "10:00 AM", "appointment_date": "2026-11-02"},
        headers=auth_header(token),
    )

    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["email_sent"] is True
    assert payload["appointment"]["status"] == "confirmed"
    assert payload["appointment"]["time_slot"] == "10:00 AM"
    assert payload["appointment"]["confirmation_message"] == default_confirmation_message(
        "10:00 AM", date(2026, 11, 2)
    )
    assert len(outbox.sent_to("rebecca@school.org")) == 1


def test_confirmation_survives_email_failure(client, outbox, db_session):
    create_doctor(db_session)
    appointment_id = _book(client).json()["data"]["appointment_id"]
    token = login_doctor(client)
    outbox.fail = True

    response = client.post(
        f"/doctor/appointments/{appointment_id}/confirm",
        json={
            "time_slot": "3:30 PM",
            "appointment_date": "2026-11-03",
            "confirmation_message": "See you then",
        },
        headers=auth_header(token),
    )

    assert response.status_code == 200
    assert response.json()["data"]["email_sent"] is False

    db_session.expire_all()
    appointment = db_session.query(Appointment).one()
    assert appointment.status == "confirmed"
    assert appointment.time_slot == "3:30 PM"
    assert appointment.appointment_date == date(2026, 11, 3)
    assert appointment.confirmation_message == "See you then"


def test_other_doctor_cannot_confirm(client, db_session):
    create_doctor(db_session)
    create_doctor(db_session, email="wilson@ppth.org", doctor_id="DRWILSON", password="oncology")
    appointment_id = _book(client).json()["data"]["appointment_id"]
    token = login_doctor(client, email="wilson@ppth.org", password="oncology")

    response = client.post(
        f"/doctor/appointments/{appointment_id}/confirm",
        json={"time_slot": "10:00 AM", "appointment_date": "2026-11-02"},
        headers=auth_header(token),
    )

    assert response.status_code == 404
    db_session.expire_all()
    assert db_session.query(Appointment).one().status == "pending"


def test_doctor_lists_own_appointments_newest_first(client, db_session):
    create_doctor(db_session)
    _book(client, description="first")
    _book(client, description="second")
    token = login_doctor(client)

    response = client.get("/doctor/appointments", headers=auth_header(token))

    assert response.status_code == 200
    descriptions = [item["description"] for item in response.json()["data"]["appointments"]]
    assert descriptions == ["second", "first"]

    dashboard = client.get("/doctor/dashboard", headers=auth_header(token)).json()["data"]
    assert dashboard["doctor"]["doctor_id"] == "DRHOUSE1"
    assert len(dashboard["appointments"]) == 2
