import re
from datetime import datetime, timedelta

from clinic.models.one_time_code import OneTimeCode
from clinic.models.patient import Patient, VerificationMethod
from clinic.services import otp_service


def _code_from(outbox, email: str) -> str:
    html = outbox.sent_to(email)[-1]["html"]
    return re.search(r"\b(\d{6})\b", html).group(1)


def test_send_then_verify_creates_normal_patient(client, outbox, db_session):
    response = client.post("/patient/otp/send", json={"email": "a@x.com"})
    assert response.status_code == 200
    code = _code_from(outbox, "a@x.com")

    response = client.post("/patient/otp/verify", json={"email": "a@x.com", "otp": code})
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["patient_name"] == "A"
    assert payload["access_token"]

    patient = db_session.query(Patient).filter(Patient.email == "a@x.com").one()
    assert patient.verified == VerificationMethod.normal.value
    assert patient.username.startswith("a")
    assert db_session.query(OneTimeCode).filter(OneTimeCode.email == "a@x.com").count() == 0


def test_code_is_single_use(client, outbox):
    client.post("/patient/otp/send", json={"email": "jane@x.com"})
    code = _code_from(outbox, "jane@x.com")

    assert client.post("/patient/otp/verify", json={"email": "jane@x.com", "otp": code}).status_code == 200

    response = client.post("/patient/otp/verify", json={"email": "jane@x.com", "otp": code})
    assert response.status_code == 400
    assert response.json()["data"]["error"] == "INVALID_OR_EXPIRED_CODE"


def test_new_code_supersedes_previous(client, outbox, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(otp_service, "generate_code", lambda: next(codes))

    client.post("/patient/otp/send", json={"email": "bob@x.com"})
    client.post("/patient/otp/send", json={"email": "bob@x.com"})

    response = client.post("/patient/otp/verify", json={"email": "bob@x.com", "otp": "111111"})
    assert response.status_code == 400

    response = client.post("/patient/otp/verify", json={"email": "bob@x.com", "otp": "222222"})
    assert response.status_code == 200


def test_expired_code_is_removed(client, outbox, db_session):
    client.post("/patient/otp/send", json={"email": "late@x.com"})
    code = _code_from(outbox, "late@x.com")

    record = db_session.query(OneTimeCode).filter(OneTimeCode.email == "late@x.com").one()
    record.created_at = datetime.utcnow() - timedelta(minutes=11)
    db_session.commit()

    response = client.post("/patient/otp/verify", json={"email": "late@x.com", "otp": code})
    assert response.status_code == 400
    assert response.json()["data"]["error"] == "CODE_EXPIRED"

    db_session.expire_all()
    assert db_session.query(OneTimeCode).filter(OneTimeCode.email == "late@x.com").count() == 0


def test_generated_codes_are_six_digits():
    for _ in range(200):
        code = otp_service.generate_code()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_email_failure_is_reported(client, outbox):
    outbox.fail = True

    response = client.post("/patient/otp/send", json={"email": "down@x.com"})

    assert response.status_code == 500
    assert response.json()["data"]["error"] == "EMAIL_DISPATCH_FAILED"


def test_google_patient_cannot_use_codes(client, outbox, db_session):
    db_session.add(Patient(name="G", email="g@x.com", verified=VerificationMethod.google.value))
    db_session.commit()

    response = client.post("/patient/otp/send", json={"email": "g@x.com"})

    assert response.status_code == 400
    assert response.json()["data"]["error"] == "FEDERATED_ACCOUNT_REQUIRED"
    assert outbox.messages == []


def test_google_sign_in_creates_google_patient(client, db_session):
    patient, session_record = otp_service.complete_google_sign_in(
        db_session, {"email": "New.User@Gmail.com", "name": "New User", "sub": "123"}
    )

    assert patient.email == "new.user@gmail.com"
    assert patient.name == "New User"
    assert patient.verified == VerificationMethod.google.value
    assert session_record.role == "patient"
    assert session_record.subject == str(patient.id)

    again, _ = otp_service.complete_google_sign_in(db_session, {"email": "new.user@gmail.com"})
    assert again.id == patient.id


def test_patient_home_shows_signed_in_name(client, outbox):
    client.post("/patient/otp/send", json={"email": "carol@x.com"})
    code = _code_from(outbox, "carol@x.com")
    token = client.post("/patient/otp/verify", json={"email": "carol@x.com", "otp": code}).json()["data"]["access_token"]

    response = client.get("/patient", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["data"]["patient_name"] == "Carol"

    response = client.post("/patient/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    response = client.post("/patient/logout", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
