from conftest import auth_header, create_doctor, login_admin, login_doctor

from clinic.models.doctor import DoctorStatus


def test_admin_login_rejects_wrong_password(client):
    response = client.post("/admin/login", json={"email": "admin@ppth.org", "password": "asdf"})

    assert response.status_code == 401


def test_dashboard_counts(client, db_session):
    create_doctor(db_session)
    create_doctor(db_session, email="chase@ppth.org", doctor_id="DRCHASE1", status=DoctorStatus.pending)
    token = login_admin(client)

    response = client.get("/admin/dashboard", headers=auth_header(token))

    assert response.status_code == 200
    payload = response.json()["data"]
    assert [doctor["doctor_id"] for doctor in payload["pending_doctors"]] == ["DRCHASE1"]
    assert [doctor["doctor_id"] for doctor in payload["approved_doctors"]] == ["DRHOUSE1"]
    assert payload["approved_doctors_count"] == 1
    assert payload["total_doctors_count"] == 2


def test_doctor_session_cannot_use_admin_routes(client, db_session):
    create_doctor(db_session)
    create_doctor(db_session, email="chase@ppth.org", doctor_id="DRCHASE1", status=DoctorStatus.pending)
    token = login_doctor(client)

    response = client.post("/admin/doctors/DRCHASE1/approve", headers=auth_header(token))

    assert response.status_code == 403
    assert response.json()["data"]["error"] == "FORBIDDEN"


def test_approve_unknown_doctor(client):
    token = login_admin(client)

    response = client.post("/admin/doctors/MISSING1/approve", headers=auth_header(token))

    assert response.status_code == 404


def test_session_cookie_authenticates(client):
    login_admin(client)

    response = client.get("/admin/dashboard")
    assert response.status_code == 200

    assert client.post("/admin/logout").status_code == 200
    assert client.get("/admin/dashboard").status_code == 401
