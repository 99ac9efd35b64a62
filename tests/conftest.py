import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"
TEST_UPLOAD_DIR = BASE_DIR / "uploads" / "test_tmp"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("SESSION_SECRET", "test-secret")
os.environ.setdefault("ADMIN_EMAIL", "admin@ppth.org")
os.environ.setdefault("ADMIN_PASSWORD", "admin-secret")
os.environ.setdefault("UPLOAD_TMP_DIR", str(TEST_UPLOAD_DIR))
os.environ.setdefault("SEED_DEMO_DOCTORS", "false")

import clinic.main as main  # noqa: E402  (import after env vars are set)
from clinic.database import Base, SessionLocal, engine  # noqa: E402
from clinic.models.doctor import Doctor, DoctorStatus  # noqa: E402
from clinic.services import email_services, spaces_service, symptom_service  # noqa: E402
from clinic.services.auth_service import get_password_hash  # noqa: E402
from clinic.utils.errors import EmailDispatchFailed, StorageUploadFailed  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


class FakeOutbox:
    """Records outgoing emails instead of delivering them."""

    def __init__(self):
        self.messages = []
        self.fail = False

    def send(self, to_email: str, subject: str, html_message: str) -> None:
        if self.fail:
            raise EmailDispatchFailed()
        self.messages.append({"to": to_email, "subject": subject, "html": html_message})

    def sent_to(self, email: str) -> list[dict]:
        return [message for message in self.messages if message["to"] == email]


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.fail = False

    def upload(self, local_path, key, content_type=None):
        if self.fail:
            raise StorageUploadFailed()
        self.uploads.append(
            {
                "key": key,
                "path": Path(local_path),
                "content": Path(local_path).read_bytes(),
                "content_type": content_type,
            }
        )
        return spaces_service.StoredObject(secure_url=f"https://cdn.test/{key}", storage_id=key)


class FakeLLM:
    def __init__(self):
        self.reply = "You may have a common cold. Would you like to tell me more?"
        self.calls = []
        self.error = None

    async def complete(self, messages, model=None):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture()
def outbox(monkeypatch):
    fake = FakeOutbox()
    monkeypatch.setattr(email_services, "send_email", fake.send)
    return fake


@pytest.fixture()
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(spaces_service, "upload_file", fake.upload)
    return fake


@pytest.fixture()
def llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(symptom_service, "complete_chat", fake.complete)
    return fake


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(monkeypatch, outbox, storage, llm):
    """Provide a TestClient over fresh tables with startup seeding patched out."""
    monkeypatch.setattr(main, "run_seed", lambda: None)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    with TestClient(main.app) as test_client:
        yield test_client


def create_doctor(
    session,
    email: str = "house@ppth.org",
    password: str = "vicodin",
    status: DoctorStatus = DoctorStatus.approved,
    doctor_id: str = "DRHOUSE1",
    **fields,
) -> Doctor:
    doctor = Doctor(
        doctor_id=doctor_id,
        name=fields.pop("name", "Gregory House"),
        email=email,
        password_hash=get_password_hash(password),
        specialization=fields.pop("specialization", "diagnostics"),
        location=fields.pop("location", "princeton"),
        hospital_name=fields.pop("hospital_name", "Plainsboro"),
        status=status.value,
        **fields,
    )
    session.add(doctor)
    session.commit()
    session.refresh(doctor)
    return doctor


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login_admin(client) -> str:
    response = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.json()["data"]["access_token"]


def login_doctor(client, email: str = "house@ppth.org", password: str = "vicodin") -> str:
    response = client.post("/doctor/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.json()
    return response.json()["data"]["access_token"]
