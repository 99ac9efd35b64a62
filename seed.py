import logging

from clinic.config import settings
from clinic.database import SessionLocal
from clinic.models.doctor import Doctor, DoctorStatus
from clinic.services.auth_service import get_password_hash
from clinic.services.identifier_service import generate_doctor_id

logger = logging.getLogger(__name__)

DEMO_DOCTORS = [
    {
        "name": "Dr. Asha Menon",
        "email": "asha.menon@demo.clinic",
        "phone": "9000000001",
        "gender": "female",
        "specialization": "cardiology",
        "location": "bangalore",
        "hospital_name": "City Heart Centre",
    },
    {
        "name": "Dr. Rohan Kapoor",
        "email": "rohan.kapoor@demo.clinic",
        "phone": "9000000002",
        "gender": "male",
        "specialization": "general physician",
        "location": "delhi",
        "hospital_name": "Lakeview Hospital",
    },
    {
        "name": "Dr. Meera Iyer",
        "email": "meera.iyer@demo.clinic",
        "phone": "9000000003",
        "gender": "female",
        "specialization": "dermatology",
        "location": "mumbai",
        "hospital_name": "",
    },
]

DEMO_PASSWORD = "demo-password"


def seed_demo_doctors(db) -> int:
    if db.query(Doctor).count():
        return 0

    for entry in DEMO_DOCTORS:
        db.add(
            Doctor(
                doctor_id=generate_doctor_id(db),
                password_hash=get_password_hash(DEMO_PASSWORD),
                status=DoctorStatus.approved.value,
                license_verified=True,
                license_notes="Seeded demo account",
                **entry,
            )
        )
        db.flush()
    db.commit()
    return len(DEMO_DOCTORS)


def run_seed():
    if not settings.SEED_DEMO_DOCTORS:
        return

    db = SessionLocal()
    try:
        created = seed_demo_doctors(db)
        if created:
            logger.info("Seeded %s demo doctors", created)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    settings.SEED_DEMO_DOCTORS = True
    run_seed()
