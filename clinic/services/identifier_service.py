import random
import time
import string

from clinic.models.doctor import Doctor

_DOCTOR_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_doctor_id(db, length: int = 8) -> str:
    for _ in range(12):
        code = "".join(random.choice(_DOCTOR_ID_ALPHABET) for _ in range(length))
        exists = db.query(Doctor).filter(Doctor.doctor_id == code).first()
        if not exists:
            return code
    suffix = "".join(random.choice(_DOCTOR_ID_ALPHABET) for _ in range(12))
    return f"DR{suffix}"


def email_local_part(email: str) -> str:
    return email.split("@")[0]


def default_display_name(email: str) -> str:
    local = email_local_part(email)
    return local[:1].upper() + local[1:]


def generate_email_username(email: str) -> str:
    return f"{email_local_part(email)}{random.randint(0, 9999)}"


def generate_booking_username() -> str:
    return f"patient{int(time.time() * 1000)}{random.randint(0, 999)}"
