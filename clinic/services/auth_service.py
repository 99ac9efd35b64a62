import hmac
import logging
import uuid
from datetime import datetime, timedelta

from fastapi.responses import Response
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from clinic.config import settings
from clinic.models.user_session import SessionRole, UserSession
from clinic.utils.errors import InvalidCredentials

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=settings.JWT_ALGORITHM)


def open_session(
    db: Session,
    role: SessionRole,
    subject: str,
    email: str | None = None,
    display_name: str | None = None,
) -> UserSession:
    """Persist a session row for a freshly authenticated principal and sign its token."""
    jti = str(uuid.uuid4())
    token = create_access_token({"sub": str(subject), "role": role.value, "jti": jti})
    session_record = UserSession(
        role=role.value,
        subject=str(subject),
        email=email,
        display_name=display_name,
        jti=jti,
        token=token,
    )
    db.add(session_record)
    db.commit()
    db.refresh(session_record)
    logger.info("Opened %s session id=%s", role.value, session_record.id)
    return session_record


def revoke_session(db: Session, session_record: UserSession) -> None:
    session_record.is_active = False
    session_record.revoked_at = datetime.utcnow()
    session_record.token = None
    db.commit()


def attach_session_cookie(response: Response, token: str) -> Response:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


def clear_session_cookie(response: Response) -> Response:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)
    return response


def authenticate_admin(db: Session, email: str, password: str) -> UserSession:
    """Check the configured admin credentials and open an admin session."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.warning("Admin login attempted but ADMIN_EMAIL/ADMIN_PASSWORD are not configured")
        raise InvalidCredentials()

    email_ok = hmac.compare_digest(email.strip().lower().encode(), settings.ADMIN_EMAIL.strip().lower().encode())
    password_ok = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    if not (email_ok and password_ok):
        raise InvalidCredentials()

    return open_session(db, SessionRole.admin, subject=settings.ADMIN_EMAIL, email=settings.ADMIN_EMAIL, display_name="Admin")
