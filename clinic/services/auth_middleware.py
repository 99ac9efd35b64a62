from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from clinic.config import settings
from clinic.database import get_db
from clinic.models.user_session import SessionRole, UserSession
from clinic.utils.errors import Forbidden, NotAuthenticated


def _get_auth_context(token: str, db: Session):
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise NotAuthenticated("Invalid or expired session")

    subject = payload.get("sub")
    jti = payload.get("jti")
    role = payload.get("role")
    if not subject or not jti or not role:
        raise NotAuthenticated("Invalid session payload")
    if (payload.get("type") or "access") != "access":
        raise NotAuthenticated("Invalid token type")

    session = db.query(UserSession).filter(
        UserSession.jti == jti,
        UserSession.is_active == True
    ).first()

    if not session:
        raise NotAuthenticated("Session expired or logged out")

    return {"session": session, "payload": payload}


def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.bearer_scheme),
    cookie_token: str | None = Depends(settings.cookie_scheme),
    db: Session = Depends(get_db)
):
    token = credentials.credentials if credentials else cookie_token
    if not token:
        raise NotAuthenticated()
    context = _get_auth_context(token, db)
    context["token"] = token
    context["db"] = db
    return context


def _require_role(context: dict, role: SessionRole) -> UserSession:
    session = context["session"]
    if session.role != role.value:
        raise Forbidden(f"{role.value.capitalize()} access required")
    return session


def get_current_admin(context=Depends(get_current_session)) -> UserSession:
    return _require_role(context, SessionRole.admin)


def get_current_doctor(context=Depends(get_current_session)) -> UserSession:
    return _require_role(context, SessionRole.doctor)


def get_current_patient(context=Depends(get_current_session)) -> UserSession:
    return _require_role(context, SessionRole.patient)


def get_optional_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.bearer_scheme),
    cookie_token: str | None = Depends(settings.cookie_scheme),
    db: Session = Depends(get_db)
) -> UserSession | None:
    token = credentials.credentials if credentials else cookie_token
    if not token:
        return None
    try:
        return _get_auth_context(token, db)["session"]
    except NotAuthenticated:
        return None
