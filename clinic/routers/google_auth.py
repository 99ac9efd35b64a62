import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from clinic.config import settings
from clinic.database import get_db
from clinic.services import otp_service
from clinic.services.auth_service import attach_session_cookie
from clinic.services.google_auth_service import google_oauth
from clinic.utils.errors import UpstreamUnavailable, ValidationFailed
from clinic.utils.response import handle_exception

router = APIRouter(prefix="/patient/auth/google", tags=["Google Auth"])
logger = logging.getLogger(__name__)


@router.get("/login")
async def google_login(request: Request):
    redirect_uri = settings.GOOGLE_REDIRECT_URI or str(request.url_for("google_callback"))
    return await google_oauth.authorize_redirect(request, redirect_uri)


@router.get("/callback", name="google_callback")
async def google_callback(request: Request, db: Session = Depends(get_db)):
    try:
        try:
            token = await google_oauth.authorize_access_token(request)
        except Exception as exc:
            logger.error("Google token exchange failed: %s", exc)
            raise UpstreamUnavailable("Google authentication failed") from exc

        user_info = token.get("userinfo")
        if not user_info:
            raise ValidationFailed("Invalid Google token")

        patient, session_record = otp_service.complete_google_sign_in(db, dict(user_info))
        logger.info("Patient id=%s signed in with Google", patient.id)

        response = RedirectResponse(url="/patient", status_code=303)
        return attach_session_cookie(response, session_record.token)
    except Exception as exc:
        return handle_exception(exc)
