import base64
import logging
import os
from email.mime.text import MIMEText

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from clinic.config import settings

logger = logging.getLogger(__name__)

# Gmail API scope
SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


def get_gmail_service():
    """Build a Gmail client from the authorised token file; expired tokens are refreshed in place."""
    token_path = settings.GMAIL_TOKEN_FILE
    if not token_path or not os.path.exists(token_path):
        raise RuntimeError(f"Gmail token file not found at {token_path}")

    creds = Credentials.from_authorized_user_file(token_path, SCOPES)

    if not creds.valid:
        if creds.expired and creds.refresh_token:
            creds.refresh(Request())
            with open(token_path, "w") as token:
                token.write(creds.to_json())
        else:
            raise RuntimeError("Gmail token is invalid and cannot be refreshed")

    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def send_gmail(to_email: str, subject: str, html_message: str) -> dict:
    service = get_gmail_service()

    msg = MIMEText(html_message, "html")
    msg["to"] = to_email
    msg["subject"] = subject
    if settings.FROM_EMAIL:
        msg["from"] = settings.FROM_EMAIL

    encoded_msg = base64.urlsafe_b64encode(msg.as_bytes()).decode()

    result = (
        service.users()
        .messages()
        .send(userId="me", body={"raw": encoded_msg})
        .execute()
    )

    logger.info("Gmail message sent id=%s", result.get("id"))
    return result
