import logging
import smtplib
from email.mime.text import MIMEText

from clinic.config import settings
from clinic.services import gmail_oauth_service
from clinic.utils.errors import EmailDispatchFailed

logger = logging.getLogger(__name__)


OTP_TEMPLATE = """
<!DOCTYPE html>
<html>
  <body style="margin:0; padding:0; font-family:Arial, Helvetica, sans-serif; background:#f4f4f4;">
    <table width="100%" cellpadding="0" cellspacing="0" style="background:#f4f4f4; padding:40px 0;">
      <tr>
        <td align="center">
          <table width="420" cellpadding="0" cellspacing="0" style="background:#ffffff; border-radius:12px; padding:30px;">
            <tr>
              <td align="center" style="font-size:22px; font-weight:bold; color:#333;">
                Your Clinic Portal verification code
              </td>
            </tr>
            <tr><td style="height:20px;"></td></tr>
            <tr>
              <td style="font-size:15px; color:#555; line-height:1.6;">
                Hello,<br><br>
                Use the code below to verify your email and continue to the patient portal.
              </td>
            </tr>
            <tr><td style="height:30px;"></td></tr>
            <tr>
              <td align="center">
                <div style="font-size:32px; font-weight:bold; letter-spacing:6px; padding:16px 24px;
                            background:#2563eb; color:white; border-radius:8px; display:inline-block;">
                  {{OTP}}
                </div>
              </td>
            </tr>
            <tr><td style="height:30px;"></td></tr>
            <tr>
              <td style="font-size:14px; color:#999; line-height:1.5;">
                This code is valid for {{MINUTES}} minutes.<br>
                If you didn't request this, you may ignore this email.
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""

CONFIRMATION_TEMPLATE = """
<!DOCTYPE html>
<html>
  <body style="margin:0; padding:0; font-family:Arial, Helvetica, sans-serif; background:#f4f4f4;">
    <table width="100%" cellpadding="0" cellspacing="0" style="background:#f4f4f4; padding:40px 0;">
      <tr>
        <td align="center">
          <table width="480" cellpadding="0" cellspacing="0" style="background:#ffffff; border-radius:12px; padding:30px;">
            <tr>
              <td style="font-size:22px; font-weight:bold; color:#333;">Appointment confirmed</td>
            </tr>
            <tr><td style="height:20px;"></td></tr>
            <tr>
              <td style="font-size:15px; color:#555; line-height:1.6;">
                Dear {{PATIENT}},<br><br>
                {{MESSAGE}}<br><br>
                <strong>Doctor:</strong> {{DOCTOR}}<br>
                <strong>Specialization:</strong> {{SPECIALIZATION}}<br>
                <strong>Hospital:</strong> {{HOSPITAL}}<br>
                <strong>Date:</strong> {{DATE}}<br>
                <strong>Time:</strong> {{SLOT}}
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""


def _send_smtp(to_email: str, subject: str, html_message: str) -> None:
    if not settings.SMTP_HOST:
        raise RuntimeError("SMTP_HOST is not configured")

    msg = MIMEText(html_message, "html")
    msg["Subject"] = subject
    msg["From"] = settings.FROM_EMAIL or settings.SMTP_USER
    msg["To"] = to_email

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
        server.send_message(msg)


def send_email(to_email: str, subject: str, html_message: str) -> None:
    """Deliver one email through the configured backend or raise EmailDispatchFailed."""
    try:
        if settings.EMAIL_BACKEND == "gmail":
            gmail_oauth_service.send_gmail(to_email, subject, html_message)
        else:
            _send_smtp(to_email, subject, html_message)
    except Exception as exc:
        logger.error("Email dispatch to %s failed: %s", to_email, exc)
        raise EmailDispatchFailed() from exc
    logger.info("Email '%s' sent to %s", subject, to_email)


def send_email_otp(to_email: str, otp: str) -> None:
    html = (
        OTP_TEMPLATE
        .replace("{{OTP}}", otp)
        .replace("{{MINUTES}}", str(settings.OTP_EXPIRE_MINUTES))
    )
    send_email(to_email, "Your Clinic Portal verification code", html)


def send_appointment_confirmation(appointment, doctor) -> None:
    if not appointment.patient_email:
        raise EmailDispatchFailed("Patient has no email address on file")

    html = (
        CONFIRMATION_TEMPLATE
        .replace("{{PATIENT}}", appointment.patient_name or "Patient")
        .replace("{{MESSAGE}}", appointment.confirmation_message or "")
        .replace("{{DOCTOR}}", doctor.name if doctor else "Your doctor")
        .replace("{{SPECIALIZATION}}", (doctor.specialization or "").title() if doctor else "")
        .replace("{{HOSPITAL}}", (doctor.hospital_name or "-") if doctor else "-")
        .replace("{{DATE}}", appointment.appointment_date.isoformat() if appointment.appointment_date else "")
        .replace("{{SLOT}}", appointment.time_slot or "")
    )
    send_email(appointment.patient_email, "Your appointment has been confirmed", html)
