import secrets
from typing import Dict, Optional, Tuple

import resend
from flask import current_app

from .config import Settings

OTP_LENGTH = 4
OTP_VALID_MINUTES = 10


def generate_otp_code() -> str:
    # Four digits, never a leading zero.
    lower_bound = 10 ** (OTP_LENGTH - 1)
    return str(lower_bound + secrets.randbelow(9 * lower_bound))


def build_password_reset_html(name: str, otp: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
  <body style="margin:0;padding:24px;font-family:'Segoe UI','Helvetica Neue',Arial,sans-serif;">
    <h2 style="margin:0 0 16px 0;">OTP for Password Reset</h2>
    <p>Hello {name},</p>
    <p>Your OTP to reset your password is:</p>
    <h3 style="letter-spacing:0.3em;">{otp}</h3>
    <p>This OTP is valid for {OTP_VALID_MINUTES} minutes.</p>
  </body>
</html>"""


class Mailer:
    def __init__(self, settings: Settings):
        self.api_key = settings.resend_api_key
        self.sender = settings.mail_sender

    def send(
        self, recipient: str, subject: str, html: str, text: Optional[str] = None
    ) -> Tuple[bool, Optional[str]]:
        configured_api_key = (self.api_key or "").strip()
        if not configured_api_key:
            return False, "Resend API key is not configured."

        payload: Dict[str, object] = {
            "from": self.sender,
            "to": [recipient],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        previous_api_key = getattr(resend, "api_key", None)
        resend.api_key = configured_api_key
        try:
            response = resend.Emails.send(payload)
        except Exception as exc:
            return False, str(exc)
        finally:
            resend.api_key = previous_api_key

        if not isinstance(response, dict) or not response.get("id"):
            return False, str(response)

        return True, None

    def send_password_reset_otp(self, recipient: str, name: str, otp: str):
        text_body = (
            f"Your OTP to reset your password is {otp}. "
            f"It is valid for {OTP_VALID_MINUTES} minutes."
        )
        return self.send(
            recipient,
            "Your Password Reset OTP",
            build_password_reset_html(name, otp),
            text_body,
        )


def get_mailer() -> Mailer:
    return current_app.extensions["mailer"]
