from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from .config import Settings
from .errors import MailError

logger = logging.getLogger(__name__)

HOSPITAL_NAME = "MediCare Hospital"
REGISTRATION_SUBJECT = "Hospital Registration Successful"


class MailTransport(Protocol):
    def send(self, to_address: str, subject: str, html_body: str) -> None: ...


class SmtpMailer:
    """STARTTLS SMTP relay (Gmail by default). One attempt per message, no retry."""

    def __init__(self, host: str, port: int, username: str, password: str, timeout: float = 15) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(settings.mail_host, settings.mail_port, settings.email_user, settings.email_pass)

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        if not self.username or not self.password:
            raise MailError("mail transport not configured (EMAIL_USER / EMAIL_PASS)")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.username
        msg["To"] = to_address
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.username, [to_address], msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            raise MailError(f"authentication failed for {self.username}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(str(e)) from e


def registration_email_html(patient_name: str) -> str:
    name = html.escape(patient_name)
    return f"""
        <h2>Welcome to {HOSPITAL_NAME}!</h2>
        <p>Dear {name},</p>
        <p>Your registration has been completed successfully.</p>
        <p>Thank you for choosing our hospital.</p>
        <br>
        <p>Best regards,<br>{HOSPITAL_NAME} Team</p>
    """


def send_registration_email(transport: MailTransport, to_address: str, patient_name: str) -> bool:
    """
    Best effort: the outcome is reported to the caller, never raised.
    A failed send must not undo or fail a registration.
    """
    try:
        transport.send(to_address, REGISTRATION_SUBJECT, registration_email_html(patient_name))
    except Exception as e:
        logger.error("Registration email to %s failed: %s", to_address, e)
        return False

    logger.info("Registration email sent to %s", to_address)
    return True
