"""
Email Service

Sends transactional emails (verification codes) over SMTP. When SMTP is
not configured the message is written to the log instead, which is what
development and tests use.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from reviewhub.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailSender:
    """SMTP email sender with a console mode."""

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.mail_from
        self.console_mode = not (self.smtp_host and self.smtp_user and self.smtp_password)

    def send_email(self, to_email: str, subject: str, html_body: str, plain_body: str) -> bool:
        """
        Send an email.

        Returns:
            True if sent (or logged in console mode), False if SMTP failed
        """
        if self.console_mode:
            logger.info(f"[console email] to={to_email} subject={subject!r}\n{plain_body}")
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(plain_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"Email sent to {to_email}: {subject}")
        return True

    def send_verification_code(self, to_email: str, code: str, ttl_minutes: int) -> bool:
        subject = "Your verification code"
        plain_body = (
            f"Your verification code is {code}.\n"
            f"It expires in {ttl_minutes} minutes."
        )
        html_body = (
            f"<p>Your verification code is <strong>{code}</strong>.</p>"
            f"<p>It expires in {ttl_minutes} minutes.</p>"
        )
        return self.send_email(to_email, subject, html_body, plain_body)


_email_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    global _email_sender
    if _email_sender is None:
        _email_sender = EmailSender()
    return _email_sender
