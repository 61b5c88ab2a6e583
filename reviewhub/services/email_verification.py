"""
Email Verification Service

Password sign-up is a two-step flow:
1. send_verification(): issue a fresh 6-digit code for an email that is
   not registered yet, replacing any previous code, and mail it
2. verify_email(): mark the email verified when the code matches

register_account() then only accepts verified emails.
"""

import logging
import secrets
from datetime import UTC, timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from reviewhub.config import get_settings
from reviewhub.database import utcnow
from reviewhub.exceptions import BadRequestError, ConflictError
from reviewhub.models import Account, EmailVerification
from reviewhub.services.email import EmailSender, get_email_sender

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Six-digit numeric code, 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def send_verification(
    db: Session,
    email: str,
    sender: EmailSender | None = None,
) -> EmailVerification:
    """
    Issue and send a verification code.

    Raises:
        ConflictError: an account already uses this email
    """
    if db.execute(select(Account.id).where(Account.email == email)).scalar_one_or_none():
        raise ConflictError("Email already registered")

    db.execute(delete(EmailVerification).where(EmailVerification.email == email))
    verification = EmailVerification(email=email, code=generate_code())
    db.add(verification)
    db.commit()
    db.refresh(verification)

    settings = get_settings()
    sender = sender or get_email_sender()
    if not sender.send_verification_code(
        email, verification.code, settings.email_verification_ttl_minutes
    ):
        logger.error(f"Verification code for {email} was stored but not delivered")
    return verification


def verify_email(db: Session, email: str, code: str) -> EmailVerification:
    """
    Verify an email with the code that was sent to it.

    Raises:
        BadRequestError: no code was issued, the code is wrong or expired
        ConflictError: the email is already verified
    """
    verification = db.execute(
        select(EmailVerification).where(EmailVerification.email == email)
    ).scalar_one_or_none()
    if verification is None:
        raise BadRequestError("No verification code was requested for this email")
    if verification.is_verified:
        raise ConflictError("Email already verified")
    if not secrets.compare_digest(verification.code, code):
        raise BadRequestError("Invalid verification code")

    ttl = timedelta(minutes=get_settings().email_verification_ttl_minutes)
    created_at = verification.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    if utcnow() - created_at > ttl:
        raise BadRequestError("Verification code expired")

    verification.verified_at = utcnow()
    db.commit()
    db.refresh(verification)
    logger.info(f"Email verified: {email}")
    return verification
