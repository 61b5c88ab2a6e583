"""
Account Service

Lookups, password registration, profile updates, and find-or-create for
OAuth sign-ins.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from reviewhub.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from reviewhub.models import Account, AuthProvider, EmailVerification
from reviewhub.schemas.account import AccountCreate, AccountUpdate
from reviewhub.services.oauth import OAuthUserData
from reviewhub.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def get_account(db: Session, account_id: uuid.UUID) -> Account:
    """Get an account by id or raise NotFoundError."""
    account = db.execute(select(Account).where(Account.id == account_id)).scalar_one_or_none()
    if account is None:
        raise NotFoundError(f"Account {account_id} not found")
    return account


def ensure_account_exists(db: Session, account_id: uuid.UUID) -> None:
    stmt = select(Account.id).where(Account.id == account_id)
    if db.execute(stmt).scalar_one_or_none() is None:
        raise NotFoundError(f"Account {account_id} not found")


def get_account_by_email(db: Session, email: str) -> Account | None:
    return db.execute(select(Account).where(Account.email == email)).scalar_one_or_none()


def _nickname_taken(db: Session, nickname: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Account.id).where(Account.nickname == nickname)
    if exclude_id is not None:
        stmt = stmt.where(Account.id != exclude_id)
    return db.execute(stmt).scalar_one_or_none() is not None


def register_account(db: Session, data: AccountCreate) -> Account:
    """
    Create a password account.

    Raises:
        ConflictError: email or nickname already in use
        BadRequestError: the email has not been verified
    """
    if get_account_by_email(db, data.email) is not None:
        raise ConflictError("Email already registered")
    if _nickname_taken(db, data.nickname):
        raise ConflictError("Nickname already taken")

    verification = db.execute(
        select(EmailVerification).where(EmailVerification.email == data.email)
    ).scalar_one_or_none()
    if verification is None or not verification.is_verified:
        raise BadRequestError("Email address has not been verified")

    account = Account(
        email=data.email,
        nickname=data.nickname,
        profile_img=data.profile_img,
        hashed_password=hash_password(data.password),
        auth_provider=AuthProvider.LOCAL.value,
    )
    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info(f"New account registered: {account.email}")
    return account


def authenticate(db: Session, email: str, password: str) -> Account:
    """Check email/password; raises UnauthorizedError on any mismatch."""
    account = get_account_by_email(db, email)
    if account is None or not account.hashed_password:
        logger.warning(f"Login failed: no password account for {email}")
        raise UnauthorizedError("Incorrect email or password")
    if not verify_password(password, account.hashed_password):
        logger.warning(f"Login failed: incorrect password for {email}")
        raise UnauthorizedError("Incorrect email or password")
    return account


def update_account(db: Session, account: Account, data: AccountUpdate) -> Account:
    if data.nickname is not None and data.nickname != account.nickname:
        if _nickname_taken(db, data.nickname, exclude_id=account.id):
            raise ConflictError("Nickname already taken")
        account.nickname = data.nickname
    if data.profile_img is not None:
        account.profile_img = data.profile_img
    db.commit()
    db.refresh(account)
    return account


def _unique_nickname(db: Session, base: str) -> str:
    base = base[:40] or "user"
    nickname = base
    counter = 1
    while _nickname_taken(db, nickname):
        nickname = f"{base}{counter}"
        counter += 1
    return nickname


def get_or_create_oauth_account(db: Session, oauth_data: OAuthUserData) -> Account:
    """
    Get the account for an OAuth sign-in, creating it on first sign-in.

    Account linking rules:
    1. Same provider + provider key → that account
    2. Same email → link the provider to that account
    3. Otherwise create a new account with a unique nickname
    """
    stmt = select(Account).where(
        Account.auth_provider == oauth_data.provider,
        Account.provider_key == oauth_data.provider_key,
    )
    account = db.execute(stmt).scalar_one_or_none()
    if account is not None:
        return account

    account = get_account_by_email(db, oauth_data.email)
    if account is not None:
        logger.info(f"Linking {oauth_data.provider} to existing account: {account.email}")
        account.auth_provider = oauth_data.provider
        account.provider_key = oauth_data.provider_key
        if oauth_data.profile_img and not account.profile_img:
            account.profile_img = oauth_data.profile_img
        db.commit()
        return account

    account = Account(
        email=oauth_data.email,
        nickname=_unique_nickname(db, oauth_data.nickname or oauth_data.email.split("@")[0]),
        profile_img=oauth_data.profile_img,
        auth_provider=oauth_data.provider,
        provider_key=oauth_data.provider_key,
    )
    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info(f"Created new {oauth_data.provider} account: {account.email}")
    return account
