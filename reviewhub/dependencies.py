"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends():
database sessions, pagination parameters and the current account.

Route signatures use the Annotated aliases at the bottom of each section:

    def list_reviews(db: DbSession, page: Pagination, viewer: OptionalUser):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from reviewhub.database import get_db
from reviewhub.models import Account
from reviewhub.services.pagination import MAX_PAGE_SIZE, PageRequest
from reviewhub.services.security import account_id_from_payload, verify_token_type

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
def get_page_request(
    page: int = Query(
        default=1,
        ge=1,
        description="Page number (1-indexed)",
        examples=[1, 2, 3],
    ),
    size: int = Query(
        default=10,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Number of items per page (max {MAX_PAGE_SIZE})",
        examples=[10, 25, 50],
    ),
) -> PageRequest:
    """
    Page and size from the query string:
        GET /api/v1/reviews/?page=2&size=20
    """
    return PageRequest(page=page, size=size)


Pagination = Annotated[PageRequest, Depends(get_page_request)]


# =============================================================================
# JWT Authentication
# =============================================================================
# OAuth2PasswordBearer extracts "Authorization: Bearer <token>" and adds the
# Authorize button to Swagger UI.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=True,
)

oauth2_scheme_optional = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False,
)


def _account_from_token(db: Session, token: str) -> Account | None:
    payload = verify_token_type(token, "access")
    if payload is None:
        return None
    account_id = account_id_from_payload(payload)
    if account_id is None:
        return None
    return db.execute(select(Account).where(Account.id == account_id)).scalar_one_or_none()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Account:
    """
    Resolve the account behind the Bearer access token.

    Raises:
        HTTPException: 401 if the token is invalid or the account is gone
    """
    account = _account_from_token(db, token)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account


def get_current_active_user(
    current_user: Account = Depends(get_current_user),
) -> Account:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return current_user


def get_optional_current_user(
    token: str | None = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> Account | None:
    """
    The signed-in account, or None for anonymous requests.

    Feeds use this to decide whether to apply the user-status overlay; an
    invalid token is treated as anonymous.
    """
    if not token:
        return None
    account = _account_from_token(db, token)
    if account is None or not account.is_active:
        return None
    return account


CurrentUser = Annotated[Account, Depends(get_current_user)]
ActiveUser = Annotated[Account, Depends(get_current_active_user)]
OptionalUser = Annotated[Account | None, Depends(get_optional_current_user)]
