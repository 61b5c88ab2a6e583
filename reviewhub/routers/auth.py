"""
Authentication Router

Handles account authentication endpoints:
- Email verification (send code, verify code)
- Registration (verified email + password)
- Login (email/password → JWT tokens)
- Token refresh and logout
- Current account
- Naver and Kakao OAuth sign-in

Security:
=========
- Passwords are hashed with bcrypt before storage
- Access tokens are short-lived (15 min default) and sent as Bearer tokens
- Refresh tokens (7 days default) live in an httpOnly cookie
- OAuth state is kept in a short-lived httpOnly cookie and checked on callback
"""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from starlette.responses import RedirectResponse

from reviewhub.config import get_settings
from reviewhub.database import utcnow
from reviewhub.dependencies import ActiveUser, DbSession
from reviewhub.models import Account
from reviewhub.schemas.account import (
    AccountCreate,
    AccountResponse,
    EmailSendRequest,
    EmailVerifyRequest,
    RefreshTokenRequest,
    TokenResponse,
)
from reviewhub.services import oauth
from reviewhub.services.accounts import (
    authenticate,
    get_or_create_oauth_account,
    register_account,
)
from reviewhub.services.email_verification import send_verification, verify_email
from reviewhub.services.rate_limiter import limit_email_codes, limit_sign_in
from reviewhub.services.security import (
    account_id_from_payload,
    create_access_token,
    create_token_pair,
    verify_token_type,
)

logger = logging.getLogger(__name__)
settings = get_settings()

OAUTH_STATE_COOKIE = "oauth_state"

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict (email/nickname already exists)"},
    },
)


def _token_response(access_token: str) -> TokenResponse:
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
    )


def _start_session(db: Session, response: Response, account: Account) -> TokenResponse:
    """Issue tokens, set the refresh cookie and record the login time."""
    access_token, refresh_token = create_token_pair(account.id)

    account.last_login_at = utcnow()
    db.commit()

    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )
    return _token_response(access_token)


# -------------------------------------------------------------------------
# Email Verification
# -------------------------------------------------------------------------
@router.post(
    "/email/send",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send an email verification code",
)
@limit_email_codes()
def send_email_code(request: Request, body: EmailSendRequest, db: DbSession) -> dict:
    send_verification(db, body.email)
    return {"message": "Verification code sent"}


@router.post("/email/verify", summary="Verify an email with its code")
@limit_sign_in()
def verify_email_code(request: Request, body: EmailVerifyRequest, db: DbSession) -> dict:
    verify_email(db, body.email, body.code)
    return {"message": "Email verified"}


# -------------------------------------------------------------------------
# Registration / Login
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="""
    Create an account with a verified email and a password.

    **Password Requirements:**
    - 8 to 72 characters
    - At least 1 letter and 1 number
    """,
)
@limit_email_codes()
def register(request: Request, account_data: AccountCreate, db: DbSession) -> AccountResponse:
    account = register_account(db, account_data)
    return AccountResponse.model_validate(account)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    description="""
    Authenticate with email and password (OAuth2 password form; put the
    email in the `username` field).

    Returns an access token; the refresh token is set as an httpOnly cookie.
    """,
)
@limit_sign_in()
def login(
    request: Request,
    response: Response,
    db: DbSession,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> TokenResponse:
    account = authenticate(db, form_data.username, form_data.password)
    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    token = _start_session(db, response, account)
    logger.info(f"Account logged in: {account.email}")
    return token


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="""
    Get a new access token from the refresh token cookie, or from
    `refresh_token` in the request body.
    """,
)
@limit_sign_in()
def refresh_token(
    request: Request,
    db: DbSession,
    body: RefreshTokenRequest | None = None,
) -> TokenResponse:
    token = body.refresh_token if body and body.refresh_token else request.cookies.get("refresh_token")
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token_type(token, "refresh")
    account_id = account_id_from_payload(payload) if payload else None
    account = db.get(Account, account_id) if account_id else None
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    return _token_response(create_access_token({"sub": str(account.id)}))


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="Clears the refresh token cookie. The access token stays valid until it expires.",
)
def logout(response: Response, current_user: ActiveUser) -> None:
    response.delete_cookie(
        key="refresh_token",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    logger.info(f"Account logged out: {current_user.email}")


@router.get("/me", response_model=AccountResponse, summary="Get current account")
def get_me(current_user: ActiveUser) -> AccountResponse:
    return AccountResponse.model_validate(current_user)


# =============================================================================
# OAuth Endpoints (Naver, Kakao)
# =============================================================================


def _oauth_redirect(provider: str) -> RedirectResponse:
    if not oauth.is_configured(provider):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{provider.capitalize()} OAuth is not configured",
        )

    state = secrets.token_urlsafe(16)
    redirect = RedirectResponse(url=oauth.get_authorization_url(provider, state))
    redirect.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=600,
    )
    return redirect


async def _oauth_callback(
    provider: str,
    request: Request,
    response: Response,
    db: Session,
    code: str | None,
    state: str | None,
    error: str | None,
) -> TokenResponse:
    if not oauth.is_configured(provider):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{provider.capitalize()} OAuth is not configured",
        )
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"OAuth error: {error}")
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Authorization code required",
        )

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")

    try:
        oauth_data = await oauth.fetch_oauth_user(provider, code)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

    account = get_or_create_oauth_account(db, oauth_data)
    token = _start_session(db, response, account)
    response.delete_cookie(OAUTH_STATE_COOKIE)

    logger.info(f"{provider} OAuth login: {account.email}")
    return token


@router.get(
    "/naver",
    summary="Login with Naver",
    responses={
        307: {"description": "Redirect to Naver OAuth"},
        400: {"description": "Naver OAuth not configured"},
    },
)
def naver_login() -> RedirectResponse:
    return _oauth_redirect("naver")


@router.get("/naver/callback", response_model=TokenResponse, summary="Naver OAuth callback")
async def naver_callback(
    request: Request,
    response: Response,
    db: DbSession,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> TokenResponse:
    return await _oauth_callback("naver", request, response, db, code, state, error)


@router.get(
    "/kakao",
    summary="Login with Kakao",
    responses={
        307: {"description": "Redirect to Kakao OAuth"},
        400: {"description": "Kakao OAuth not configured"},
    },
)
def kakao_login() -> RedirectResponse:
    return _oauth_redirect("kakao")


@router.get("/kakao/callback", response_model=TokenResponse, summary="Kakao OAuth callback")
async def kakao_callback(
    request: Request,
    response: Response,
    db: DbSession,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> TokenResponse:
    return await _oauth_callback("kakao", request, response, db, code, state, error)
