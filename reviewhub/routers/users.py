"""
Users Router

Profiles, the social graph and notifications.

Endpoints:
- GET /users/me, PUT /users/me - Own profile
- GET /users/me/notifications - Own notifications, newest first
- POST /users/me/notifications/{id}/read - Mark a notification read
- GET /users/{account_id} - Public profile
- POST/DELETE /users/{account_id}/follow - Follow / unfollow
- GET /users/{account_id}/followings, /followers - Social graph pages
- POST/DELETE /users/{account_id}/block - Block / unblock

/me routes are declared before /{account_id} so "me" never reaches the
UUID path parameter.
"""

import uuid

from fastapi import APIRouter, Request, status

from reviewhub.dependencies import ActiveUser, DbSession, Pagination
from reviewhub.schemas.account import AccountPage, AccountPublic, AccountResponse, AccountUpdate
from reviewhub.schemas.notification import NotificationPage, NotificationResponse
from reviewhub.services import follows, notifications
from reviewhub.services.accounts import get_account, update_account
from reviewhub.services.rate_limiter import limit_reads, limit_writes

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Account not found"},
    },
)


# =============================================================================
# Current Account Endpoints (/users/me/...)
# =============================================================================


@router.get("/me", response_model=AccountResponse, summary="Get own profile")
@limit_reads()
def get_own_profile(request: Request, current_user: ActiveUser) -> AccountResponse:
    return AccountResponse.model_validate(current_user)


@router.put("/me", response_model=AccountResponse, summary="Update own profile")
@limit_writes()
def update_own_profile(
    request: Request,
    data: AccountUpdate,
    current_user: ActiveUser,
    db: DbSession,
) -> AccountResponse:
    return AccountResponse.model_validate(update_account(db, current_user, data))


@router.get(
    "/me/notifications",
    response_model=NotificationPage,
    summary="List own notifications",
    description="Newest first. Each sender carries `is_following` for the current account.",
)
@limit_reads()
def list_own_notifications(
    request: Request,
    current_user: ActiveUser,
    db: DbSession,
    page: Pagination,
) -> NotificationPage:
    return notifications.list_notifications(db, current_user.id, page)


@router.post(
    "/me/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read",
)
def read_notification(
    notification_id: int,
    current_user: ActiveUser,
    db: DbSession,
) -> NotificationResponse:
    notification = notifications.mark_read(db, current_user.id, notification_id)
    response = NotificationResponse.model_validate(notification)
    followed = follows.following_ids(db, current_user.id, [notification.sender_id])
    response.sender.is_following = notification.sender_id in followed
    return response


# =============================================================================
# Public Profile and Social Graph
# =============================================================================


@router.get("/{account_id}", response_model=AccountPublic, summary="Get a public profile")
@limit_reads()
def get_profile(request: Request, account_id: uuid.UUID, db: DbSession) -> AccountPublic:
    return AccountPublic.model_validate(get_account(db, account_id))


@router.post(
    "/{account_id}/follow",
    status_code=status.HTTP_201_CREATED,
    summary="Follow an account",
    responses={409: {"description": "Already following"}},
)
@limit_writes()
def follow_account(
    request: Request,
    account_id: uuid.UUID,
    current_user: ActiveUser,
    db: DbSession,
) -> dict:
    follows.follow(db, current_user.id, account_id)
    return {"message": "Followed"}


@router.delete(
    "/{account_id}/follow",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow an account",
)
def unfollow_account(account_id: uuid.UUID, current_user: ActiveUser, db: DbSession) -> None:
    follows.unfollow(db, current_user.id, account_id)


@router.get(
    "/{account_id}/followings",
    response_model=AccountPage,
    summary="Accounts this account follows",
)
def list_followings(account_id: uuid.UUID, db: DbSession, page: Pagination) -> AccountPage:
    return follows.get_followings(db, account_id, page)


@router.get(
    "/{account_id}/followers",
    response_model=AccountPage,
    summary="Accounts following this account",
)
def list_followers(account_id: uuid.UUID, db: DbSession, page: Pagination) -> AccountPage:
    return follows.get_followers(db, account_id, page)


@router.post(
    "/{account_id}/block",
    status_code=status.HTTP_201_CREATED,
    summary="Block an account",
    responses={409: {"description": "Already blocked"}},
)
@limit_writes()
def block_account(
    request: Request,
    account_id: uuid.UUID,
    current_user: ActiveUser,
    db: DbSession,
) -> dict:
    follows.block_user(db, current_user.id, account_id)
    return {"message": "Blocked"}


@router.delete(
    "/{account_id}/block",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unblock an account",
)
def unblock_account(account_id: uuid.UUID, current_user: ActiveUser, db: DbSession) -> None:
    follows.unblock_user(db, current_user.id, account_id)
