"""
Pydantic Schemas Package

Request/response models, kept separate from the SQLAlchemy models so the
API contract can evolve independently of the table layout.
"""

from reviewhub.schemas.account import (
    AccountCreate,
    AccountPage,
    AccountPublic,
    AccountResponse,
    AccountUpdate,
    EmailSendRequest,
    EmailVerifyRequest,
    RefreshTokenRequest,
    TokenResponse,
)
from reviewhub.schemas.comment import (
    CommentCreate,
    CommentPage,
    CommentResponse,
    CommentUpdate,
)
from reviewhub.schemas.notification import (
    NotificationPage,
    NotificationResponse,
    NotificationSender,
)
from reviewhub.schemas.review import (
    ReviewCreate,
    ReviewImageIn,
    ReviewImageResponse,
    ReviewPage,
    ReviewResponse,
    ReviewUpdate,
    ReviewUserStatus,
)

__all__ = [
    "AccountCreate",
    "AccountPage",
    "AccountPublic",
    "AccountResponse",
    "AccountUpdate",
    "EmailSendRequest",
    "EmailVerifyRequest",
    "RefreshTokenRequest",
    "TokenResponse",
    "CommentCreate",
    "CommentPage",
    "CommentResponse",
    "CommentUpdate",
    "NotificationPage",
    "NotificationResponse",
    "NotificationSender",
    "ReviewCreate",
    "ReviewImageIn",
    "ReviewImageResponse",
    "ReviewPage",
    "ReviewResponse",
    "ReviewUpdate",
    "ReviewUserStatus",
]
