"""
SQLAlchemy Models Package

Import all models here so that:
1. They are available as: from reviewhub.models import Review, Account
2. Alembic discovers them through Base.metadata
3. String-based relationship targets resolve
"""

from reviewhub.models.account import Account, AuthProvider
from reviewhub.models.social import Follow, UserBlock
from reviewhub.models.review import Review, ReviewImage, ReviewTag
from reviewhub.models.reaction import ReviewBookmark, ReviewDislike, ReviewLike
from reviewhub.models.comment import Comment, comment_tagged_accounts
from reviewhub.models.notification import Notification, NotificationType
from reviewhub.models.email_verification import EmailVerification

__all__ = [
    "Account",
    "AuthProvider",
    "Follow",
    "UserBlock",
    "Review",
    "ReviewImage",
    "ReviewTag",
    "ReviewBookmark",
    "ReviewDislike",
    "ReviewLike",
    "Comment",
    "comment_tagged_accounts",
    "Notification",
    "NotificationType",
    "EmailVerification",
]
