"""
Reaction Models

Per-account edges on a review: like, dislike and bookmark. Each edge is
unique per (review, account) and timestamped; the ranking job counts
like/dislike edges created inside a time window.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from reviewhub.database import Base, utcnow


class ReactionMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    @declared_attr.directive
    def __table_args__(cls):
        return (
            UniqueConstraint(
                "review_id", "account_id", name=f"uq_{cls.__tablename__}_review_account"
            ),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(review_id={self.review_id}, account_id={self.account_id})>"


class ReviewLike(ReactionMixin, Base):
    __tablename__ = "review_likes"


class ReviewDislike(ReactionMixin, Base):
    __tablename__ = "review_dislikes"


class ReviewBookmark(ReactionMixin, Base):
    __tablename__ = "review_bookmarks"
