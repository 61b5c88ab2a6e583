"""
Comment Model

Threaded comments on a review. A comment with parent_id set is a reply to
another comment of the same review. Comments can tag other accounts
(many-to-many through comment_tagged_accounts).

Comments are soft-deleted.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewhub.database import Base, SoftDeleteMixin, utcnow

if TYPE_CHECKING:
    from reviewhub.models.account import Account


comment_tagged_accounts = Table(
    "comment_tagged_accounts",
    Base.metadata,
    Column(
        "comment_id",
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Comment(SoftDeleteMixin, Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
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
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    author: Mapped["Account"] = relationship("Account")
    tagged_accounts: Mapped[list["Account"]] = relationship(
        "Account",
        secondary=comment_tagged_accounts,
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, review_id={self.review_id}, account_id={self.account_id})>"
