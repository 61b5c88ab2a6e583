"""
Notification Model

A persisted notification from one account to another. The row is the
source of truth for the notification list; delivery (SSE/push) is done by
an external service that consumes `notification.create` events.
"""

import uuid
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewhub.database import Base, utcnow

if TYPE_CHECKING:
    from reviewhub.models.account import Account


class NotificationType(IntEnum):
    """Notification kinds. The integer values are part of the event contract."""
    FOLLOW = 1
    REVIEW_LIKE = 2
    REVIEW_COMMENT = 3
    COMMENT_TAG = 4


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[int] = mapped_column(Integer, nullable=False)
    review_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    sender: Mapped["Account"] = relationship("Account", foreign_keys=[sender_id])

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type={self.type}, "
            f"{self.sender_id} -> {self.recipient_id})>"
        )
