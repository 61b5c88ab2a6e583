"""
Review Model

A review posted by an account, with an ordered list of tags and an ordered
list of images (path + caption).

view_count is the durable, canonical count. Views recorded since the last
flush live in Redis (see services/view_counts.py) and are added to the
durable value by the periodic flush job.

Like/dislike/bookmark/comment counts are derived from the edge tables at
read time and not stored here.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewhub.database import Base, SoftDeleteMixin, utcnow

if TYPE_CHECKING:
    from reviewhub.models.account import Account


class Review(SoftDeleteMixin, Base):
    """
    Review model.

    Attributes:
        id: Primary key
        account_id: Author (accounts.id)
        title: Review title
        content: Review body
        score: 0-5 score given by the author
        thumbnail: Optional thumbnail image path
        thumbnail_content: Optional thumbnail caption
        view_count: Durable view count
        created_at / updated_at / deleted_at: Timestamps
    """

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_content: Mapped[str | None] = mapped_column(Text, nullable=True)

    view_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Durable view count; pending views are held in Redis",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    author: Mapped["Account"] = relationship("Account", back_populates="reviews")
    tags: Mapped[list["ReviewTag"]] = relationship(
        "ReviewTag",
        cascade="all, delete-orphan",
        order_by="ReviewTag.id",
    )
    images: Mapped[list["ReviewImage"]] = relationship(
        "ReviewImage",
        cascade="all, delete-orphan",
        order_by="ReviewImage.position",
    )

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 5", name="ck_review_score_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, account_id={self.account_id}, title='{self.title}')>"


class ReviewTag(Base):
    __tablename__ = "review_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)


class ReviewImage(Base):
    __tablename__ = "review_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    img_path: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Caption")
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
