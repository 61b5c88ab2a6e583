"""
Reaction Service

Like, dislike and bookmark edges between an account and a review, and the
bookmarked-reviews listing the bookmarked feed delegates to.

Adding an edge that already exists raises ConflictError; removing one
that doesn't exist raises NotFoundError. Liking another account's review
notifies its author.
"""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from reviewhub.exceptions import ConflictError, NotFoundError
from reviewhub.models import (
    NotificationType,
    Review,
    ReviewBookmark,
    ReviewDislike,
    ReviewLike,
)
from reviewhub.services.notifications import notify, publish_notifications
from reviewhub.services.pagination import PageRequest, fetch_page
from reviewhub.services.reviews import REVIEW_LOAD_OPTIONS, get_review

logger = logging.getLogger(__name__)


def _find_edge(db: Session, model, account_id: uuid.UUID, review_id: int):
    stmt = select(model).where(model.account_id == account_id, model.review_id == review_id)
    return db.execute(stmt).scalar_one_or_none()


def _add_edge(db: Session, model, account_id: uuid.UUID, review_id: int) -> Review:
    review = get_review(db, review_id)
    if _find_edge(db, model, account_id, review_id) is not None:
        raise ConflictError(f"Review {review_id} already has this reaction")
    db.add(model(account_id=account_id, review_id=review_id))
    return review


def _remove_edge(db: Session, model, account_id: uuid.UUID, review_id: int) -> None:
    get_review(db, review_id)
    edge = _find_edge(db, model, account_id, review_id)
    if edge is None:
        raise NotFoundError(f"Review {review_id} has no such reaction")
    db.delete(edge)
    db.commit()


def like_review(db: Session, account_id: uuid.UUID, review_id: int, publisher=None) -> None:
    review = _add_edge(db, ReviewLike, account_id, review_id)
    notification = notify(
        db,
        sender_id=account_id,
        recipient_id=review.account_id,
        type=NotificationType.REVIEW_LIKE,
        review_id=review.id,
    )
    db.commit()
    publish_notifications([notification], publisher)


def unlike_review(db: Session, account_id: uuid.UUID, review_id: int) -> None:
    _remove_edge(db, ReviewLike, account_id, review_id)


def dislike_review(db: Session, account_id: uuid.UUID, review_id: int) -> None:
    _add_edge(db, ReviewDislike, account_id, review_id)
    db.commit()


def undislike_review(db: Session, account_id: uuid.UUID, review_id: int) -> None:
    _remove_edge(db, ReviewDislike, account_id, review_id)


def bookmark_review(db: Session, account_id: uuid.UUID, review_id: int) -> None:
    _add_edge(db, ReviewBookmark, account_id, review_id)
    db.commit()


def unbookmark_review(db: Session, account_id: uuid.UUID, review_id: int) -> None:
    _remove_edge(db, ReviewBookmark, account_id, review_id)


def get_bookmarked_reviews(
    db: Session,
    account_id: uuid.UUID,
    page: PageRequest,
) -> tuple[list[Review], int]:
    """Active reviews bookmarked by account_id, most recently bookmarked first."""
    conditions = (ReviewBookmark.account_id == account_id, Review.deleted_at.is_(None))
    stmt = (
        select(Review)
        .options(*REVIEW_LOAD_OPTIONS)
        .join(ReviewBookmark, ReviewBookmark.review_id == Review.id)
        .where(*conditions)
        .order_by(ReviewBookmark.created_at.desc(), ReviewBookmark.id.desc())
    )
    count_stmt = (
        select(func.count(ReviewBookmark.id))
        .join(Review, ReviewBookmark.review_id == Review.id)
        .where(*conditions)
    )
    return fetch_page(db, stmt, count_stmt, page)
