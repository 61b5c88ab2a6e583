"""
Review Service

Review CRUD, detail fetch with view counting, and conversion of Review
rows into ReviewResponse items with derived counts.

Writes that touch the review row, its tags and its images happen in one
transaction. Only the author can update or delete a review; deletion is a
soft delete.
"""

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from reviewhub.exceptions import NotFoundError, UnauthorizedError
from reviewhub.models import (
    Comment,
    Review,
    ReviewBookmark,
    ReviewDislike,
    ReviewImage,
    ReviewLike,
    ReviewTag,
)
from reviewhub.schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from reviewhub.services.user_status import apply_user_status
from reviewhub.services.view_counts import get_cached_views, increase_view_count

logger = logging.getLogger(__name__)

REVIEW_LOAD_OPTIONS = (
    selectinload(Review.author),
    selectinload(Review.tags),
    selectinload(Review.images),
)


# =============================================================================
# Lookups
# =============================================================================


def get_review(db: Session, review_id: int) -> Review:
    """Get an active review with author, tags and images, or raise NotFoundError."""
    stmt = select(Review).options(*REVIEW_LOAD_OPTIONS).where(Review.id == review_id)
    review = db.execute(stmt).scalar_one_or_none()
    if review is None:
        raise NotFoundError(f"Review with id {review_id} not found")
    return review


def get_reviews_by_ids(db: Session, review_ids: Sequence[int]) -> list[Review]:
    """
    Load active reviews for ids, preserving the order of review_ids.

    Missing or deleted ids are dropped.
    """
    if not review_ids:
        return []
    stmt = select(Review).options(*REVIEW_LOAD_OPTIONS).where(Review.id.in_(review_ids))
    by_id = {review.id: review for review in db.execute(stmt).scalars().all()}
    return [by_id[review_id] for review_id in review_ids if review_id in by_id]


# =============================================================================
# Serialization
# =============================================================================


def _grouped_counts(db: Session, model, review_ids: list[int], *criteria) -> dict[int, int]:
    stmt = (
        select(model.review_id, func.count(model.id))
        .where(model.review_id.in_(review_ids), *criteria)
        .group_by(model.review_id)
    )
    return dict(db.execute(stmt).all())


def to_responses(db: Session, reviews: Sequence[Review]) -> list[ReviewResponse]:
    """
    Build ReviewResponse items with like/dislike/bookmark/comment counts,
    using one grouped count query per edge type.
    """
    if not reviews:
        return []
    ids = [review.id for review in reviews]
    likes = _grouped_counts(db, ReviewLike, ids)
    dislikes = _grouped_counts(db, ReviewDislike, ids)
    bookmarks = _grouped_counts(db, ReviewBookmark, ids)
    comments = _grouped_counts(db, Comment, ids, Comment.deleted_at.is_(None))

    return [
        ReviewResponse.model_validate(review).model_copy(
            update={
                "like_count": likes.get(review.id, 0),
                "dislike_count": dislikes.get(review.id, 0),
                "bookmark_count": bookmarks.get(review.id, 0),
                "comment_count": comments.get(review.id, 0),
            }
        )
        for review in reviews
    ]


# =============================================================================
# Writes
# =============================================================================


def _replace_children(review: Review, data: ReviewCreate | ReviewUpdate) -> None:
    review.tags = [ReviewTag(tag_name=name) for name in data.tags]
    review.images = [
        ReviewImage(img_path=image.img_path, content=image.content, position=position)
        for position, image in enumerate(data.images)
    ]


def create_review(db: Session, account_id: uuid.UUID, data: ReviewCreate) -> Review:
    review = Review(
        account_id=account_id,
        title=data.title,
        content=data.content,
        score=data.score,
        thumbnail=data.thumbnail,
        thumbnail_content=data.thumbnail_content,
    )
    _replace_children(review, data)
    db.add(review)
    db.commit()

    logger.info(f"Review {review.id} created by {account_id}")
    return get_review(db, review.id)


def _get_owned_review(db: Session, account_id: uuid.UUID, review_id: int) -> Review:
    review = get_review(db, review_id)
    if review.account_id != account_id:
        raise UnauthorizedError("You can only modify your own reviews")
    return review


def update_review(
    db: Session,
    account_id: uuid.UUID,
    review_id: int,
    data: ReviewUpdate,
) -> Review:
    """
    Replace a review's fields, tags and images in a single transaction.

    Raises:
        NotFoundError: review missing or deleted
        UnauthorizedError: account is not the author
    """
    review = _get_owned_review(db, account_id, review_id)

    review.title = data.title
    review.content = data.content
    review.score = data.score
    review.thumbnail = data.thumbnail
    review.thumbnail_content = data.thumbnail_content
    _replace_children(review, data)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    return get_review(db, review_id)


def delete_review(db: Session, account_id: uuid.UUID, review_id: int) -> None:
    """Soft-delete a review. The row stays queryable with include_deleted."""
    review = _get_owned_review(db, account_id, review_id)
    review.soft_delete()
    db.commit()
    logger.info(f"Review {review_id} deleted by {account_id}")


# =============================================================================
# Detail
# =============================================================================


def get_review_detail(
    db: Session,
    review_id: int,
    viewer_id: uuid.UUID | None = None,
) -> ReviewResponse:
    """
    Fetch one review and count the view.

    The reported view_count is the durable count plus views pending in
    Redis plus this view. The increment happens after the read and is not
    atomic with it, so a concurrent reader may see the same number.
    """
    review = get_review(db, review_id)
    response = to_responses(db, [review])[0]
    response.view_count = review.view_count + get_cached_views(review.id) + 1

    increase_view_count(db, review.id)

    apply_user_status(db, viewer_id, [response])
    return response
