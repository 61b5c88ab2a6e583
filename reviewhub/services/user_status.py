"""
User-Status Overlay

Per-viewer flags on shared review data: did the viewer like, dislike or
bookmark the review, and has the viewer blocked its author.

The overlay is a pure post-processing step on an already fetched page.
It never changes ordering, counts or total_page, and it issues four
set-membership queries per page regardless of page size.
"""

import uuid
from collections.abc import Sequence

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from reviewhub.models import Review, ReviewBookmark, ReviewDislike, ReviewLike, UserBlock
from reviewhub.schemas.review import ReviewResponse, ReviewUserStatus


def _reacted(db: Session, model, viewer_id: uuid.UUID, review_ids: list[int]) -> set[int]:
    stmt = select(model.review_id).where(
        model.account_id == viewer_id,
        model.review_id.in_(review_ids),
    )
    return set(db.execute(stmt).scalars().all())


def _blocked(db: Session, viewer_id: uuid.UUID, review_ids: list[int]) -> set[int]:
    stmt = (
        select(Review.id)
        .join(
            UserBlock,
            and_(
                UserBlock.blocked_id == Review.account_id,
                UserBlock.blocker_id == viewer_id,
            ),
        )
        .where(Review.id.in_(review_ids))
        .execution_options(include_deleted=True)
    )
    return set(db.execute(stmt).scalars().all())


def get_user_status(
    db: Session,
    viewer_id: uuid.UUID,
    review_ids: Sequence[int],
) -> list[ReviewUserStatus]:
    """
    Flags for each requested review, in request order.

    Args:
        viewer_id: The signed-in account
        review_ids: Reviews on the page being decorated

    Returns:
        One ReviewUserStatus per requested id
    """
    ids = list(dict.fromkeys(review_ids))
    if not ids:
        return []

    liked = _reacted(db, ReviewLike, viewer_id, ids)
    disliked = _reacted(db, ReviewDislike, viewer_id, ids)
    bookmarked = _reacted(db, ReviewBookmark, viewer_id, ids)
    blocked = _blocked(db, viewer_id, ids)

    return [
        ReviewUserStatus(
            review_id=review_id,
            is_my_like=review_id in liked,
            is_my_dislike=review_id in disliked,
            is_my_bookmark=review_id in bookmarked,
            is_my_block=review_id in blocked,
        )
        for review_id in review_ids
    ]


def apply_user_status(
    db: Session,
    viewer_id: uuid.UUID | None,
    reviews: list[ReviewResponse],
) -> list[ReviewResponse]:
    """
    Decorate response items in place. Anonymous viewers get no overlay;
    an item without a status entry keeps the all-false defaults.
    """
    if viewer_id is None or not reviews:
        return reviews

    statuses = {status.review_id: status for status in get_user_status(
        db, viewer_id, [review.id for review in reviews]
    )}
    for review in reviews:
        status = statuses.get(review.id)
        if status is None:
            continue
        review.is_my_like = status.is_my_like
        review.is_my_dislike = status.is_my_dislike
        review.is_my_bookmark = status.is_my_bookmark
        review.is_my_block = status.is_my_block
    return reviews
