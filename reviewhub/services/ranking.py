"""
Hot/Cold Ranking

Precomputed "hot" (most liked) and "cold" (most disliked) review lists for
trailing windows of 1, 7 and 30 days, stored as JSON snapshots in Redis
and served by slicing in memory.

Snapshot keys: hotReviews{N}Day / coldReviews{N}Day. Each snapshot is a
list of at most settings.ranking_size serialized ReviewResponse items,
ordered by the number of reaction edges created inside the window
(descending), ties broken by review id (descending). Windows run from
local midnight N days ago to local midnight today, both inclusive.
"""

import logging
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.config import get_settings
from reviewhub.exceptions import BadRequestError
from reviewhub.models import Review, ReviewDislike, ReviewLike
from reviewhub.schemas.review import ReviewResponse
from reviewhub.services.cache import cache_get, cache_set
from reviewhub.services.pagination import PageRequest, slice_page
from reviewhub.services.reviews import get_reviews_by_ids, to_responses

logger = logging.getLogger(__name__)

WINDOWS = (1, 7, 30)
DEFAULT_WINDOW = 7


class Polarity(StrEnum):
    HOT = "hot"
    COLD = "cold"


EDGE_MODELS = {
    Polarity.HOT: ReviewLike,
    Polarity.COLD: ReviewDislike,
}


def snapshot_key(polarity: Polarity | str, days: int) -> str:
    return f"{Polarity(polarity).value}Reviews{days}Day"


def midnight_days_ago(days: int, now: datetime | None = None) -> datetime:
    """Local midnight `days` days before now (timezone-aware)."""
    now = now or datetime.now().astimezone()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=days)


# =============================================================================
# Computation
# =============================================================================


def _ranked_ids(db: Session, edge_model, start: datetime, end: datetime, limit: int) -> list[int]:
    edge_count = func.count(edge_model.id)
    stmt = (
        select(Review.id)
        .join(edge_model, edge_model.review_id == Review.id)
        .where(
            edge_model.created_at >= start.astimezone(UTC),
            edge_model.created_at <= end.astimezone(UTC),
            Review.deleted_at.is_(None),
        )
        .group_by(Review.id)
        .order_by(edge_count.desc(), Review.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def _fetch_ranked(
    db: Session,
    polarity: Polarity,
    start: datetime,
    end: datetime,
    limit: int | None,
) -> list[ReviewResponse]:
    limit = limit or get_settings().ranking_size
    ids = _ranked_ids(db, EDGE_MODELS[polarity], start, end, limit)
    return to_responses(db, get_reviews_by_ids(db, ids))


def fetch_hot_reviews(
    db: Session,
    start: datetime,
    end: datetime,
    limit: int | None = None,
) -> list[ReviewResponse]:
    """Reviews with the most likes created in [start, end]."""
    return _fetch_ranked(db, Polarity.HOT, start, end, limit)


def fetch_cold_reviews(
    db: Session,
    start: datetime,
    end: datetime,
    limit: int | None = None,
) -> list[ReviewResponse]:
    """Reviews with the most dislikes created in [start, end]."""
    return _fetch_ranked(db, Polarity.COLD, start, end, limit)


def refresh_rankings(db: Session, now: datetime | None = None) -> list[str]:
    """
    Recompute and store all six snapshots.

    Each snapshot is written independently: a failed query or cache write
    is logged and the remaining snapshots are still produced.

    Returns:
        Keys that were written
    """
    settings = get_settings()
    end = midnight_days_ago(0, now)
    written: list[str] = []

    for polarity in Polarity:
        for days in WINDOWS:
            key = snapshot_key(polarity, days)
            start = midnight_days_ago(days, now)
            try:
                reviews = _fetch_ranked(db, polarity, start, end, settings.ranking_size)
            except SQLAlchemyError:
                db.rollback()
                logger.exception(f"Failed to compute ranking snapshot {key}")
                continue

            payload = [review.model_dump(mode="json") for review in reviews]
            if cache_set(key, payload, ttl=settings.ranking_snapshot_ttl_seconds):
                written.append(key)
            else:
                logger.error(f"Failed to store ranking snapshot {key}")

    logger.info(f"Ranking refresh wrote {len(written)} snapshots")
    return written


# =============================================================================
# Reads
# =============================================================================


def get_ranked_reviews(
    polarity: Polarity | str,
    days: int,
    page: PageRequest,
) -> tuple[list[ReviewResponse], int]:
    """
    Page through a stored snapshot.

    Before the first successful refresh, or when the snapshot cannot be
    read, the result is empty with total_page 0.

    Raises:
        BadRequestError: days is not one of 1, 7, 30
    """
    if days not in WINDOWS:
        raise BadRequestError(f"Ranking window must be one of {', '.join(map(str, WINDOWS))}")

    key = snapshot_key(polarity, days)
    snapshot = cache_get(key)
    if not isinstance(snapshot, list):
        return [], 0

    try:
        reviews = [ReviewResponse.model_validate(item) for item in snapshot]
    except ValidationError as e:
        logger.warning(f"Ignoring unreadable ranking snapshot {key}: {e}")
        return [], 0

    return slice_page(reviews, page)
