"""
View Counts and the View-Count Flush

Review views are counted in Redis and periodically drained into the
durable reviews.view_count column.

Cache entry: `review:{id}:viewCount` = views recorded since the last
flush (a non-negative delta). Request handlers only ever INCR it.

Flush contract, per key:
1. read the delta (MGET, batches of settings.view_count_flush_batch_size)
   to skip malformed counters
2. claim it with GETDEL; a view recorded after the claim starts a new key
3. durable write: view_count = view_count + claimed, committed
4. on a failed write, INCRBY claimed puts the views back for the next run

A claimed delta is never read again, so the durable count is never
credited twice for the same views. If the claim cannot be returned after
a failed write those views are lost and logged.
"""

import logging
import re
from dataclasses import dataclass

from redis.exceptions import RedisError
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.config import get_settings
from reviewhub.models import Review
from reviewhub.services.cache import (
    VIEW_COUNT_PATTERN,
    cache_get_int,
    cache_get_many,
    cache_incr,
    cache_pop,
    cache_scan,
    view_count_key,
)

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^review:(\d+):viewCount$")


@dataclass
class FlushResult:
    flushed: int = 0
    failed: int = 0
    skipped: int = 0
    orphaned: int = 0
    views: int = 0


def get_cached_views(review_id: int) -> int:
    """Views recorded in Redis since the last flush (0 when none)."""
    return cache_get_int(view_count_key(review_id))


def _apply_view_delta(db: Session, review_id: int, delta: int) -> bool:
    """Add delta to the durable count and commit. False if the review row is gone."""
    stmt = (
        update(Review)
        .where(Review.id == review_id)
        .values(view_count=Review.view_count + delta)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount > 0


def increase_view_count(db: Session, review_id: int) -> None:
    """
    Record one view.

    Counts in Redis; when Redis is unavailable the view is written
    straight to the durable column instead of being dropped.
    """
    if cache_incr(view_count_key(review_id)) is None:
        logger.debug(f"Redis unavailable, writing view of review {review_id} directly")
        _apply_view_delta(db, review_id, 1)


def _parse_review_id(key: str) -> int | None:
    match = _KEY_RE.match(key)
    return int(match.group(1)) if match else None


def _flush_key(db: Session, key: str, raw: str | None, result: FlushResult) -> None:
    review_id = _parse_review_id(key)
    if review_id is None:
        logger.warning(f"Skipping malformed view-count key {key!r}")
        result.skipped += 1
        return

    if raw is None:
        # deleted between SCAN and MGET
        result.skipped += 1
        return

    try:
        delta = int(raw)
    except ValueError:
        logger.warning(f"Skipping non-integer view count {raw!r} for {key}")
        result.skipped += 1
        return

    if delta < 0:
        logger.warning(f"Skipping negative view count {delta} for {key}")
        result.skipped += 1
        return

    try:
        claimed = cache_pop(key)
    except RedisError as e:
        logger.warning(f"Could not claim views for review {review_id}; will retry: {e}")
        result.failed += 1
        return
    # INCRs between MGET and GETDEL are part of the claim
    delta = int(claimed) if claimed is not None else 0
    if delta == 0:
        result.skipped += 1
        return

    try:
        found = _apply_view_delta(db, review_id, delta)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to flush {delta} views for review {review_id}; will retry")
        result.failed += 1
        if cache_incr(key, delta) is None:
            logger.error(f"Lost {delta} views for review {review_id}: claim could not be returned")
        return

    if not found:
        logger.warning(f"Dropped {delta} views for missing review {review_id}")
        result.orphaned += 1
        return

    result.flushed += 1
    result.views += delta


def _flush_batch(db: Session, keys: list[str], result: FlushResult) -> None:
    try:
        values = cache_get_many(keys)
    except RedisError as e:
        logger.warning(f"Failed to read {len(keys)} view counters: {e}")
        result.failed += len(keys)
        return

    for key, raw in zip(keys, values):
        _flush_key(db, key, raw, result)


def flush_view_counts(db: Session, batch_size: int | None = None) -> FlushResult:
    """
    Drain every view-count key into the durable store.

    Args:
        db: Session used for the durable writes
        batch_size: Keys per MGET batch (settings.view_count_flush_batch_size)

    Returns:
        FlushResult with per-outcome key counts
    """
    batch_size = batch_size or get_settings().view_count_flush_batch_size
    result = FlushResult()

    batch: list[str] = []
    for key in cache_scan(VIEW_COUNT_PATTERN, count=batch_size):
        batch.append(key)
        if len(batch) >= batch_size:
            _flush_batch(db, batch, result)
            batch = []
    if batch:
        _flush_batch(db, batch, result)

    logger.info(
        f"View-count flush: {result.flushed} flushed ({result.views} views), "
        f"{result.failed} failed, {result.skipped} skipped, {result.orphaned} orphaned"
    )
    return result
