"""
Review Feed Service

One function per feed variant. Each returns a ReviewPage
{total_page, reviews} under the shared pagination contract
(services/pagination.py) and, for a signed-in viewer, decorates the page
with the user-status overlay after it is fetched.

| Feed       | Selection                                        | Order                  |
|------------|--------------------------------------------------|------------------------|
| all        | optional author / author set, created since the  | id desc                |
|            | timeframe start                                  |                        |
| following  | author followed by the viewer                    | created_at, id desc    |
| search     | title, content, author nickname or a tag contains| id desc                |
|            | the query (case-insensitive)                     |                        |
| bookmarked | bookmarked by the account                        | bookmark time desc     |
| commented  | has an active comment by the account             | id desc                |
| liked      | liked by the account                             | like time desc         |
| hot/cold   | ranking snapshot slice, no query                 | reaction count desc    |

Soft-deleted reviews never appear.
"""

import calendar
import logging
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from reviewhub.exceptions import BadRequestError
from reviewhub.models import Account, Comment, Follow, Review, ReviewLike, ReviewTag
from reviewhub.schemas.review import ReviewPage
from reviewhub.services import ranking
from reviewhub.services.accounts import ensure_account_exists
from reviewhub.services.pagination import PageRequest, fetch_page
from reviewhub.services.reactions import get_bookmarked_reviews
from reviewhub.services.reviews import REVIEW_LOAD_OPTIONS, to_responses
from reviewhub.services.user_status import apply_user_status

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


# =============================================================================
# Timeframes
# =============================================================================


class Timeframe(StrEnum):
    DAY = "1D"
    WEEK = "7D"
    MONTH = "1M"
    YEAR = "1Y"
    ALL = "all"


def _shift_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    years, month_index = divmod(moment.month - 1 + months, 12)
    year = moment.year + years
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_timeframe(timeframe: Timeframe | str, now: datetime | None = None) -> datetime:
    """
    Start of a timeframe.

    1D: local midnight today; 7D: local midnight 6 days ago;
    1M / 1Y: local midnight one calendar month / year ago; all: the epoch.

    Args:
        timeframe: One of 1D, 7D, 1M, 1Y, all
        now: Reference time (defaults to the current local time)

    Returns:
        Timezone-aware start of the window
    """
    timeframe = Timeframe(timeframe)
    if timeframe is Timeframe.ALL:
        return EPOCH

    now = now or datetime.now().astimezone()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe is Timeframe.DAY:
        return midnight
    if timeframe is Timeframe.WEEK:
        return midnight - timedelta(days=6)
    if timeframe is Timeframe.MONTH:
        return _shift_months(midnight, -1)
    return _shift_months(midnight, -12)


# =============================================================================
# Helpers
# =============================================================================

ACTIVE = Review.deleted_at.is_(None)


def _page(db: Session, reviews, total_page: int, viewer_id: uuid.UUID | None) -> ReviewPage:
    items = apply_user_status(db, viewer_id, to_responses(db, reviews))
    return ReviewPage(total_page=total_page, reviews=items)


def _filtered_page(
    db: Session,
    conditions: Sequence,
    page: PageRequest,
    viewer_id: uuid.UUID | None,
    order_by: Sequence | None = None,
) -> ReviewPage:
    stmt = (
        select(Review)
        .options(*REVIEW_LOAD_OPTIONS)
        .where(ACTIVE, *conditions)
        .order_by(*(order_by or (Review.id.desc(),)))
    )
    count_stmt = select(func.count(Review.id)).where(ACTIVE, *conditions)
    reviews, total_page = fetch_page(db, stmt, count_stmt, page)
    return _page(db, reviews, total_page, viewer_id)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# =============================================================================
# Feeds
# =============================================================================


def list_reviews(
    db: Session,
    page: PageRequest,
    timeframe: Timeframe | str = Timeframe.ALL,
    user_id: uuid.UUID | None = None,
    user_ids: Sequence[uuid.UUID] | None = None,
    viewer_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> ReviewPage:
    """
    All reviews, newest first, optionally limited to one author and/or a
    set of authors and to a timeframe.

    Raises:
        NotFoundError: user_id does not exist
    """
    if user_id is not None:
        ensure_account_exists(db, user_id)

    start = resolve_timeframe(timeframe, now)
    conditions = [Review.created_at >= start.astimezone(UTC)]
    if user_id is not None:
        conditions.append(Review.account_id == user_id)
    if user_ids:
        conditions.append(Review.account_id.in_(list(user_ids)))

    return _filtered_page(db, conditions, page, viewer_id)


def following_feed(db: Session, viewer_id: uuid.UUID, page: PageRequest) -> ReviewPage:
    """Reviews by accounts the viewer follows, newest first."""
    followees = select(Follow.followee_id).where(Follow.follower_id == viewer_id)
    return _filtered_page(
        db,
        [Review.account_id.in_(followees)],
        page,
        viewer_id,
        order_by=(Review.created_at.desc(), Review.id.desc()),
    )


def search_reviews(
    db: Session,
    query: str,
    page: PageRequest,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    """
    Case-insensitive substring search over title, content, author nickname
    and tag names. Results are not scored; newest first.
    """
    query = query.strip()
    if not query:
        raise BadRequestError("Search query must not be empty")

    pattern = f"%{_escape_like(query)}%"
    match = or_(
        Review.title.ilike(pattern, escape="\\"),
        Review.content.ilike(pattern, escape="\\"),
        Review.author.has(Account.nickname.ilike(pattern, escape="\\")),
        Review.tags.any(ReviewTag.tag_name.ilike(pattern, escape="\\")),
    )
    return _filtered_page(db, [match], page, viewer_id)


def bookmarked_feed(
    db: Session,
    user_id: uuid.UUID,
    page: PageRequest,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    ensure_account_exists(db, user_id)
    reviews, total_page = get_bookmarked_reviews(db, user_id, page)
    return _page(db, reviews, total_page, viewer_id)


def commented_feed(
    db: Session,
    user_id: uuid.UUID,
    page: PageRequest,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    """Reviews with at least one active comment by user_id, newest first."""
    ensure_account_exists(db, user_id)
    commented = select(Comment.review_id).where(
        Comment.account_id == user_id,
        Comment.deleted_at.is_(None),
    )
    return _filtered_page(db, [Review.id.in_(commented)], page, viewer_id)


def liked_feed(
    db: Session,
    user_id: uuid.UUID,
    page: PageRequest,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    """Reviews liked by user_id, most recently liked first."""
    ensure_account_exists(db, user_id)
    conditions = (ReviewLike.account_id == user_id, ACTIVE)
    stmt = (
        select(Review)
        .options(*REVIEW_LOAD_OPTIONS)
        .join(ReviewLike, ReviewLike.review_id == Review.id)
        .where(*conditions)
        .order_by(ReviewLike.created_at.desc(), ReviewLike.id.desc())
    )
    count_stmt = (
        select(func.count(ReviewLike.id))
        .join(Review, ReviewLike.review_id == Review.id)
        .where(*conditions)
    )
    reviews, total_page = fetch_page(db, stmt, count_stmt, page)
    return _page(db, reviews, total_page, viewer_id)


def ranked_feed(
    db: Session,
    polarity: ranking.Polarity | str,
    window: int,
    page: PageRequest,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    """
    Hot or cold reviews from the latest ranking snapshot. Before the first
    ranking run the feed is empty with total_page 0.
    """
    reviews, total_page = ranking.get_ranked_reviews(polarity, window, page)
    return ReviewPage(
        total_page=total_page,
        reviews=apply_user_status(db, viewer_id, reviews),
    )


def hot_feed(
    db: Session,
    page: PageRequest,
    window: int = ranking.DEFAULT_WINDOW,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    return ranked_feed(db, ranking.Polarity.HOT, window, page, viewer_id)


def cold_feed(
    db: Session,
    page: PageRequest,
    window: int = ranking.DEFAULT_WINDOW,
    viewer_id: uuid.UUID | None = None,
) -> ReviewPage:
    return ranked_feed(db, ranking.Polarity.COLD, window, page, viewer_id)
