"""
Reviews Router

Feeds, review CRUD and reactions.

Feed endpoints (all return {total_page, reviews}; signed-in viewers get
is_my_like / is_my_dislike / is_my_bookmark / is_my_block flags):
- GET /reviews/ - All reviews, optional author filters and timeframe
- GET /reviews/following - Reviews by followed accounts (sign-in required)
- GET /reviews/search?query= - Title, content, author or tag search
- GET /reviews/hot, /reviews/cold - Ranking snapshots (window 1, 7 or 30 days)
- GET /reviews/users/{id}/bookmarked, /commented, /liked

Review endpoints:
- POST /reviews/ - Create
- GET /reviews/{id} - Detail (counts a view)
- PUT /reviews/{id}, DELETE /reviews/{id} - Author only
- POST/DELETE /reviews/{id}/like, /dislike, /bookmark
"""

import uuid

from fastapi import APIRouter, Query, Request, status

from reviewhub.dependencies import ActiveUser, DbSession, OptionalUser, Pagination
from reviewhub.schemas.review import ReviewCreate, ReviewPage, ReviewResponse, ReviewUpdate
from reviewhub.services import feeds, reactions, reviews
from reviewhub.services.feeds import Timeframe
from reviewhub.services.ranking import DEFAULT_WINDOW
from reviewhub.services.rate_limiter import limit_reads, limit_writes

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    responses={404: {"description": "Review not found"}},
)


def _viewer_id(viewer) -> uuid.UUID | None:
    return viewer.id if viewer is not None else None


# =============================================================================
# Feeds
# =============================================================================


@router.get("/", response_model=ReviewPage, summary="List reviews")
@limit_reads()
def list_reviews(
    request: Request,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
    timeframe: Timeframe = Query(default=Timeframe.ALL, description="1D, 7D, 1M, 1Y or all"),
    user_id: uuid.UUID | None = Query(default=None, description="Only reviews by this account"),
    user_ids: list[uuid.UUID] | None = Query(default=None, description="Only reviews by these accounts"),
) -> ReviewPage:
    return feeds.list_reviews(
        db,
        page,
        timeframe=timeframe,
        user_id=user_id,
        user_ids=user_ids,
        viewer_id=_viewer_id(viewer),
    )


@router.get("/following", response_model=ReviewPage, summary="Reviews by followed accounts")
@limit_reads()
def following_feed(
    request: Request,
    db: DbSession,
    page: Pagination,
    current_user: ActiveUser,
) -> ReviewPage:
    return feeds.following_feed(db, current_user.id, page)


@router.get("/search", response_model=ReviewPage, summary="Search reviews")
@limit_reads()
def search_reviews(
    request: Request,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
    query: str = Query(..., min_length=1, max_length=100, examples=["ramen"]),
) -> ReviewPage:
    return feeds.search_reviews(db, query, page, viewer_id=_viewer_id(viewer))


@router.get("/hot", response_model=ReviewPage, summary="Most liked reviews")
@limit_reads()
def hot_reviews(
    request: Request,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
    window: int = Query(default=DEFAULT_WINDOW, description="Trailing window in days: 1, 7 or 30"),
) -> ReviewPage:
    return feeds.hot_feed(db, page, window=window, viewer_id=_viewer_id(viewer))


@router.get("/cold", response_model=ReviewPage, summary="Most disliked reviews")
@limit_reads()
def cold_reviews(
    request: Request,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
    window: int = Query(default=DEFAULT_WINDOW, description="Trailing window in days: 1, 7 or 30"),
) -> ReviewPage:
    return feeds.cold_feed(db, page, window=window, viewer_id=_viewer_id(viewer))


@router.get("/users/{account_id}/bookmarked", response_model=ReviewPage, summary="Bookmarked reviews")
def bookmarked_reviews(
    account_id: uuid.UUID,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
) -> ReviewPage:
    return feeds.bookmarked_feed(db, account_id, page, viewer_id=_viewer_id(viewer))


@router.get("/users/{account_id}/commented", response_model=ReviewPage, summary="Commented reviews")
def commented_reviews(
    account_id: uuid.UUID,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
) -> ReviewPage:
    return feeds.commented_feed(db, account_id, page, viewer_id=_viewer_id(viewer))


@router.get("/users/{account_id}/liked", response_model=ReviewPage, summary="Liked reviews")
def liked_reviews(
    account_id: uuid.UUID,
    db: DbSession,
    page: Pagination,
    viewer: OptionalUser,
) -> ReviewPage:
    return feeds.liked_feed(db, account_id, page, viewer_id=_viewer_id(viewer))


# =============================================================================
# CRUD
# =============================================================================


@router.post(
    "/",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
)
@limit_writes()
def create_review(
    request: Request,
    review_data: ReviewCreate,
    current_user: ActiveUser,
    db: DbSession,
) -> ReviewResponse:
    review = reviews.create_review(db, current_user.id, review_data)
    return reviews.to_responses(db, [review])[0]


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review",
    description="Counts a view. The returned view_count includes this view.",
)
@limit_reads()
def get_review(
    request: Request,
    review_id: int,
    db: DbSession,
    viewer: OptionalUser,
) -> ReviewResponse:
    return reviews.get_review_detail(db, review_id, viewer_id=_viewer_id(viewer))


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    responses={401: {"description": "Not the author"}},
)
@limit_writes()
def update_review(
    request: Request,
    review_id: int,
    review_data: ReviewUpdate,
    current_user: ActiveUser,
    db: DbSession,
) -> ReviewResponse:
    review = reviews.update_review(db, current_user.id, review_id, review_data)
    return reviews.to_responses(db, [review])[0]


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    responses={401: {"description": "Not the author"}},
)
@limit_writes()
def delete_review(
    request: Request,
    review_id: int,
    current_user: ActiveUser,
    db: DbSession,
) -> None:
    reviews.delete_review(db, current_user.id, review_id)


# =============================================================================
# Reactions
# =============================================================================


@router.post("/{review_id}/like", status_code=status.HTTP_201_CREATED, summary="Like a review")
def like_review(review_id: int, current_user: ActiveUser, db: DbSession) -> dict:
    reactions.like_review(db, current_user.id, review_id)
    return {"message": "Liked"}


@router.delete("/{review_id}/like", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a like")
def unlike_review(review_id: int, current_user: ActiveUser, db: DbSession) -> None:
    reactions.unlike_review(db, current_user.id, review_id)


@router.post("/{review_id}/dislike", status_code=status.HTTP_201_CREATED, summary="Dislike a review")
def dislike_review(review_id: int, current_user: ActiveUser, db: DbSession) -> dict:
    reactions.dislike_review(db, current_user.id, review_id)
    return {"message": "Disliked"}


@router.delete("/{review_id}/dislike", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a dislike")
def undislike_review(review_id: int, current_user: ActiveUser, db: DbSession) -> None:
    reactions.undislike_review(db, current_user.id, review_id)


@router.post("/{review_id}/bookmark", status_code=status.HTTP_201_CREATED, summary="Bookmark a review")
def bookmark_review(review_id: int, current_user: ActiveUser, db: DbSession) -> dict:
    reactions.bookmark_review(db, current_user.id, review_id)
    return {"message": "Bookmarked"}


@router.delete("/{review_id}/bookmark", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a bookmark")
def unbookmark_review(review_id: int, current_user: ActiveUser, db: DbSession) -> None:
    reactions.unbookmark_review(db, current_user.id, review_id)
