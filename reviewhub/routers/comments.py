"""
Comments Router

Endpoints:
- GET /reviews/{review_id}/comments - Active comments, newest first
- POST /reviews/{review_id}/comments - Comment or reply (notifies the
  review author and tagged accounts)
- GET /reviews/{review_id}/comments/{comment_id}
- PUT /comments/{comment_id}, DELETE /comments/{comment_id} - Author only
"""

from fastapi import APIRouter, Request, status

from reviewhub.dependencies import ActiveUser, DbSession, Pagination
from reviewhub.schemas.comment import CommentCreate, CommentPage, CommentResponse, CommentUpdate
from reviewhub.services import comments
from reviewhub.services.rate_limiter import limit_reads, limit_writes

router = APIRouter(
    tags=["Comments"],
    responses={404: {"description": "Review or comment not found"}},
)


@router.get(
    "/reviews/{review_id}/comments",
    response_model=CommentPage,
    summary="List comments of a review",
)
@limit_reads()
def list_comments(
    request: Request,
    review_id: int,
    db: DbSession,
    page: Pagination,
) -> CommentPage:
    return comments.list_comments(db, review_id, page)


@router.post(
    "/reviews/{review_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a review",
)
@limit_writes()
def create_comment(
    request: Request,
    review_id: int,
    comment_data: CommentCreate,
    current_user: ActiveUser,
    db: DbSession,
) -> CommentResponse:
    comment = comments.create_comment(db, current_user.id, review_id, comment_data)
    return CommentResponse.model_validate(comment)


@router.get(
    "/reviews/{review_id}/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Get a comment",
)
def get_comment(review_id: int, comment_id: int, db: DbSession) -> CommentResponse:
    return CommentResponse.model_validate(comments.get_comment(db, review_id, comment_id))


@router.put(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Edit a comment",
    responses={401: {"description": "Not the author"}},
)
@limit_writes()
def update_comment(
    request: Request,
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: ActiveUser,
    db: DbSession,
) -> CommentResponse:
    comment = comments.update_comment(db, current_user.id, comment_id, comment_data)
    return CommentResponse.model_validate(comment)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a comment",
    responses={401: {"description": "Not the author"}},
)
def delete_comment(comment_id: int, current_user: ActiveUser, db: DbSession) -> None:
    comments.delete_comment(db, current_user.id, comment_id)
