"""
Comment Service

Comments on a review, optionally replying to another comment of the same
review and optionally tagging accounts.

Creating a comment notifies the review's author (REVIEW_COMMENT) unless
the commenter wrote the review, and every tagged account other than the
commenter (COMMENT_TAG). Only the author of a comment can edit or delete
it; deletion is a soft delete.
"""

import logging
import uuid

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from reviewhub.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from reviewhub.models import Account, Comment, NotificationType
from reviewhub.schemas.comment import CommentCreate, CommentPage, CommentResponse, CommentUpdate
from reviewhub.services.events import EventPublisher
from reviewhub.services.notifications import notify, publish_notifications
from reviewhub.services.pagination import PageRequest, fetch_page
from reviewhub.services.reviews import get_review

logger = logging.getLogger(__name__)

COMMENT_LOAD_OPTIONS = (
    selectinload(Comment.author),
    selectinload(Comment.tagged_accounts),
)


def _load_comment(db: Session, comment_id: int) -> Comment:
    stmt = select(Comment).options(*COMMENT_LOAD_OPTIONS).where(Comment.id == comment_id)
    comment = db.execute(stmt).scalar_one_or_none()
    if comment is None:
        raise NotFoundError(f"Comment with id {comment_id} not found")
    return comment


def list_comments(db: Session, review_id: int, page: PageRequest) -> CommentPage:
    """Active comments of a review, newest first."""
    get_review(db, review_id)
    condition = and_(Comment.review_id == review_id, Comment.deleted_at.is_(None))
    stmt = (
        select(Comment)
        .options(*COMMENT_LOAD_OPTIONS)
        .where(condition)
        .order_by(Comment.id.desc())
    )
    count_stmt = select(func.count(Comment.id)).where(condition)
    comments, total_page = fetch_page(db, stmt, count_stmt, page)
    return CommentPage(
        total_page=total_page,
        comments=[CommentResponse.model_validate(comment) for comment in comments],
    )


def get_comment(db: Session, review_id: int, comment_id: int) -> Comment:
    get_review(db, review_id)
    comment = _load_comment(db, comment_id)
    if comment.review_id != review_id:
        raise NotFoundError(f"Comment with id {comment_id} not found")
    return comment


def create_comment(
    db: Session,
    account_id: uuid.UUID,
    review_id: int,
    data: CommentCreate,
    publisher: EventPublisher | None = None,
) -> Comment:
    """
    Add a comment to a review and notify the review author and tagged accounts.

    Raises:
        NotFoundError: review missing or deleted, or a tagged account missing
        BadRequestError: parent comment missing or on another review
    """
    review = get_review(db, review_id)

    if data.parent_id is not None:
        parent = db.get(Comment, data.parent_id)
        if parent is None or parent.is_deleted or parent.review_id != review_id:
            raise BadRequestError(f"Parent comment {data.parent_id} not found on this review")

    tagged: list[Account] = []
    tagged_ids = list(dict.fromkeys(data.tagged_account_ids))
    if tagged_ids:
        tagged = list(db.execute(select(Account).where(Account.id.in_(tagged_ids))).scalars().all())
        missing = set(tagged_ids) - {account.id for account in tagged}
        if missing:
            raise NotFoundError(f"Tagged account {sorted(map(str, missing))[0]} not found")

    comment = Comment(
        review_id=review_id,
        account_id=account_id,
        parent_id=data.parent_id,
        content=data.content,
        tagged_accounts=tagged,
    )
    db.add(comment)
    db.flush()

    notifications = [
        notify(
            db,
            sender_id=account_id,
            recipient_id=review.account_id,
            type=NotificationType.REVIEW_COMMENT,
            review_id=review_id,
            comment_id=comment.id,
        )
    ]
    for account in tagged:
        notifications.append(
            notify(
                db,
                sender_id=account_id,
                recipient_id=account.id,
                type=NotificationType.COMMENT_TAG,
                review_id=review_id,
                comment_id=comment.id,
            )
        )
    db.commit()

    publish_notifications(notifications, publisher)
    logger.info(f"Comment {comment.id} created on review {review_id} by {account_id}")
    return _load_comment(db, comment.id)


def _get_owned_comment(db: Session, account_id: uuid.UUID, comment_id: int) -> Comment:
    comment = _load_comment(db, comment_id)
    if comment.account_id != account_id:
        raise UnauthorizedError("You can only modify your own comments")
    return comment


def update_comment(
    db: Session,
    account_id: uuid.UUID,
    comment_id: int,
    data: CommentUpdate,
) -> Comment:
    comment = _get_owned_comment(db, account_id, comment_id)
    comment.content = data.content
    db.commit()
    return _load_comment(db, comment_id)


def delete_comment(db: Session, account_id: uuid.UUID, comment_id: int) -> None:
    comment = _get_owned_comment(db, account_id, comment_id)
    comment.soft_delete()
    db.commit()
    logger.info(f"Comment {comment_id} deleted by {account_id}")
