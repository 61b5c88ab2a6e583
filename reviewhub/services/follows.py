"""
Follow and Block Service

Follow edges drive the following feed and the is_following decoration
on notification senders; block edges drive the is_my_block overlay flag.
Following someone notifies them (NotificationType.FOLLOW).
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from reviewhub.exceptions import BadRequestError, ConflictError, NotFoundError
from reviewhub.models import Account, Follow, NotificationType, UserBlock
from reviewhub.schemas.account import AccountPage, AccountPublic
from reviewhub.services.pagination import PageRequest, fetch_page

logger = logging.getLogger(__name__)


def _ensure_exists(db: Session, account_id: uuid.UUID) -> None:
    if db.execute(select(Account.id).where(Account.id == account_id)).scalar_one_or_none() is None:
        raise NotFoundError(f"Account {account_id} not found")


def _get_follow(db: Session, follower_id: uuid.UUID, followee_id: uuid.UUID) -> Follow | None:
    stmt = select(Follow).where(
        Follow.follower_id == follower_id,
        Follow.followee_id == followee_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def follow(db: Session, follower_id: uuid.UUID, followee_id: uuid.UUID, publisher=None) -> Follow:
    """
    Follow an account.

    Raises:
        BadRequestError: following yourself
        NotFoundError: followee does not exist
        ConflictError: already following
    """
    from reviewhub.services.notifications import notify, publish_notifications

    if follower_id == followee_id:
        raise BadRequestError("You cannot follow yourself")
    _ensure_exists(db, followee_id)
    if _get_follow(db, follower_id, followee_id) is not None:
        raise ConflictError("Already following this account")

    edge = Follow(follower_id=follower_id, followee_id=followee_id)
    db.add(edge)
    notification = notify(
        db,
        sender_id=follower_id,
        recipient_id=followee_id,
        type=NotificationType.FOLLOW,
    )
    db.commit()

    publish_notifications([notification], publisher)
    logger.info(f"{follower_id} followed {followee_id}")
    return edge


def unfollow(db: Session, follower_id: uuid.UUID, followee_id: uuid.UUID) -> None:
    edge = _get_follow(db, follower_id, followee_id)
    if edge is None:
        raise NotFoundError("Not following this account")
    db.delete(edge)
    db.commit()


def following_ids(
    db: Session,
    viewer_id: uuid.UUID | None,
    candidate_ids: Iterable[uuid.UUID],
) -> set[uuid.UUID]:
    """Which of candidate_ids the viewer follows (one query)."""
    candidates = set(candidate_ids)
    if viewer_id is None or not candidates:
        return set()
    stmt = select(Follow.followee_id).where(
        Follow.follower_id == viewer_id,
        Follow.followee_id.in_(candidates),
    )
    return set(db.execute(stmt).scalars().all())


def _account_page(db: Session, join_on, condition, page: PageRequest) -> AccountPage:
    stmt = (
        select(Account)
        .join(Follow, join_on)
        .where(condition)
        .order_by(Follow.created_at.desc(), Account.id.desc())
    )
    count_stmt = select(func.count()).select_from(Follow).where(condition)
    items, total_page = fetch_page(db, stmt, count_stmt, page)
    return AccountPage(
        total_page=total_page,
        accounts=[AccountPublic.model_validate(account) for account in items],
    )


def get_followings(db: Session, account_id: uuid.UUID, page: PageRequest) -> AccountPage:
    """Accounts that account_id follows, most recent first (ties by account id)."""
    _ensure_exists(db, account_id)
    return _account_page(
        db, Follow.followee_id == Account.id, Follow.follower_id == account_id, page
    )


def get_followers(db: Session, account_id: uuid.UUID, page: PageRequest) -> AccountPage:
    """Accounts following account_id, most recent first."""
    _ensure_exists(db, account_id)
    return _account_page(
        db, Follow.follower_id == Account.id, Follow.followee_id == account_id, page
    )


# =============================================================================
# Blocks
# =============================================================================


def block_user(db: Session, blocker_id: uuid.UUID, blocked_id: uuid.UUID) -> UserBlock:
    if blocker_id == blocked_id:
        raise BadRequestError("You cannot block yourself")
    _ensure_exists(db, blocked_id)
    stmt = select(UserBlock).where(
        UserBlock.blocker_id == blocker_id,
        UserBlock.blocked_id == blocked_id,
    )
    if db.execute(stmt).scalar_one_or_none() is not None:
        raise ConflictError("Account already blocked")

    edge = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id)
    db.add(edge)
    db.commit()
    logger.info(f"{blocker_id} blocked {blocked_id}")
    return edge


def unblock_user(db: Session, blocker_id: uuid.UUID, blocked_id: uuid.UUID) -> None:
    stmt = select(UserBlock).where(
        UserBlock.blocker_id == blocker_id,
        UserBlock.blocked_id == blocked_id,
    )
    edge = db.execute(stmt).scalar_one_or_none()
    if edge is None:
        raise NotFoundError("Account is not blocked")
    db.delete(edge)
    db.commit()
