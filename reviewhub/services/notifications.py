"""
Notification Service

notify() adds a Notification row to the caller's unit of work; the caller
commits and then publishes the returned rows with publish_notifications(),
so an event never announces a row that was rolled back.

An account never notifies itself: notify() returns None when sender and
recipient are the same account.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from reviewhub.database import utcnow
from reviewhub.exceptions import NotFoundError
from reviewhub.models import Notification, NotificationType
from reviewhub.schemas.notification import NotificationPage, NotificationResponse
from reviewhub.services.events import EventPublisher, get_event_publisher
from reviewhub.services.follows import following_ids
from reviewhub.services.pagination import PageRequest, fetch_page

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    *,
    sender_id: uuid.UUID,
    recipient_id: uuid.UUID,
    type: NotificationType,
    review_id: int | None = None,
    comment_id: int | None = None,
) -> Notification | None:
    """
    Stage a notification for the current transaction.

    Returns:
        The pending Notification, or None for a self-notification
    """
    if sender_id == recipient_id:
        return None

    notification = Notification(
        sender_id=sender_id,
        recipient_id=recipient_id,
        type=int(type),
        review_id=review_id,
        comment_id=comment_id,
    )
    db.add(notification)
    return notification


def publish_notifications(
    notifications: Iterable[Notification | None],
    publisher: EventPublisher | None = None,
) -> int:
    """Publish committed notifications; returns how many were accepted."""
    publisher = publisher or get_event_publisher()
    published = 0
    for notification in notifications:
        if notification is not None and publisher.publish_notification(notification):
            published += 1
    return published


def list_notifications(db: Session, recipient_id: uuid.UUID, page: PageRequest) -> NotificationPage:
    """
    Newest-first notifications for an account. Each sender is decorated
    with whether the recipient follows them.
    """
    condition = Notification.recipient_id == recipient_id
    stmt = (
        select(Notification)
        .options(selectinload(Notification.sender))
        .where(condition)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    count_stmt = select(func.count(Notification.id)).where(condition)
    items, total_page = fetch_page(db, stmt, count_stmt, page)

    followed = following_ids(db, recipient_id, {n.sender_id for n in items})
    responses = []
    for notification in items:
        response = NotificationResponse.model_validate(notification)
        response.sender.is_following = notification.sender_id in followed
        responses.append(response)

    return NotificationPage(total_page=total_page, notifications=responses)


def mark_read(db: Session, recipient_id: uuid.UUID, notification_id: int) -> Notification:
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.recipient_id == recipient_id,
    )
    notification = db.execute(stmt).scalar_one_or_none()
    if notification is None:
        raise NotFoundError(f"Notification with id {notification_id} not found")

    if notification.read_at is None:
        notification.read_at = utcnow()
        db.commit()
        db.refresh(notification)
    return notification
