"""
Event Publishing

Domain events are published to a Redis pub/sub channel, where the
external notification service (SSE/push delivery) consumes them.
Publishing is fire-and-forget: a failure is logged and reported through
the return value, never raised, so it can't break the request that
produced the event.

Event payload for `notification.create`:
    {"senderIdx", "recipientIdx", "type", "reviewIdx", "commentIdx"}

Usage:
    from reviewhub.services.events import get_event_publisher

    get_event_publisher().publish_notification(notification)
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError

from reviewhub.config import get_settings
from reviewhub.services.cache import get_redis_client

if TYPE_CHECKING:
    from reviewhub.models.notification import Notification

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    """Types of events that can be published."""

    NOTIFICATION_CREATED = "notification.create"


@dataclass
class Event:
    """
    An event to be published.

    Attributes:
        type: The event type
        data: Event payload data
        timestamp: When the event occurred
    """

    type: EventType
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class EventPublisher:
    """
    Publishes events to the configured Redis channel.

    A Redis client can be injected (tests); otherwise the shared cache
    client is looked up on every publish so a reconnect is picked up.
    """

    def __init__(self, redis_client=None, channel: str | None = None):
        self._redis_client = redis_client
        self._channel = channel or get_settings().notification_channel

    @property
    def channel(self) -> str:
        return self._channel

    def _get_redis_client(self):
        return self._redis_client or get_redis_client()

    def publish(self, event: Event) -> bool:
        """
        Publish an event.

        Returns:
            True if Redis accepted the message, False otherwise
        """
        redis = self._get_redis_client()
        if redis is None:
            logger.warning(f"Redis unavailable, dropped {event.type.value} event")
            return False

        try:
            redis.publish(self._channel, event.to_json())
            logger.debug(f"Published {event.type.value} to '{self._channel}'")
            return True
        except RedisError as e:
            logger.warning(f"Failed to publish {event.type.value}: {e}")
            return False

    def publish_notification(self, notification: "Notification") -> bool:
        """Publish `notification.create` for a persisted notification."""
        event = Event(
            type=EventType.NOTIFICATION_CREATED,
            data={
                "senderIdx": str(notification.sender_id),
                "recipientIdx": str(notification.recipient_id),
                "type": notification.type,
                "reviewIdx": notification.review_id,
                "commentIdx": notification.comment_id,
            },
        )
        return self.publish(event)


# =============================================================================
# Global Event Publisher Instance
# =============================================================================

_event_publisher: EventPublisher | None = None


def get_event_publisher() -> EventPublisher:
    """Get the global event publisher instance."""
    global _event_publisher
    if _event_publisher is None:
        _event_publisher = EventPublisher()
    return _event_publisher
