"""
Notification Pydantic Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from reviewhub.schemas.account import AccountPublic


class NotificationSender(AccountPublic):
    is_following: bool = False


class NotificationResponse(BaseModel):
    id: int
    type: int
    review_id: int | None = None
    comment_id: int | None = None
    read_at: datetime | None = None
    created_at: datetime
    sender: NotificationSender

    model_config = ConfigDict(from_attributes=True)


class NotificationPage(BaseModel):
    total_page: int
    notifications: list[NotificationResponse]
