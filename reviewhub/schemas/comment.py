"""
Comment Pydantic Schemas
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reviewhub.schemas.account import AccountPublic


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: int | None = Field(default=None, description="Comment being replied to")
    tagged_account_ids: list[uuid.UUID] = Field(default_factory=list, max_length=20)

    @field_validator("content")
    @classmethod
    def content_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be blank")
        return v


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def content_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be blank")
        return v


class CommentResponse(BaseModel):
    id: int
    review_id: int
    parent_id: int | None = None
    content: str
    author: AccountPublic
    tagged_accounts: list[AccountPublic] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentPage(BaseModel):
    total_page: int
    comments: list[CommentResponse]
