"""
Review Pydantic Schemas

Schemas:
- ReviewImageIn / ReviewImageResponse: image path + caption
- ReviewCreate / ReviewUpdate: write payloads (update replaces tags and images)
- ReviewUserStatus: per-viewer flags produced by the user-status overlay
- ReviewResponse: review with author, tags, images, derived counts and flags
- ReviewPage: paginated feed response {total_page, reviews}
"""
# ruff: noqa: I001
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reviewhub.schemas.account import AccountPublic


class ReviewImageIn(BaseModel):
    img_path: str = Field(..., min_length=1)
    content: str | None = Field(default=None, description="Caption")


class ReviewImageResponse(ReviewImageIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ReviewBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    score: int = Field(..., ge=0, le=5, examples=[4])
    thumbnail: str | None = None
    thumbnail_content: str | None = None
    tags: list[str] = Field(default_factory=list, max_length=20)
    images: list[ReviewImageIn] = Field(default_factory=list, max_length=20)

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Strip tags, drop empty ones and duplicates, keep first-seen order."""
        seen: list[str] = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class ReviewCreate(ReviewBase):
    """
    Example request body:
    {
        "title": "Best ramen in town",
        "content": "...",
        "score": 5,
        "tags": ["food", "ramen"],
        "images": [{"img_path": "reviews/1.png", "content": "the bowl"}]
    }
    """


class ReviewUpdate(ReviewBase):
    """Full replacement of a review's fields, tags and images."""


class ReviewUserStatus(BaseModel):
    """Viewer-specific flags for one review. Missing means all false."""

    review_id: int
    is_my_like: bool = False
    is_my_dislike: bool = False
    is_my_bookmark: bool = False
    is_my_block: bool = False


class ReviewResponse(BaseModel):
    id: int
    title: str
    content: str
    score: int
    thumbnail: str | None = None
    thumbnail_content: str | None = None
    view_count: int = 0
    created_at: datetime
    updated_at: datetime
    author: AccountPublic
    tags: list[str] = Field(default_factory=list)
    images: list[ReviewImageResponse] = Field(default_factory=list)

    like_count: int = 0
    dislike_count: int = 0
    bookmark_count: int = 0
    comment_count: int = 0

    is_my_like: bool = False
    is_my_dislike: bool = False
    is_my_bookmark: bool = False
    is_my_block: bool = False

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tags", mode="before")
    @classmethod
    def tag_names(cls, v):
        return [getattr(tag, "tag_name", tag) for tag in v]


class ReviewPage(BaseModel):
    total_page: int = Field(..., ge=0)
    reviews: list[ReviewResponse]
