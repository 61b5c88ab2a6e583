"""
Account Model

Represents a registered user. Accounts sign in either with email/password
(after verifying the email address) or through an OAuth provider, in which
case hashed_password is NULL and provider/provider_key identify them.

Accounts are identified by UUID.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewhub.database import Base, utcnow

if TYPE_CHECKING:
    from reviewhub.models.review import Review


class AuthProvider(str, Enum):
    """
    Authentication providers supported by the system.

    - LOCAL: Email/password registration
    - NAVER: Naver OAuth
    - KAKAO: Kakao OAuth
    """
    LOCAL = "local"
    NAVER = "naver"
    KAKAO = "kakao"


class Account(Base):
    """
    Account model.

    Table: accounts

    Indexes:
    - email: Unique index for login lookups
    - nickname: Unique index, searched by the review search feed
    - provider_key: For OAuth account linking
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Email address (used for login)"
    )
    nickname: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    profile_img: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Nullable because OAuth accounts don't have passwords
    hashed_password: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Bcrypt hashed password (null for OAuth accounts)"
    )

    auth_provider: Mapped[str] = mapped_column(
        String(20),
        default=AuthProvider.LOCAL.value,
        nullable=False,
    )
    provider_key: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="Account id at the OAuth provider"
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="author",
    )

    def __repr__(self) -> str:
        return f"Account(id={self.id}, email='{self.email}', nickname='{self.nickname}')"
