"""Short link model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shortlink.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User

SHORT_CODE_MAX_LENGTH = 32
TARGET_URL_MAX_LENGTH = 2048


class Link(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    A short code owned by a user and pointing at a target URL.

    The ``short_code`` column carries the ``uq_links_short_code`` constraint;
    the allocator relies on it to detect concurrent claims of the same code.
    The code never changes after insert.
    """

    __tablename__ = "links"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    short_code: Mapped[str] = mapped_column(String(SHORT_CODE_MAX_LENGTH), nullable=False)
    target_url: Mapped[str] = mapped_column(String(TARGET_URL_MAX_LENGTH), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    click_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    last_clicked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    owner: Mapped[User] = relationship(back_populates="links")

    __table_args__ = (
        UniqueConstraint("short_code", name="uq_links_short_code"),
        Index("ix_links_user_id", "user_id"),
    )
