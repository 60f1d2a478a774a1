"""SQLAlchemy model for billboard submissions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billboard.db.session import Base
from billboard.db.time import utcnow

from ._ids import new_id

if TYPE_CHECKING:
    from .comment import Comment
    from .vote import Vote


class Submission(Base):
    """A short message posted to the billboard.

    Like and dislike totals are never stored here; they are derived from the
    ``votes`` table every time a submission is read.
    """

    __tablename__ = "submissions"
    __table_args__ = (Index("ix_submissions_created_at", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Either the identity provider's subject or a synthetic ``anon_`` id.
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_prime_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_flash_moment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    comments: Mapped[list[Comment]] = relationship(
        "Comment",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    votes: Mapped[list[Vote]] = relationship(
        "Vote",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_anonymous(self) -> bool:
        """Return True when the author had no identity at posting time."""
        return self.user_id.startswith("anon_")
