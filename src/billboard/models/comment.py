"""SQLAlchemy model for comments on submissions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billboard.db.session import Base
from billboard.db.time import utcnow

from ._ids import new_id

if TYPE_CHECKING:
    from .submission import Submission


class Comment(Base):
    """Append-only remark left by a signed-in user on a submission."""

    __tablename__ = "comments"
    __table_args__ = (Index("ix_comments_submission_id", "submission_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    submission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    submission: Mapped[Submission] = relationship("Submission", back_populates="comments")
