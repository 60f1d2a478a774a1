"""Models capturing like/dislike votes on submissions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billboard.db.session import Base
from billboard.db.time import utcnow

from ._ids import new_id

if TYPE_CHECKING:
    from .submission import Submission


class VoteType(str, Enum):
    """Kinds of vote a user can cast."""

    LIKE = "like"
    DISLIKE = "dislike"


class Vote(Base):
    """Per-user vote on a submission.

    Rows are inserted on a first vote, flipped in place when the user switches
    sides, and deleted when the user repeats the vote they already hold.
    """

    __tablename__ = "votes"
    __table_args__ = (
        # At most one vote per user per submission.
        UniqueConstraint("submission_id", "user_id", name="uq_votes_submission_user"),
        CheckConstraint("vote_type IN ('like', 'dislike')", name="ck_votes_vote_type"),
        Index("ix_votes_submission_id", "submission_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    submission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    vote_type: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    submission: Mapped[Submission] = relationship("Submission", back_populates="votes")
