"""Submission and comment Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from billboard.models.vote import VoteType


class SubmissionCreate(BaseModel):
    """Schema for posting a new submission.

    Length limits are enforced by the service layer after trimming, so the
    bounds here only reject obviously oversized payloads.
    """

    content: str = Field(..., max_length=10_000, description="Message text")
    user_name: str | None = Field(
        None,
        max_length=1_000,
        description="Display name; required when not signed in",
    )
    image_url: str | None = Field(None, max_length=2_048, description="Public image URL")


class CommentCreate(BaseModel):
    """Schema for commenting on a submission."""

    content: str = Field(..., max_length=10_000, description="Comment text")


class CommentResponse(BaseModel):
    """Comment as returned inside a submission."""

    id: str
    user_id: str
    user_name: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WarningResponse(BaseModel):
    """Non-fatal problem encountered while assembling a submission."""

    source: Literal["comments", "votes"]
    reason: str

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    """Assembled submission with derived vote totals and comments."""

    id: str
    user_id: str
    user_name: str
    content: str
    image_url: str | None
    likes: int
    dislikes: int
    net_score: int
    user_vote: VoteType | None
    comments: list[CommentResponse]
    created_at: datetime
    is_prime_time: bool
    is_flash_moment: bool
    warnings: list[WarningResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
