"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from .submission import SubmissionResponse


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    submission_id: str
    vote_type: Literal["like", "dislike"] = Field(..., description="like or dislike")


class VoteResult(BaseModel):
    """Outcome of a vote and the refreshed submission."""

    action: Literal["created", "removed", "updated"]
    submission: SubmissionResponse


class MyVoteResponse(BaseModel):
    """The caller's current vote on a submission."""

    submission_id: str
    vote_type: Literal["like", "dislike"] | None
