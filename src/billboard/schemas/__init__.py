"""Pydantic schemas for the Billboard API."""

from .submission import (
    CommentCreate,
    CommentResponse,
    SubmissionCreate,
    SubmissionResponse,
    WarningResponse,
)
from .upload import ImageUploadResponse
from .vote import MyVoteResponse, VoteCreate, VoteResult

__all__ = [
    "CommentCreate",
    "CommentResponse",
    "SubmissionCreate",
    "SubmissionResponse",
    "WarningResponse",
    "ImageUploadResponse",
    "MyVoteResponse",
    "VoteCreate",
    "VoteResult",
]
