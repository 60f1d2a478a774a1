"""SQLAlchemy models for the Billboard application."""

from .comment import Comment
from .submission import Submission
from .vote import Vote, VoteType

__all__ = [
    "Comment",
    "Submission",
    "Vote", "VoteType",
]
