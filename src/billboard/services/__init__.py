"""Business logic services for the Billboard application."""

from .errors import (
    BillboardError,
    NotFoundError,
    PartialFetchError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from .images import ImageStorage
from .views import SubmissionView, assemble_submission_view, rank_submissions_by_net_score
from .votes import VoteAction, VoteLedger, VoteState

__all__ = [
    "BillboardError",
    "NotFoundError",
    "PartialFetchError",
    "StorageError",
    "UnauthorizedError",
    "ValidationError",
    "ImageStorage",
    "SubmissionView",
    "assemble_submission_view",
    "rank_submissions_by_net_score",
    "VoteAction",
    "VoteLedger",
    "VoteState",
]
