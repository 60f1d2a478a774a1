"""Domain exceptions raised by the service layer.

The HTTP layer maps each class onto a status code; services never build
HTTP responses themselves.
"""

from __future__ import annotations


class BillboardError(RuntimeError):
    """Base exception for all billboard failures."""


class UnauthorizedError(BillboardError):
    """Raised when a mutating action is attempted without a caller identity."""

    def __init__(self, message: str = "Sign in required") -> None:
        super().__init__(message)


class NotFoundError(BillboardError):
    """Raised when a referenced submission or comment does not exist."""


class ValidationError(BillboardError):
    """Raised for rejected input before any store or blob call is made."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class StorageError(BillboardError):
    """Raised when the data store or blob store fails, including timeouts."""


class PartialFetchError(BillboardError):
    """Secondary data for a submission could not be loaded.

    Never raised out of the view assembler; instances are attached to the
    assembled view as warnings so the submission body can still be shown.
    """

    def __init__(self, submission_id: str | None, source: str, reason: str) -> None:
        super().__init__(f"Could not load {source}: {reason}")
        self.submission_id = submission_id
        self.source = source
        self.reason = reason
