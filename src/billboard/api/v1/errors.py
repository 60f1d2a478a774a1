"""Translation of service-layer exceptions into HTTP errors."""

from fastapi import HTTPException, status

from billboard.services.errors import (
    BillboardError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)


def http_error(err: BillboardError) -> HTTPException:
    """Return the HTTPException matching a domain error.

    Unauthorized responses tell the client to send the user to sign-in;
    storage failures are reported as retryable.
    """
    if isinstance(err, UnauthorizedError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": str(err), "sign_in_required": True},
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(err, NotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": str(err)},
        )
    if isinstance(err, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": err.message, "field": err.field},
        )
    if isinstance(err, StorageError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(err), "retryable": True},
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": "Unexpected error"},
    )
