"""Shared API dependencies for identity and database access."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from billboard.core.security import Identity, decode_access_token
from billboard.db.session import get_db
from billboard.services.errors import UnauthorizedError
from billboard.services.images import ImageStorage, get_image_storage

from .errors import http_error

# Missing credentials mean an anonymous caller, not an error.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity | None:
    """Return the caller identity, or None when no bearer token was sent.

    Raises:
        HTTPException: If a token was sent but cannot be verified.
    """
    if credentials is None:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except UnauthorizedError as err:
        raise http_error(err) from err


def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    """Return the caller identity or reject the request with 401."""
    if identity is None:
        raise http_error(UnauthorizedError())
    return identity


def get_image_storage_dep() -> ImageStorage:
    """Return the shared blob storage client."""
    return get_image_storage()


OptionalIdentityDep = Annotated[Identity | None, Depends(get_optional_identity)]
CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]
ImageStorageDep = Annotated[ImageStorage, Depends(get_image_storage_dep)]
