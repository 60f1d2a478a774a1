"""Bearer token helpers for identities issued by the external identity provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from billboard.core.settings import settings
from billboard.services.errors import UnauthorizedError

ANONYMOUS_DISPLAY_NAME = "Anonymous"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as asserted by a verified token."""

    user_id: str
    display_name: str


def _display_name_from_claims(claims: dict[str, Any]) -> str:
    for key in ("name", "username", "first_name"):
        value = claims.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ANONYMOUS_DISPLAY_NAME


def create_access_token(
    subject: str,
    display_name: str | None = None,
    extra_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed token in the identity provider's format.

    Used by local tooling and tests; production tokens come from the provider.
    """
    to_encode: dict[str, Any] = {"sub": subject}
    if display_name:
        to_encode["name"] = display_name
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> Identity:
    """Verify a bearer token and return the caller identity.

    Raises:
        UnauthorizedError: If the token is malformed, expired, or lacks a subject.
    """
    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as err:
        raise UnauthorizedError("Could not validate credentials") from err

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise UnauthorizedError("Could not validate credentials")
    return Identity(user_id=subject, display_name=_display_name_from_claims(claims))
