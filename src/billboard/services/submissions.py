"""Service-level helpers for creating submissions and comments."""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billboard.core.settings import settings
from billboard.models import Comment, Submission
from billboard.services.errors import (
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)

if TYPE_CHECKING:
    from billboard.core.security import Identity

logger = logging.getLogger(__name__)

ANON_PREFIX = "anon_"
_BASE36 = string.digits + string.ascii_lowercase


def anonymous_user_id() -> str:
    """Return a synthetic author id for a signed-out poster."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{ANON_PREFIX}{millis}_{suffix}"


def clean_text(field: str, value: str | None, max_length: int) -> str:
    """Trim ``value`` and enforce a 1..max_length character window."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(field, f"{field.replace('_', ' ').capitalize()} must not be empty")
    if len(text) > max_length:
        raise ValidationError(
            field,
            f"{field.replace('_', ' ').capitalize()} must be at most {max_length} characters",
        )
    return text


def clean_image_url(value: str | None) -> str | None:
    """Return a trimmed absolute http(s) URL, or None for blank input."""
    url = (value or "").strip()
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError("image_url", "Image URL must be an absolute http(s) URL")
    return url


def create_submission(
    db: Session,
    *,
    content: str,
    user_name: str | None = None,
    image_url: str | None = None,
    identity: Identity | None = None,
) -> Submission:
    """Validate and store a new submission.

    Signed-out callers must supply a display name and are given a synthetic
    ``anon_`` author id. Signed-in callers may override their display name.

    Raises:
        ValidationError: Content, name or image URL rejected. No write is attempted.
        StorageError: The insert failed.
    """
    body = clean_text("content", content, settings.submission_max_length)
    if identity is not None and not (user_name or "").strip():
        user_name = identity.display_name
    name = clean_text("user_name", user_name, settings.display_name_max_length)
    url = clean_image_url(image_url)

    submission = Submission(
        user_id=identity.user_id if identity else anonymous_user_id(),
        user_name=name,
        content=body,
        image_url=url,
    )
    try:
        db.add(submission)
        db.commit()
        db.refresh(submission)
    except SQLAlchemyError as err:
        db.rollback()
        logger.error("Failed to store submission: %s", err, exc_info=True)
        raise StorageError("Failed to create submission") from err

    logger.info("Created submission %s by %s", submission.id, submission.user_id)
    return submission


def get_submission(db: Session, submission_id: str) -> Submission:
    """Return a submission or raise ``NotFoundError``."""
    try:
        submission = db.get(Submission, submission_id)
    except SQLAlchemyError as err:
        raise StorageError("Failed to load submission") from err
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


def list_submissions(
    db: Session,
    *,
    limit: int | None,
    before: str | None = None,
) -> list[Submission]:
    """Return submissions newest first.

    Args:
        db: Database session.
        limit: Maximum number of rows, or None for all of them.
        before: Only return submissions created before the one with this id.
    """
    stmt = select(Submission)
    if before is not None:
        anchor = get_submission(db, before)
        stmt = stmt.where(
            or_(
                Submission.created_at < anchor.created_at,
                and_(
                    Submission.created_at == anchor.created_at,
                    Submission.id < anchor.id,
                ),
            )
        )
    stmt = stmt.order_by(Submission.created_at.desc(), Submission.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    try:
        return list(db.scalars(stmt))
    except SQLAlchemyError as err:
        raise StorageError("Failed to load submissions") from err


def create_comment(
    db: Session,
    *,
    submission_id: str,
    content: str,
    identity: Identity | None,
) -> Comment:
    """Attach a comment from a signed-in user to an existing submission.

    Raises:
        UnauthorizedError: No caller identity.
        ValidationError: Empty or over-long content.
        NotFoundError: The submission does not exist.
        StorageError: The insert failed.
    """
    if identity is None:
        raise UnauthorizedError("Sign in to comment")
    body = clean_text("content", content, settings.comment_max_length)
    get_submission(db, submission_id)

    comment = Comment(
        submission_id=submission_id,
        user_id=identity.user_id,
        user_name=identity.display_name,
        content=body,
    )
    try:
        db.add(comment)
        db.commit()
        db.refresh(comment)
    except SQLAlchemyError as err:
        db.rollback()
        logger.error("Failed to store comment on %s: %s", submission_id, err, exc_info=True)
        raise StorageError("Failed to create comment") from err
    return comment
