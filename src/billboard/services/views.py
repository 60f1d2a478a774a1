"""Read models that fold submissions, comments and votes into display-ready views.

Counts and the caller's own vote are recomputed from the vote rows on every
read; nothing derived is stored. Loading comments or votes is allowed to fail:
the submission is still returned with empty engagement data and a
``PartialFetchError`` attached to ``SubmissionView.warnings``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billboard.core.settings import settings
from billboard.db.time import as_utc
from billboard.models import Comment, Submission, Vote, VoteType
from billboard.services.errors import PartialFetchError, StorageError
from billboard.services.submissions import get_submission, list_submissions
from billboard.services.votes import VoteLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommentView:
    id: str
    user_id: str
    user_name: str
    content: str
    created_at: datetime


@dataclass(frozen=True)
class SubmissionView:
    """Immutable aggregate of one submission as seen by one viewer."""

    id: str
    user_id: str
    user_name: str
    content: str
    image_url: str | None
    created_at: datetime
    likes: int
    dislikes: int
    user_vote: VoteType | None
    comments: tuple[CommentView, ...]
    is_prime_time: bool = False
    is_flash_moment: bool = False
    warnings: tuple[PartialFetchError, ...] = field(default=())

    @property
    def net_score(self) -> int:
        return self.likes - self.dislikes

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)


def _comment_sort_key(comment: Any) -> tuple[datetime, str]:
    return as_utc(comment.created_at), str(comment.id)


def assemble_submission_view(
    submission: Any,
    comments: Iterable[Any],
    votes: Iterable[Any],
    viewing_user_id: str | None,
    warnings: Sequence[PartialFetchError] = (),
) -> SubmissionView:
    """Fold a submission and its related rows into a ``SubmissionView``.

    Args:
        submission: Submission row (anything with the ``Submission`` attributes).
        comments: Comment rows; rows for other submissions are ignored.
        votes: Vote rows; rows for other submissions are ignored.
        viewing_user_id: Caller whose own vote is reported, or None when signed out.
        warnings: Partial fetch failures to carry on the view.

    Returns:
        A view with like/dislike totals, the viewer's vote and comments ordered
        oldest first (ties broken by comment id).
    """
    likes = dislikes = 0
    user_vote: VoteType | None = None
    for vote in votes:
        if vote.submission_id != submission.id:
            continue
        vote_type = VoteType(vote.vote_type)
        if vote_type is VoteType.LIKE:
            likes += 1
        else:
            dislikes += 1
        if viewing_user_id is not None and vote.user_id == viewing_user_id:
            user_vote = vote_type

    ordered = sorted(
        (c for c in comments if c.submission_id == submission.id),
        key=_comment_sort_key,
    )
    return SubmissionView(
        id=submission.id,
        user_id=submission.user_id,
        user_name=submission.user_name,
        content=submission.content,
        image_url=submission.image_url,
        created_at=as_utc(submission.created_at),
        likes=likes,
        dislikes=dislikes,
        user_vote=user_vote,
        comments=tuple(
            CommentView(
                id=c.id,
                user_id=c.user_id,
                user_name=c.user_name,
                content=c.content,
                created_at=as_utc(c.created_at),
            )
            for c in ordered
        ),
        is_prime_time=bool(getattr(submission, "is_prime_time", False)),
        is_flash_moment=bool(getattr(submission, "is_flash_moment", False)),
        warnings=tuple(warnings),
    )


def rank_submissions_by_net_score(submissions: Iterable[SubmissionView]) -> list[SubmissionView]:
    """Order views for the leaderboard.

    Highest net score first; equal scores put the newest submission first and
    fall back to the id so repeated calls give the same order.
    """
    return sorted(
        submissions,
        key=lambda view: (-view.net_score, -view.created_at.timestamp(), view.id),
    )


def fetch_comments(db: Session, submission_ids: Sequence[str]) -> list[Comment]:
    if not submission_ids:
        return []
    stmt = (
        select(Comment)
        .where(Comment.submission_id.in_(submission_ids))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(db.scalars(stmt))


def fetch_votes(db: Session, submission_ids: Sequence[str]) -> list[Vote]:
    return VoteLedger(db).votes_for(submission_ids)


def _fetch_secondary(
    fetch: Any,
    db: Session,
    submission_ids: Sequence[str],
    source: str,
) -> tuple[list[Any], PartialFetchError | None]:
    try:
        return fetch(db, submission_ids), None
    except (SQLAlchemyError, StorageError) as err:
        # A failed statement aborts the transaction on PostgreSQL; the next
        # secondary fetch must start clean.
        db.rollback()
        logger.warning(
            "Could not load %s for %d submission(s): %s",
            source,
            len(submission_ids),
            err,
        )
        return [], PartialFetchError(None, source, f"{source} temporarily unavailable")


def assemble_many(
    db: Session,
    submissions: Sequence[Submission],
    viewing_user_id: str | None,
) -> list[SubmissionView]:
    """Batch-load comments and votes for ``submissions`` and assemble each view."""
    ids = [s.id for s in submissions]
    comments, comments_error = _fetch_secondary(fetch_comments, db, ids, "comments")
    votes, votes_error = _fetch_secondary(fetch_votes, db, ids, "votes")

    comments_by_submission: dict[str, list[Comment]] = defaultdict(list)
    for comment in comments:
        comments_by_submission[comment.submission_id].append(comment)
    votes_by_submission: dict[str, list[Vote]] = defaultdict(list)
    for vote in votes:
        votes_by_submission[vote.submission_id].append(vote)

    warnings = [w for w in (comments_error, votes_error) if w is not None]
    return [
        assemble_submission_view(
            submission,
            comments_by_submission[submission.id],
            votes_by_submission[submission.id],
            viewing_user_id,
            warnings=[
                PartialFetchError(submission.id, w.source, w.reason) for w in warnings
            ],
        )
        for submission in submissions
    ]


def load_submission_view(
    db: Session,
    submission_id: str,
    viewing_user_id: str | None = None,
) -> SubmissionView:
    """Load one submission with its engagement data.

    Raises:
        NotFoundError: The submission does not exist.
        StorageError: The submission row itself could not be read.
    """
    submission = get_submission(db, submission_id)
    return assemble_many(db, [submission], viewing_user_id)[0]


def load_feed(
    db: Session,
    viewing_user_id: str | None = None,
    *,
    limit: int | None = None,
    before: str | None = None,
) -> list[SubmissionView]:
    """Return the newest-first feed of assembled views."""
    submissions = list_submissions(
        db,
        limit=settings.feed_page_size if limit is None else limit,
        before=before,
    )
    return assemble_many(db, submissions, viewing_user_id)


def load_leaderboard(
    db: Session,
    viewing_user_id: str | None = None,
    *,
    limit: int | None = None,
) -> list[SubmissionView]:
    """Return the top submissions by net score."""
    views = assemble_many(db, list_submissions(db, limit=None), viewing_user_id)
    size = settings.leaderboard_size if limit is None else limit
    return rank_submissions_by_net_score(views)[:size]
