"""Vote ledger: one like or dislike per user per submission, with toggle semantics.

A user's standing on a submission is one of three states::

    NO_VOTE  --like-->     LIKED
    NO_VOTE  --dislike-->  DISLIKED
    LIKED    --like-->     NO_VOTE     (toggle off)
    LIKED    --dislike-->  DISLIKED    (switch)
    DISLIKED --dislike-->  NO_VOTE     (toggle off)
    DISLIKED --like-->     LIKED       (switch)

``next_state`` is the pure transition function; ``VoteLedger`` applies the
resulting transition to the ``votes`` table as exactly one insert, update or
delete.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billboard.models import Submission, Vote, VoteType
from billboard.services.errors import (
    BillboardError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

__all__ = [
    "VoteAction",
    "VoteLedger",
    "VoteState",
    "VoteTransition",
    "VoteType",
    "next_state",
    "state_for",
]


class VoteState(Enum):
    """Standing of one user on one submission."""

    NO_VOTE = "none"
    LIKED = "liked"
    DISLIKED = "disliked"


class VoteAction(str, Enum):
    """Row-level change produced by a vote."""

    CREATED = "created"
    REMOVED = "removed"
    UPDATED = "updated"


_STATE_BY_TYPE = {
    VoteType.LIKE: VoteState.LIKED,
    VoteType.DISLIKE: VoteState.DISLIKED,
}


@dataclass(frozen=True)
class VoteTransition:
    """Result of applying one vote to a prior state."""

    previous: VoteState
    current: VoteState
    action: VoteAction

    @property
    def like_delta(self) -> int:
        return _bucket(self.current, VoteState.LIKED) - _bucket(self.previous, VoteState.LIKED)

    @property
    def dislike_delta(self) -> int:
        return _bucket(self.current, VoteState.DISLIKED) - _bucket(
            self.previous, VoteState.DISLIKED
        )

    @property
    def net_delta(self) -> int:
        """Change in likes minus dislikes caused by this transition."""
        return self.like_delta - self.dislike_delta


def _bucket(state: VoteState, target: VoteState) -> int:
    return 1 if state is target else 0


def coerce_vote_type(value: VoteType | str) -> VoteType:
    """Return ``value`` as a ``VoteType`` or raise ``ValidationError``."""
    try:
        return VoteType(value)
    except ValueError as err:
        raise ValidationError("vote_type", "Vote type must be 'like' or 'dislike'") from err


def state_for(vote_type: VoteType | str | None) -> VoteState:
    """Map a stored vote type (or its absence) onto a ``VoteState``."""
    if vote_type is None:
        return VoteState.NO_VOTE
    return _STATE_BY_TYPE[VoteType(vote_type)]


def next_state(state: VoteState, vote_type: VoteType) -> VoteTransition:
    """Apply ``vote_type`` to ``state``."""
    target = _STATE_BY_TYPE[vote_type]
    if state is VoteState.NO_VOTE:
        return VoteTransition(state, target, VoteAction.CREATED)
    if state is target:
        return VoteTransition(state, VoteState.NO_VOTE, VoteAction.REMOVED)
    return VoteTransition(state, target, VoteAction.UPDATED)


class _KeyedLocks:
    """Process-local mutexes keyed by (submission id, user id)."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], list] = {}

    @contextmanager
    def hold(self, key: tuple[str, str]) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        lock: threading.Lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_vote_locks = _KeyedLocks()


class VoteLedger:
    """Reads and mutates the votes table through a SQLAlchemy session.

    Toggles for the same (submission, user) pair are serialized in-process;
    the ``uq_votes_submission_user`` constraint protects the invariant across
    processes.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_vote(self, submission_id: str, user_id: str) -> Vote | None:
        """Return the caller's vote row on a submission, if any."""
        try:
            return self.session.scalars(
                select(Vote).where(
                    Vote.submission_id == submission_id,
                    Vote.user_id == user_id,
                )
            ).first()
        except SQLAlchemyError as err:
            raise StorageError("Failed to read vote") from err

    def votes_for(self, submission_ids: Iterable[str]) -> list[Vote]:
        """Return every vote cast on the given submissions."""
        ids = list(submission_ids)
        if not ids:
            return []
        try:
            return list(self.session.scalars(select(Vote).where(Vote.submission_id.in_(ids))))
        except SQLAlchemyError as err:
            raise StorageError("Failed to read votes") from err

    def toggle(
        self,
        submission_id: str,
        user_id: str | None,
        vote_type: VoteType | str,
    ) -> VoteTransition:
        """Cast a vote and return the full state transition.

        Raises:
            UnauthorizedError: If ``user_id`` is missing.
            ValidationError: If ``vote_type`` is not like or dislike.
            NotFoundError: If the submission does not exist.
            StorageError: If the write fails; nothing is committed in that case.
        """
        if not user_id:
            raise UnauthorizedError("Sign in to vote")
        vote_type = coerce_vote_type(vote_type)

        with _vote_locks.hold((submission_id, user_id)):
            try:
                if self.session.get(Submission, submission_id) is None:
                    raise NotFoundError("Submission not found")
                existing = self.get_vote(submission_id, user_id)
                transition = next_state(
                    state_for(existing.vote_type if existing else None),
                    vote_type,
                )

                if transition.action is VoteAction.CREATED:
                    self.session.add(
                        Vote(
                            submission_id=submission_id,
                            user_id=user_id,
                            vote_type=vote_type.value,
                        )
                    )
                elif transition.action is VoteAction.REMOVED:
                    self.session.delete(existing)
                else:
                    existing.vote_type = vote_type.value

                self.session.commit()
            except SQLAlchemyError as err:
                self.session.rollback()
                logger.error(
                    "Vote write failed for submission %s: %s",
                    submission_id,
                    err,
                    exc_info=True,
                )
                raise StorageError("Failed to record vote") from err
            except StorageError:
                self.session.rollback()
                logger.error(
                    "Vote lookup failed for submission %s",
                    submission_id,
                    exc_info=True,
                )
                raise
            except BillboardError:
                self.session.rollback()
                raise

        logger.info(
            "Vote %s on submission %s: %s -> %s",
            transition.action.value,
            submission_id,
            transition.previous.value,
            transition.current.value,
        )
        return transition

    def cast_vote(
        self,
        submission_id: str,
        user_id: str | None,
        vote_type: VoteType | str,
    ) -> VoteAction:
        """Cast a vote with toggle semantics and return which row change occurred."""
        return self.toggle(submission_id, user_id, vote_type).action
