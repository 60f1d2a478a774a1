"""Tests for the vote ledger against a real session."""

import logging
import threading

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from billboard.db.session import Base
from billboard.models import Submission, Vote
from billboard.services.errors import (
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from billboard.services.views import load_submission_view
from billboard.services.votes import VoteAction, VoteLedger, _vote_locks


def _vote_rows(db_session, submission_id, user_id):
    return db_session.scalar(
        select(func.count())
        .select_from(Vote)
        .where(Vote.submission_id == submission_id, Vote.user_id == user_id)
    )


def test_first_vote_creates_row(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    assert ledger.cast_vote(test_submission.id, "user_a", "like") is VoteAction.CREATED
    vote = ledger.get_vote(test_submission.id, "user_a")
    assert vote is not None
    assert vote.vote_type == "like"


def test_repeat_vote_toggles_off(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    before = load_submission_view(db_session, test_submission.id).likes

    ledger.cast_vote(test_submission.id, "user_a", "like")
    assert ledger.cast_vote(test_submission.id, "user_a", "like") is VoteAction.REMOVED

    assert ledger.get_vote(test_submission.id, "user_a") is None
    assert load_submission_view(db_session, test_submission.id).likes == before


def test_switching_vote_updates_in_place(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    ledger.cast_vote(test_submission.id, "user_a", "like")
    liked = load_submission_view(db_session, test_submission.id)

    assert ledger.cast_vote(test_submission.id, "user_a", "dislike") is VoteAction.UPDATED

    disliked = load_submission_view(db_session, test_submission.id)
    assert disliked.likes == liked.likes - 1
    assert disliked.dislikes == liked.dislikes + 1
    assert disliked.net_score == liked.net_score - 2
    assert _vote_rows(db_session, test_submission.id, "user_a") == 1


def test_at_most_one_row_after_any_sequence(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    sequence = ["like", "dislike", "dislike", "like", "like", "like", "dislike"]
    for vote_type in sequence:
        ledger.cast_vote(test_submission.id, "user_a", vote_type)
        assert _vote_rows(db_session, test_submission.id, "user_a") <= 1
    assert ledger.get_vote(test_submission.id, "user_a").vote_type == "dislike"


def test_toggle_reports_transition(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    ledger.cast_vote(test_submission.id, "user_a", "dislike")
    transition = ledger.toggle(test_submission.id, "user_a", "like")
    assert transition.action is VoteAction.UPDATED
    assert transition.net_delta == 2


def test_votes_from_different_users_are_independent(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    ledger.cast_vote(test_submission.id, "user_a", "like")
    ledger.cast_vote(test_submission.id, "user_b", "like")
    ledger.cast_vote(test_submission.id, "user_c", "dislike")

    view = load_submission_view(db_session, test_submission.id, "user_c")
    assert (view.likes, view.dislikes, view.net_score) == (2, 1, 1)
    assert view.user_vote == "dislike"


def test_anonymous_vote_is_rejected(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    with pytest.raises(UnauthorizedError):
        ledger.cast_vote(test_submission.id, None, "like")
    view = load_submission_view(db_session, test_submission.id)
    assert (view.likes, view.dislikes) == (0, 0)
    assert db_session.scalar(select(func.count()).select_from(Vote)) == 0


def test_vote_on_missing_submission(db_session) -> None:
    with pytest.raises(NotFoundError):
        VoteLedger(db_session).cast_vote("does-not-exist", "user_a", "like")


def test_unknown_vote_type(db_session, test_submission) -> None:
    with pytest.raises(ValidationError) as exc_info:
        VoteLedger(db_session).cast_vote(test_submission.id, "user_a", "love")
    assert exc_info.value.field == "vote_type"


def test_failed_write_commits_nothing(db_session, test_submission, mocker) -> None:
    ledger = VoteLedger(db_session)
    mocker.patch.object(
        db_session,
        "commit",
        side_effect=OperationalError("INSERT", {}, Exception("database is locked")),
    )
    rollback = mocker.spy(db_session, "rollback")

    with pytest.raises(StorageError):
        ledger.cast_vote(test_submission.id, "user_a", "like")

    rollback.assert_called_once()
    mocker.stopall()
    assert _vote_rows(db_session, test_submission.id, "user_a") == 0


def test_locks_are_released(db_session, test_submission) -> None:
    ledger = VoteLedger(db_session)
    ledger.cast_vote(test_submission.id, "user_a", "like")
    with pytest.raises(NotFoundError):
        ledger.cast_vote("missing", "user_a", "like")
    assert len(_vote_locks) == 0


def test_toggles_for_same_pair_are_serialized() -> None:
    """A second toggle for the same pair waits until the first one finishes."""
    order: list[str] = []
    first_inside = threading.Event()
    release_first = threading.Event()

    def first() -> None:
        with _vote_locks.hold(("s1", "u1")):
            order.append("first-start")
            first_inside.set()
            release_first.wait(timeout=5)
            order.append("first-end")

    def second() -> None:
        first_inside.wait(timeout=5)
        with _vote_locks.hold(("s1", "u1")):
            order.append("second")

    t1 = threading.Thread(target=first)
    t2 = threading.Thread(target=second)
    t1.start()
    t2.start()
    first_inside.wait(timeout=5)
    release_first.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    assert order == ["first-start", "first-end", "second"]


def test_votes_for_wraps_database_errors(db_session, test_submission, mocker) -> None:
    mocker.patch.object(
        db_session,
        "scalars",
        side_effect=OperationalError("SELECT", {}, Exception("connection reset")),
    )
    with pytest.raises(StorageError):
        VoteLedger(db_session).votes_for([test_submission.id])


def test_failed_lookup_is_logged_and_rolled_back(db_session, test_submission, mocker, caplog) -> None:
    mocker.patch.object(
        VoteLedger,
        "get_vote",
        side_effect=StorageError("Failed to read vote"),
    )
    rollback = mocker.spy(db_session, "rollback")

    with caplog.at_level(logging.ERROR, logger="billboard.services.votes"):
        with pytest.raises(StorageError):
            VoteLedger(db_session).cast_vote(test_submission.id, "user_a", "like")

    rollback.assert_called_once()
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].exc_info is not None
    assert len(_vote_locks) == 0


def test_concurrent_votes_keep_one_row(tmp_path) -> None:
    """Threads with their own sessions toggling the same pair never duplicate a row."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'votes.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    try:
        with SessionLocal() as setup:
            submission = Submission(user_id="anon_1", user_name="Poster", content="race")
            setup.add(submission)
            setup.commit()
            submission_id = submission.id

        actions: list[VoteAction] = []
        errors: list[Exception] = []
        record = threading.Lock()
        start = threading.Barrier(8)

        def worker() -> None:
            start.wait(timeout=10)
            try:
                with SessionLocal() as session:
                    action = VoteLedger(session).cast_vote(submission_id, "user_a", "like")
                with record:
                    actions.append(action)
            except Exception as err:
                with record:
                    errors.append(err)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert len(actions) == 8
        with SessionLocal() as session:
            rows = session.scalar(
                select(func.count()).select_from(Vote).where(Vote.submission_id == submission_id)
            )
        created = actions.count(VoteAction.CREATED)
        removed = actions.count(VoteAction.REMOVED)
        assert rows <= 1
        assert created - removed == rows
        assert VoteAction.UPDATED not in actions
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
