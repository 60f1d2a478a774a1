from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from billboard.api.v1.dependencies import get_image_storage_dep
from billboard.core.security import create_access_token
from billboard.db.session import Base
from billboard.db.session import get_db as app_get_session
from billboard.main import app as fastapi_app
from billboard.models import Comment, Submission, Vote
from billboard.services.images import ImageStorage

TEST_DB_URL = "sqlite://"
TEST_STORAGE_URL = "http://storage.test/storage/v1"
BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

_SUBMISSION_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def uploaded_objects() -> list[httpx.Request]:
    """Requests received by the fake blob store."""
    return []


@pytest.fixture()
def storage_transport(uploaded_objects: list[httpx.Request]) -> httpx.MockTransport:
    async def handler(request: httpx.Request) -> httpx.Response:
        await request.aread()
        uploaded_objects.append(request)
        return httpx.Response(200, json={"Key": request.url.path})

    return httpx.MockTransport(handler)


@pytest.fixture()
def image_storage(storage_transport: httpx.MockTransport) -> ImageStorage:
    return ImageStorage(
        base_url=TEST_STORAGE_URL,
        bucket="submission-images",
        api_key="service-key",
        chunk_size=256 * 1024,
        client=httpx.AsyncClient(transport=storage_transport),
    )


@pytest.fixture()
def override_image_storage(app: FastAPI, image_storage: ImageStorage) -> Iterator[ImageStorage]:
    app.dependency_overrides[get_image_storage_dep] = lambda: image_storage
    try:
        yield image_storage
    finally:
        app.dependency_overrides.pop(get_image_storage_dep, None)


@pytest.fixture()
def auth_token() -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token("user_test", display_name="Test User")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token() -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token("user_other", display_name="Other User")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_submission(db_session: Session) -> Callable[..., Submission]:
    """Factory persisting submissions with predictable timestamps."""

    def _make(**overrides: Any) -> Submission:
        n = next(_SUBMISSION_COUNTER)
        values: dict[str, Any] = {
            "user_id": f"anon_{n}",
            "user_name": f"Poster {n}",
            "content": f"Message number {n}",
            "created_at": BASE_TIME + timedelta(minutes=n),
        }
        values.update(overrides)
        submission = Submission(**values)
        db_session.add(submission)
        db_session.commit()
        return submission

    return _make


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    def _make(submission: Submission, **overrides: Any) -> Comment:
        values: dict[str, Any] = {
            "submission_id": submission.id,
            "user_id": "user_commenter",
            "user_name": "Commenter",
            "content": "Nice one",
        }
        values.update(overrides)
        comment = Comment(**values)
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make


@pytest.fixture()
def make_vote(db_session: Session) -> Callable[..., Vote]:
    def _make(submission: Submission, user_id: str, vote_type: str = "like") -> Vote:
        vote = Vote(submission_id=submission.id, user_id=user_id, vote_type=vote_type)
        db_session.add(vote)
        db_session.commit()
        return vote

    return _make


@pytest.fixture()
def test_submission(make_submission: Callable[..., Submission]) -> Submission:
    """Create a baseline submission for tests."""
    return make_submission(content="Hello billboard", user_name="Tester")
