"""Submission endpoints: feed, leaderboard, detail, posting and comments."""

from fastapi import APIRouter, Query, status

from billboard.schemas.submission import (
    CommentCreate,
    CommentResponse,
    SubmissionCreate,
    SubmissionResponse,
)
from billboard.services import submissions as submission_service
from billboard.services.errors import BillboardError
from billboard.services.views import (
    SubmissionView,
    load_feed,
    load_leaderboard,
    load_submission_view,
)

from ..dependencies import CurrentIdentityDep, OptionalIdentityDep, SessionDep
from ..errors import http_error

router = APIRouter(prefix="/submissions", tags=["submissions"])


def _to_response(view: SubmissionView) -> SubmissionResponse:
    return SubmissionResponse.model_validate(view)


@router.get("/", response_model=list[SubmissionResponse])
async def list_submissions(
    db: SessionDep,
    identity: OptionalIdentityDep,
    limit: int | None = Query(None, ge=1, le=100, description="Maximum number of submissions"),
    before: str | None = Query(None, description="Return submissions older than this id"),
) -> list[SubmissionResponse]:
    """List submissions newest first with vote totals and comments."""
    try:
        views = load_feed(
            db,
            identity.user_id if identity else None,
            limit=limit,
            before=before,
        )
    except BillboardError as err:
        raise http_error(err) from err
    return [_to_response(view) for view in views]


@router.get("/leaderboard", response_model=list[SubmissionResponse])
async def leaderboard(
    db: SessionDep,
    identity: OptionalIdentityDep,
    limit: int | None = Query(None, ge=1, le=100, description="Number of ranked entries"),
) -> list[SubmissionResponse]:
    """Rank submissions by likes minus dislikes, newest first on ties."""
    try:
        views = load_leaderboard(db, identity.user_id if identity else None, limit=limit)
    except BillboardError as err:
        raise http_error(err) from err
    return [_to_response(view) for view in views]


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: str,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> SubmissionResponse:
    """Get a single submission with its comments oldest first."""
    try:
        view = load_submission_view(db, submission_id, identity.user_id if identity else None)
    except BillboardError as err:
        raise http_error(err) from err
    return _to_response(view)


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_submission(
    payload: SubmissionCreate,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> SubmissionResponse:
    """Post a submission. Signed-out callers must provide a display name."""
    try:
        submission = submission_service.create_submission(
            db,
            content=payload.content,
            user_name=payload.user_name,
            image_url=payload.image_url,
            identity=identity,
        )
        view = load_submission_view(db, submission.id, identity.user_id if identity else None)
    except BillboardError as err:
        raise http_error(err) from err
    return _to_response(view)


@router.post(
    "/{submission_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    submission_id: str,
    payload: CommentCreate,
    db: SessionDep,
    identity: CurrentIdentityDep,
) -> CommentResponse:
    """Comment on a submission as the signed-in user."""
    try:
        comment = submission_service.create_comment(
            db,
            submission_id=submission_id,
            content=payload.content,
            identity=identity,
        )
    except BillboardError as err:
        raise http_error(err) from err
    return CommentResponse.model_validate(comment)
