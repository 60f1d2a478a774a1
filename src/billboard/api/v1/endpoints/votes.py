"""Vote-related endpoints for the Billboard API."""

from fastapi import APIRouter

from billboard.schemas.submission import SubmissionResponse
from billboard.schemas.vote import MyVoteResponse, VoteCreate, VoteResult
from billboard.services.errors import BillboardError
from billboard.services.submissions import get_submission
from billboard.services.views import load_submission_view
from billboard.services.votes import VoteLedger

from ..dependencies import CurrentIdentityDep, OptionalIdentityDep, SessionDep
from ..errors import http_error

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteResult)
async def cast_vote(
    vote_data: VoteCreate,
    db: SessionDep,
    identity: OptionalIdentityDep,
) -> VoteResult:
    """Like or dislike a submission; repeating the same vote removes it.

    The response carries the submission re-assembled after the write so the
    client never has to patch counts locally.
    """
    user_id = identity.user_id if identity else None
    try:
        action = VoteLedger(db).cast_vote(vote_data.submission_id, user_id, vote_data.vote_type)
        view = load_submission_view(db, vote_data.submission_id, user_id)
    except BillboardError as err:
        raise http_error(err) from err
    return VoteResult(
        action=action.value,
        submission=SubmissionResponse.model_validate(view),
    )


@router.get("/{submission_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    submission_id: str,
    db: SessionDep,
    identity: CurrentIdentityDep,
) -> MyVoteResponse:
    """Get the current user's vote on a specific submission."""
    try:
        get_submission(db, submission_id)
        vote = VoteLedger(db).get_vote(submission_id, identity.user_id)
    except BillboardError as err:
        raise http_error(err) from err
    return MyVoteResponse(
        submission_id=submission_id,
        vote_type=vote.vote_type if vote else None,
    )
