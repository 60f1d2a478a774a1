"""Tests for vote-related endpoints."""

from fastapi import status


def _vote(client, submission_id, vote_type, headers):
    return client.post(
        "/api/v1/votes/",
        json={"submission_id": submission_id, "vote_type": vote_type},
        headers=headers,
    )


def test_cast_like(client, auth_token, test_submission) -> None:
    response = _vote(client, test_submission.id, "like", auth_token)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["action"] == "created"
    assert body["submission"]["likes"] == 1
    assert body["submission"]["user_vote"] == "like"


def test_repeat_like_removes_vote(client, auth_token, test_submission) -> None:
    _vote(client, test_submission.id, "like", auth_token)
    response = _vote(client, test_submission.id, "like", auth_token)
    body = response.json()
    assert body["action"] == "removed"
    assert body["submission"]["likes"] == 0
    assert body["submission"]["user_vote"] is None


def test_change_vote_direction(client, auth_token, test_submission) -> None:
    _vote(client, test_submission.id, "like", auth_token)
    response = _vote(client, test_submission.id, "dislike", auth_token)
    body = response.json()
    assert body["action"] == "updated"
    assert (body["submission"]["likes"], body["submission"]["dislikes"]) == (0, 1)
    assert body["submission"]["net_score"] == -1

    response = client.get(f"/api/v1/votes/{test_submission.id}/my-vote", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["vote_type"] == "dislike"


def test_votes_are_per_user(client, auth_token, other_auth_token, test_submission) -> None:
    _vote(client, test_submission.id, "like", auth_token)
    response = _vote(client, test_submission.id, "like", other_auth_token)
    assert response.json()["submission"]["likes"] == 2


def test_anonymous_vote_requires_sign_in(client, test_submission) -> None:
    response = _vote(client, test_submission.id, "like", {})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"]["sign_in_required"] is True
    assert response.headers["www-authenticate"] == "Bearer"

    detail = client.get(f"/api/v1/submissions/{test_submission.id}").json()
    assert detail["likes"] == 0


def test_invalid_token_is_rejected(client, test_submission) -> None:
    response = _vote(client, test_submission.id, "like", {"Authorization": "Bearer junk"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_vote_invalid_type(client, auth_token, test_submission) -> None:
    response = _vote(client, test_submission.id, "love", auth_token)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_vote_nonexistent_submission(client, auth_token) -> None:
    response = _vote(client, "missing", "like", auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_my_vote_without_vote(client, auth_token, test_submission) -> None:
    response = client.get(f"/api/v1/votes/{test_submission.id}/my-vote", headers=auth_token)
    assert response.json() == {"submission_id": test_submission.id, "vote_type": None}


def test_vote_storage_failure_is_retryable(client, auth_token, test_submission, mocker) -> None:
    from billboard.services.errors import StorageError

    mocker.patch(
        "billboard.api.v1.endpoints.votes.VoteLedger.cast_vote",
        side_effect=StorageError("Failed to record vote"),
    )
    response = _vote(client, test_submission.id, "like", auth_token)
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["detail"]["retryable"] is True


def test_my_vote_on_missing_submission(client, auth_token) -> None:
    response = client.get("/api/v1/votes/missing/my-vote", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_my_vote_after_voting(client, auth_token, test_submission) -> None:
    _vote(client, test_submission.id, "dislike", auth_token)
    response = client.get(f"/api/v1/votes/{test_submission.id}/my-vote", headers=auth_token)
    assert response.json() == {"submission_id": test_submission.id, "vote_type": "dislike"}
