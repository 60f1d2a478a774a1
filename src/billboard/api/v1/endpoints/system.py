"""Service metadata endpoints."""

from fastapi import APIRouter

from billboard.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def public_config() -> dict[str, int]:
    """Expose the limits clients should enforce before submitting."""
    return {
        "submission_max_length": settings.submission_max_length,
        "comment_max_length": settings.comment_max_length,
        "display_name_max_length": settings.display_name_max_length,
        "image_max_bytes": settings.image_max_bytes,
        "leaderboard_size": settings.leaderboard_size,
    }
