"""Image upload endpoint backed by blob storage."""

from fastapi import APIRouter, File, UploadFile, status

from billboard.core.settings import settings
from billboard.schemas.upload import ImageUploadResponse
from billboard.services.errors import BillboardError
from billboard.services.images import resolve_content_type

from ..dependencies import ImageStorageDep
from ..errors import http_error

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post(
    "/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    storage: ImageStorageDep,
    file: UploadFile = File(..., description="Image to attach to a submission"),
) -> ImageUploadResponse:
    """Store an image (at most 5 MB, image/* only) and return its public URL."""
    # One byte past the limit is enough to reject oversized files.
    data = await file.read(settings.image_max_bytes + 1)
    try:
        url = await storage.upload(data, file.content_type, filename=file.filename)
    except BillboardError as err:
        raise http_error(err) from err
    return ImageUploadResponse(
        url=url,
        size=len(data),
        content_type=resolve_content_type(file.content_type, file.filename) or "",
    )
