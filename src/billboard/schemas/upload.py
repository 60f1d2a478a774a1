"""Image upload Pydantic schemas."""

from pydantic import BaseModel


class ImageUploadResponse(BaseModel):
    """Public URL of an uploaded image."""

    url: str
    size: int
    content_type: str
