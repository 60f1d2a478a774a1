"""Primary key helpers shared by the models."""

import uuid


def new_id() -> str:
    """Return a fresh opaque row identifier."""
    return str(uuid.uuid4())
