"""Main entry point for the Billboard application."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from billboard.api.v1 import (
    submissions_router,
    system_router,
    uploads_router,
    votes_router,
)
from billboard.core.logging import configure_logging
from billboard.core.settings import settings
from billboard.services.images import close_image_storage


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    yield
    await close_image_storage()


# Initialize FastAPI app
app = FastAPI(
    title="Billboard API",
    description="Post short messages, vote on them, and climb the leaderboard",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(submissions_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Billboard API",
        "version": settings.app_version,
        "description": "Post short messages, vote on them, and climb the leaderboard",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("billboard.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
