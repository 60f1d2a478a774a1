"""Application settings and configuration.

This module defines all configuration options for the Billboard application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Billboard", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./billboard.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Bearer tokens issued by the identity provider
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str | None = Field(default=None, alias="JWT_AUDIENCE")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Content limits
    submission_max_length: int = Field(default=280, alias="SUBMISSION_MAX_LENGTH")
    comment_max_length: int = Field(default=500, alias="COMMENT_MAX_LENGTH")
    display_name_max_length: int = Field(default=50, alias="DISPLAY_NAME_MAX_LENGTH")

    # Blob storage for submission images
    image_max_bytes: int = Field(default=5 * 1024 * 1024, alias="IMAGE_MAX_BYTES")
    storage_base_url: str = Field(
        default="http://localhost:54321/storage/v1",
        alias="STORAGE_BASE_URL",
    )
    storage_bucket: str = Field(default="submission-images", alias="STORAGE_BUCKET")
    storage_api_key: str | None = Field(default=None, alias="STORAGE_API_KEY")
    storage_timeout_seconds: float = Field(default=30.0, alias="STORAGE_TIMEOUT_SECONDS")
    storage_chunk_size: int = Field(default=64 * 1024, alias="STORAGE_CHUNK_SIZE")

    # Feed and leaderboard
    feed_page_size: int = Field(default=50, alias="FEED_PAGE_SIZE")
    leaderboard_size: int = Field(default=20, alias="LEADERBOARD_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous operations such as
        Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
