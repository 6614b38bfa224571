"""Configuration management for the Soulscape media service."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    ENV: str = "local"
    SERVICE_NAME: str = "soulscape-media"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Storage Configuration
    STORAGE_BACKEND: str = "local"  # "gcs", "s3" or "local"
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""
    S3_BUCKET_NAME: str = ""
    AWS_REGION: str = "us-east-1"
    LOCAL_STORAGE_PATH: str = "data/media"
    LOCAL_SIGNING_SECRET: str = ""
    LOCAL_UPLOAD_BASE_URL: str = "http://localhost:8000"

    # Public delivery
    PUBLIC_HOST: str = ""  # CDN host serving stored objects
    IMAGE_PREFIX: str = "soulscape/image"
    VIDEO_PREFIX: str = "soulscape/video"

    # Upload Constraints
    URL_EXPIRES_SECONDS: int = 300
    MAX_INLINE_MB: int = 15  # Ceiling for base64 image payloads
    MAX_TARGET_BYTES: int = 1_500_000  # Server cap for compression targets
    RANDOMIZE_UNFOLDERED_NAMES: bool = True
    MAX_UPLOAD_MB: int = 500  # Ceiling for signed PUTs received by the local backend

    # Listing
    LIST_PAGE_SIZE: int = 200

    # CORS
    CORS_ALLOW_ORIGINS: str = "*"  # Comma-separated

    @property
    def max_inline_bytes(self) -> int:
        """Convert MAX_INLINE_MB to bytes."""
        return self.MAX_INLINE_MB * 1024 * 1024

    @property
    def max_upload_bytes(self) -> int:
        """Convert MAX_UPLOAD_MB to bytes."""
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS_ALLOW_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]

    @property
    def media_prefixes(self) -> dict[str, str]:
        """Storage prefix per media type, without trailing slash."""
        return {
            "image": self.IMAGE_PREFIX.strip("/"),
            "video": self.VIDEO_PREFIX.strip("/"),
        }


# Singleton settings instance
settings = Settings()
