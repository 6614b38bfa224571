"""Storage backend selection."""

import logging

from soulscape.core.config import Settings
from soulscape.core.exceptions import ConfigurationError
from soulscape.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def create_storage_backend(settings: Settings) -> StorageBackend:
    """Build the backend named by STORAGE_BACKEND.

    Raises:
        ConfigurationError: If the backend is unknown or misconfigured
    """
    backend_name = settings.STORAGE_BACKEND.lower()

    if backend_name == "gcs":
        from soulscape.storage.gcs import GCSStorageBackend

        backend: StorageBackend = GCSStorageBackend(
            bucket_name=settings.GCS_BUCKET_NAME,
            project_id=settings.GCP_PROJECT_ID,
        )
    elif backend_name == "s3":
        from soulscape.storage.s3 import S3StorageBackend

        backend = S3StorageBackend(
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.AWS_REGION,
        )
    elif backend_name == "local":
        from soulscape.storage.local import LocalStorageBackend

        backend = LocalStorageBackend(
            base_path=settings.LOCAL_STORAGE_PATH,
            upload_base_url=settings.LOCAL_UPLOAD_BASE_URL,
            signing_secret=settings.LOCAL_SIGNING_SECRET,
        )
    else:
        raise ConfigurationError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

    logger.info("Storage backend initialized", extra={"storage_backend": backend_name})
    return backend
