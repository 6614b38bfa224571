"""Google Cloud Storage backend."""

import logging
from datetime import timedelta
from typing import Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from soulscape.core.exceptions import ConfigurationError, StoreFailure
from soulscape.storage.base import ListPage, ObjectEntry, StorageBackend

logger = logging.getLogger(__name__)


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend."""

    def __init__(self, bucket_name: str, project_id: str = ""):
        self.bucket_name = bucket_name
        self.project_id = project_id
        self._client: Optional[storage.Client] = None
        self._bucket: Optional[storage.Bucket] = None

    def _get_bucket(self) -> storage.Bucket:
        """Lazy-load and cache GCS bucket."""
        if self._bucket is None:
            if not self.bucket_name:
                raise ConfigurationError("GCS_BUCKET_NAME not configured")

            self._client = storage.Client(project=self.project_id or None)
            self._bucket = self._client.bucket(self.bucket_name)

        return self._bucket

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload object bytes to GCS in a single request."""
        bucket = self._get_bucket()
        try:
            blob = bucket.blob(key)
            blob.upload_from_string(data, content_type=content_type)
        except GoogleAPIError as e:
            logger.error(
                "Failed to upload object to GCS",
                extra={"bucket": self.bucket_name, "key": key, "error": str(e)},
            )
            raise StoreFailure(f"Failed to store object: {e}") from e

        logger.info(
            "Object stored in GCS",
            extra={"bucket": self.bucket_name, "key": key, "size_bytes": len(data)},
        )

    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Generate a V4 signed URL for a direct PUT."""
        bucket = self._get_bucket()
        blob = bucket.blob(key)

        try:
            signing_kwargs = self._signing_kwargs()
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=expires_in),
                method="PUT",
                content_type=content_type,
                **signing_kwargs,
            )
        except (GoogleAPIError, GoogleAuthError, AttributeError) as e:
            logger.error(
                "Failed to generate signed URL",
                extra={"bucket": self.bucket_name, "key": key, "error": str(e)},
                exc_info=True,
            )
            raise StoreFailure(f"Failed to create upload URL: {e}") from e

    def _signing_kwargs(self) -> dict:
        """Credentials able to sign URLs.

        Service account key files sign locally. Runtime credentials on Cloud
        Run / GCE / GKE carry no private key, so signing goes through the IAM
        signBlob API instead. The service account then needs
        roles/iam.serviceAccountTokenCreator on itself.
        """
        credentials = self._client._credentials if self._client else None
        if credentials is not None and hasattr(credentials, "sign_bytes"):
            return {}

        from google.auth import compute_engine, iam
        from google.auth.transport import requests as auth_requests

        credentials = compute_engine.Credentials()
        auth_request = auth_requests.Request()
        credentials.refresh(auth_request)
        service_account_email = credentials.service_account_email

        signer = iam.Signer(
            request=auth_request,
            credentials=credentials,
            service_account_email=service_account_email,
        )
        # token_uri is only required by the constructor, signing is done by the IAM signer
        signing_creds = service_account.Credentials(
            signer=signer,
            service_account_email=service_account_email,
            token_uri="https://oauth2.googleapis.com/token",
        )
        return {"credentials": signing_creds, "service_account_email": service_account_email}

    def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 200) -> ListPage:
        """List one page of blobs under ``prefix``."""
        self._get_bucket()
        try:
            blobs = self._client.list_blobs(
                self.bucket_name,
                prefix=prefix,
                max_results=limit,
                page_token=cursor or None,
            )
            page = next(blobs.pages, None)
            entries = [
                ObjectEntry(key=blob.name, size_bytes=blob.size or 0, last_modified=blob.updated)
                for blob in (page or [])
            ]
            return ListPage(entries=entries, next_cursor=blobs.next_page_token or None)
        except GoogleAPIError as e:
            logger.error(
                "Failed to list GCS objects",
                extra={"bucket": self.bucket_name, "prefix": prefix, "error": str(e)},
            )
            raise StoreFailure(f"Failed to list objects: {e}") from e

    def get_backend_name(self) -> str:
        return "gcs"
