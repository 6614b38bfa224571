"""Amazon S3 storage backend."""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from soulscape.core.exceptions import ConfigurationError, StoreFailure
from soulscape.storage.base import ListPage, ObjectEntry, StorageBackend

logger = logging.getLogger(__name__)


class S3StorageBackend(StorageBackend):
    """Amazon S3 storage backend."""

    def __init__(self, bucket_name: str, region: str = "us-east-1", client: Any = None):
        if not bucket_name:
            raise ConfigurationError("S3_BUCKET_NAME not configured")
        self.bucket_name = bucket_name
        self._client = client or boto3.client("s3", region_name=region)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to upload object to S3",
                extra={"bucket": self.bucket_name, "key": key, "error": str(e)},
            )
            raise StoreFailure(f"Failed to store object: {e}") from e

        logger.info(
            "Object stored in S3",
            extra={"bucket": self.bucket_name, "key": key, "size_bytes": len(data)},
        )

    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            return self._client.generate_presigned_url(
                ClientMethod="put_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                    "ContentType": content_type,
                },
                ExpiresIn=expires_in,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"bucket": self.bucket_name, "key": key, "error": str(e)},
            )
            raise StoreFailure(f"Failed to create upload URL: {e}") from e

    def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 200) -> ListPage:
        params = {"Bucket": self.bucket_name, "Prefix": prefix, "MaxKeys": limit}
        if cursor:
            params["ContinuationToken"] = cursor

        try:
            response = self._client.list_objects_v2(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to list S3 objects",
                extra={"bucket": self.bucket_name, "prefix": prefix, "error": str(e)},
            )
            raise StoreFailure(f"Failed to list objects: {e}") from e

        entries = [
            ObjectEntry(
                key=obj["Key"],
                size_bytes=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
            )
            for obj in response.get("Contents", [])
            if obj.get("Key")
        ]
        next_cursor = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return ListPage(entries=entries, next_cursor=next_cursor)

    def get_backend_name(self) -> str:
        return "s3"
