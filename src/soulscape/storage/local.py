"""Local filesystem storage backend.

Signed upload URLs point back at this service
(``PUT /api/v1/local-upload/{key}``) and carry an HMAC over the key, the
required content type and the expiry timestamp.
"""

import hashlib
import hmac
import logging
import os
import secrets
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlencode

from soulscape.core.exceptions import StoreFailure, ValidationError
from soulscape.storage.base import ListPage, ObjectEntry, StorageBackend

logger = logging.getLogger(__name__)

LOCAL_UPLOAD_ROUTE = "/api/v1/local-upload"

# "~" is outside the sanitized key alphabet, so temp names never shadow objects
_TEMP_PREFIX = "~upload-"


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(
        self,
        base_path: str | Path = "data/media",
        upload_base_url: str = "http://localhost:8000",
        signing_secret: str = "",
    ):
        self.base_path = Path(base_path)
        self.upload_base_url = upload_base_url.rstrip("/")
        # Without a configured secret, URLs only verify within this process
        self._secret = (signing_secret or secrets.token_hex(32)).encode()

    def _path_for(self, key: str) -> Path:
        parts = [p for p in key.split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise ValidationError(f"Invalid storage key: {key}")
        return self.base_path.joinpath(*parts)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write the object through a temp file so readers never see a partial write."""
        target_path = self._path_for(key)
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target_path.parent, prefix=_TEMP_PREFIX)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, target_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error(
                "Failed to write object to local storage",
                extra={"key": key, "error": str(e)},
            )
            raise StoreFailure(f"Failed to store object: {e}") from e

        logger.info(
            "Object stored locally",
            extra={"key": key, "path": str(target_path), "size_bytes": len(data)},
        )

    def _signature(self, key: str, content_type: str, expires_at: int) -> str:
        message = f"{key}\n{content_type}\n{expires_at}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        self._path_for(key)
        expires_at = int(time.time()) + expires_in
        query = urlencode(
            {"expires": expires_at, "signature": self._signature(key, content_type, expires_at)}
        )
        return f"{self.upload_base_url}{LOCAL_UPLOAD_ROUTE}/{quote(key)}?{query}"

    def verify_signature(self, key: str, content_type: str, expires_at: int, signature: str) -> bool:
        """Check a signed upload URL against the request it arrived with."""
        if expires_at < int(time.time()):
            return False
        expected = self._signature(key, content_type, expires_at)
        return hmac.compare_digest(expected, signature)

    def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 200) -> ListPage:
        """List files under ``prefix`` in key order; the cursor is the last key returned."""
        if not self.base_path.exists():
            return ListPage()

        try:
            keys = sorted(
                path.relative_to(self.base_path).as_posix()
                for path in self.base_path.rglob("*")
                if path.is_file() and not path.name.startswith(_TEMP_PREFIX)
            )
        except OSError as e:
            raise StoreFailure(f"Failed to list objects: {e}") from e

        matching = [k for k in keys if k.startswith(prefix) and (cursor is None or k > cursor)]
        page_keys = matching[:limit]

        entries = []
        for key in page_keys:
            stat = (self.base_path / key).stat()
            entries.append(
                ObjectEntry(
                    key=key,
                    size_bytes=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )

        next_cursor = page_keys[-1] if page_keys and len(matching) > limit else None
        return ListPage(entries=entries, next_cursor=next_cursor)

    def get_backend_name(self) -> str:
        return "local"
