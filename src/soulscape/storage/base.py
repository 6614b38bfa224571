"""Abstract storage backend interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ObjectEntry:
    """A raw entry returned by a backend listing."""

    key: str
    size_bytes: int
    last_modified: Optional[datetime] = None


@dataclass
class ListPage:
    """One page of a backend listing."""

    entries: list[ObjectEntry] = field(default_factory=list)
    next_cursor: Optional[str] = None


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Keys are treated as opaque. Every put is a single whole-object write that
    overwrites whatever was stored under the key before.
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store an object.

        Args:
            key: Storage key
            data: Object content
            content_type: MIME type recorded with the object

        Raises:
            StoreFailure: If the write fails
        """
        pass

    @abstractmethod
    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Create a time-limited URL authorizing a single PUT of ``key``.

        Args:
            key: Storage key the client will write
            content_type: Content-Type header the client must send
            expires_in: Validity in seconds

        Returns:
            Signed URL

        Raises:
            StoreFailure: If signing fails
        """
        pass

    @abstractmethod
    def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 200) -> ListPage:
        """List objects under ``prefix``, one page at a time.

        Args:
            prefix: Key prefix to enumerate
            cursor: Continuation cursor from a previous page
            limit: Maximum number of entries in the page

        Returns:
            ListPage whose ``next_cursor`` is None on the last page

        Raises:
            StoreFailure: If the listing fails
        """
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
