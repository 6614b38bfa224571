"""Process-wide handler context.

Built once by ``create_app()`` and handed to every request through
FastAPI dependencies, so handlers never reach for module globals.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from soulscape.core.config import Settings
from soulscape.core.exceptions import ConfigurationError
from soulscape.storage.base import StorageBackend
from soulscape.storage.factory import create_storage_backend


@dataclass
class MediaContext:
    """Settings plus the storage backend they select."""

    settings: Settings
    _storage: Optional[StorageBackend] = field(default=None, repr=False)

    @property
    def storage(self) -> StorageBackend:
        """Storage backend, created on first use so startup never needs credentials."""
        if self._storage is None:
            self._storage = create_storage_backend(self.settings)
        return self._storage

    @property
    def public_host(self) -> str:
        if not self.settings.PUBLIC_HOST:
            raise ConfigurationError("PUBLIC_HOST not configured")
        return self.settings.PUBLIC_HOST


def get_context(request: Request) -> MediaContext:
    """FastAPI dependency returning the application's context."""
    return request.app.state.context
