"""Paginated listing of stored media."""

import logging
from typing import Iterator, Optional

from soulscape.core.context import MediaContext
from soulscape.media.keys import parse_media_type, public_url
from soulscape.media.tree import FolderNode, build_tree
from soulscape.models.media import ListingResponse, StoredObject
from soulscape.storage.base import ObjectEntry

logger = logging.getLogger(__name__)


def is_content_entry(entry: ObjectEntry) -> bool:
    """False for empty objects and directory markers."""
    return bool(entry.key) and entry.size_bytes > 0 and not entry.key.endswith("/")


class ListingService:
    """Enumerates stored media under the image/video prefixes."""

    def __init__(self, context: MediaContext):
        self.context = context
        self.settings = context.settings

    def prefix_for(self, media_type: str) -> str:
        """Listing prefix (with trailing slash) for a ``type`` parameter.

        Raises:
            InvalidTypeError: If the type is not image or video
        """
        parsed = parse_media_type(media_type)
        return f"{self.settings.media_prefixes[parsed.value]}/"

    def list_media(self, media_type: str, cursor: Optional[str] = None) -> ListingResponse:
        """Return one page of stored objects.

        Args:
            media_type: ``image`` or ``video``
            cursor: Opaque continuation token from the previous page

        Returns:
            ListingResponse whose next_token is None on the last page

        Raises:
            InvalidTypeError: If the type is not image or video
            ConfigurationError: If PUBLIC_HOST or the backend is not configured
            StoreFailure: If the store listing fails
        """
        prefix = self.prefix_for(media_type)
        public_host = self.context.public_host

        page = self.context.storage.list(prefix, cursor=cursor or None, limit=self.settings.LIST_PAGE_SIZE)
        items = [
            StoredObject(
                key=entry.key,
                public_url=public_url(public_host, entry.key),
                last_modified=entry.last_modified,
                size_bytes=entry.size_bytes,
            )
            for entry in page.entries
            if is_content_entry(entry)
        ]

        logger.debug(
            "Listing page served",
            extra={
                "prefix": prefix,
                "returned": len(items),
                "skipped": len(page.entries) - len(items),
                "has_more": page.next_cursor is not None,
            },
        )
        return ListingResponse(items=items, next_token=page.next_cursor)

    def iter_all(self, media_type: str) -> Iterator[StoredObject]:
        """Follow continuation tokens until the listing is exhausted."""
        cursor: Optional[str] = None
        while True:
            page = self.list_media(media_type, cursor)
            yield from page.items
            if not page.next_token:
                return
            if page.next_token == cursor:
                logger.warning(
                    "Listing cursor did not advance, stopping",
                    extra={"media_type": media_type, "cursor": cursor},
                )
                return
            cursor = page.next_token

    def folder_tree(self, media_type: str) -> FolderNode:
        """Every stored object of a type arranged into folders."""
        return build_tree(self.iter_all(media_type), self.prefix_for(media_type))
