"""Media listing API routes."""

import asyncio
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from soulscape.core.context import MediaContext, get_context
from soulscape.core.exceptions import (
    ConfigurationError,
    MediaServiceError,
    StoreFailure,
)
from soulscape.models.media import ListingResponse
from soulscape.services.listing import ListingService

router = APIRouter(prefix="/api/v1", tags=["media"])
logger = logging.getLogger(__name__)


def get_listing_service(context: MediaContext = Depends(get_context)) -> ListingService:
    return ListingService(context)


def _to_http(e: Exception, action: str) -> HTTPException:
    if isinstance(e, ConfigurationError):
        logger.error(f"Storage configuration error: {e}")
        return HTTPException(status_code=500, detail="Server misconfigured.")
    if isinstance(e, StoreFailure):
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        return HTTPException(status_code=500, detail=f"Failed to {action}.")
    if isinstance(e, MediaServiceError):
        return HTTPException(status_code=e.status_code, detail=str(e))
    logger.error(f"Unexpected error while trying to {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail="Internal server error")


@router.options("/media")
@router.options("/media/tree")
async def media_preflight() -> dict:
    """Answer bare preflight requests."""
    return {"ok": True}


@router.get("/media", response_model=ListingResponse)
async def list_media(
    media_type: str = Query("", alias="type"),
    cursor: Optional[str] = Query(None),
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    """List one page of stored images or videos."""
    try:
        return await asyncio.to_thread(service.list_media, media_type, cursor)
    except Exception as e:
        raise _to_http(e, "list objects")


@router.get("/media/tree")
async def media_tree(
    media_type: str = Query("", alias="type"),
    service: ListingService = Depends(get_listing_service),
) -> dict[str, Any]:
    """All stored objects of a type arranged as a folder tree."""
    try:
        tree = await asyncio.to_thread(service.folder_tree, media_type)
    except Exception as e:
        raise _to_http(e, "list objects")

    return {"prefix": service.prefix_for(media_type), "tree": tree.to_dict()}
