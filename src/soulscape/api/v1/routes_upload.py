"""Upload intent API routes."""

import logging
from typing import Union

from fastapi import APIRouter, Body, Depends, HTTPException

from soulscape.core.context import MediaContext, get_context
from soulscape.core.exceptions import (
    ConfigurationError,
    MediaServiceError,
    StoreFailure,
)
from soulscape.models.media import (
    PresignedUploadResponse,
    StoredUploadResponse,
    UploadIntentRequest,
)
from soulscape.services.upload import UploadService

router = APIRouter(prefix="/api/v1", tags=["upload"])
logger = logging.getLogger(__name__)


def get_upload_service(context: MediaContext = Depends(get_context)) -> UploadService:
    return UploadService(context)


@router.options("/upload")
async def upload_preflight() -> dict:
    """Answer bare preflight requests."""
    return {"ok": True}


@router.post(
    "/upload",
    response_model=Union[PresignedUploadResponse, StoredUploadResponse],
    status_code=200,
)
async def create_upload_intent(
    request: UploadIntentRequest = Body(...),
    service: UploadService = Depends(get_upload_service),
) -> Union[PresignedUploadResponse, StoredUploadResponse]:
    """Issue a signed upload URL, or compress and store an inline image."""
    try:
        return await service.handle_upload_intent(request)

    except ConfigurationError as e:
        logger.error(f"Storage configuration error: {e}")
        raise HTTPException(status_code=500, detail="Server misconfigured.")
    except StoreFailure as e:
        logger.error(f"Failed to complete upload intent: {e}", exc_info=True)
        detail = "Failed to store image." if request.image_base64 else "Failed to create upload URL."
        raise HTTPException(status_code=500, detail=detail)
    except MediaServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error during upload intent: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
