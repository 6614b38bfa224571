"""Receiver for signed uploads when the local storage backend is active."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from soulscape.core.context import MediaContext, get_context
from soulscape.core.exceptions import MediaServiceError
from soulscape.storage.local import LOCAL_UPLOAD_ROUTE, LocalStorageBackend

router = APIRouter(prefix=LOCAL_UPLOAD_ROUTE, tags=["local-storage"])
logger = logging.getLogger(__name__)


async def _read_capped(request: Request, limit: int, limit_mb: int) -> bytes:
    """Read the request body, giving up as soon as it passes ``limit`` bytes."""
    too_large = HTTPException(
        status_code=413,
        detail=f"Upload exceeds maximum allowed size of {limit_mb}MB",
    )

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise too_large

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise too_large
        chunks.append(chunk)
    return b"".join(chunks)


@router.put("/{key:path}")
async def receive_signed_upload(
    key: str,
    request: Request,
    expires: int = Query(...),
    signature: str = Query(...),
    context: MediaContext = Depends(get_context),
) -> Response:
    """Store a direct upload authorized by a local signed URL."""
    if context.settings.STORAGE_BACKEND.lower() != "local":
        raise HTTPException(status_code=404, detail="Not found")

    backend = context.storage
    if not isinstance(backend, LocalStorageBackend):
        raise HTTPException(status_code=404, detail="Not found")

    content_type = request.headers.get("content-type", "")
    if not backend.verify_signature(key, content_type, expires, signature):
        logger.warning("Rejected signed upload", extra={"key": key})
        raise HTTPException(status_code=403, detail="Signature mismatch or expired")

    data = await _read_capped(request, context.settings.max_upload_bytes, context.settings.MAX_UPLOAD_MB)
    try:
        await asyncio.to_thread(backend.put, key, data, content_type)
    except MediaServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return Response(status_code=200)
