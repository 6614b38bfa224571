"""Health check endpoint for the Soulscape media service."""

from fastapi import APIRouter, Depends

from soulscape.core.context import MediaContext, get_context

router = APIRouter()


@router.get("/health")
async def health_check(context: MediaContext = Depends(get_context)) -> dict:
    """Health check endpoint.

    Returns service status, name, version and the configured storage
    backend. The backend is not contacted so the check stays fast.
    """
    settings = context.settings
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "storage_backend": settings.STORAGE_BACKEND,
    }
