"""Main application entrypoint for the Soulscape media service."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from soulscape.api.middleware import HTTPErrorLoggingMiddleware
from soulscape.api.v1 import routes_health, routes_local, routes_media, routes_upload
from soulscape.core.config import Settings, settings
from soulscape.core.context import MediaContext
from soulscape.core.logging import setup_logging


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and parameters as 400 rather than 422."""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        app_settings: Settings to run with, defaults to the environment

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app_settings = app_settings or settings

    # Initialize logging first
    setup_logging()

    app = FastAPI(
        title=app_settings.SERVICE_NAME,
        version=app_settings.SERVICE_VERSION,
    )
    app.state.context = MediaContext(settings=app_settings)

    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_upload.router)
    app.include_router(routes_media.router)
    app.include_router(routes_local.router)

    return app


# Export app instance for ASGI servers
app = create_app()
