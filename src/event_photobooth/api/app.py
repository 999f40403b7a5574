"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from event_photobooth.api.admin import router as admin_router
from event_photobooth.api.booth import router as booth_router
from event_photobooth.app_logging import configure_logging
from event_photobooth.containers import AppContainer
from event_photobooth.services.admin import (
    BuiltinDescriptorError,
    DescriptorNotFoundError,
    DescriptorValidationError,
    UploadValidationError,
)
from event_photobooth.services.imaging import ImageDecodeError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    app.include_router(booth_router)

    def _error(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code, content={"success": False, "error": message}
        )

    @app.exception_handler(DescriptorValidationError)
    @app.exception_handler(UploadValidationError)
    @app.exception_handler(BuiltinDescriptorError)
    async def bad_request(request: Request, exc: Exception) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(ImageDecodeError)
    async def undecodable_image(
        request: Request, exc: ImageDecodeError
    ) -> JSONResponse:
        logger.warning("Undecodable image on %s: %s", request.url.path, exc)
        return _error(status.HTTP_400_BAD_REQUEST, "Captured image could not be read")

    @app.exception_handler(DescriptorNotFoundError)
    async def not_found(request: Request, exc: DescriptorNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "Internal server error"
        if container.settings.environment == "local":
            message = f"{message} (debug: {type(exc).__name__}: {exc})"
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
