"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from handover_return.api.admin import router as admin_router
from handover_return.api.messages import router as messages_router
from handover_return.api.notifications import router as notifications_router
from handover_return.api.sessions import handover_router, return_router
from handover_return.app_logging import configure_logging
from handover_return.containers import AppContainer
from handover_return.domain.errors import HandoverError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(handover_router)
    app.include_router(return_router)
    app.include_router(messages_router)
    app.include_router(notifications_router)
    app.include_router(admin_router)

    @app.exception_handler(HandoverError)
    async def handle_handover_error(
        request: Request, exc: HandoverError
    ) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("Request failed: %s %s: %s", request.method, request.url, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.kind, exc.message, exc.details()),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors else "body"
        message = errors[0]["msg"] if errors else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("ValidationError", message, {"field": field}),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("InternalError", "Internal server error", {}),
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def _error_body(
    kind: str, message: str, details: dict[str, object]
) -> dict[str, object]:
    return {"success": False, "message": message, "error": kind, "details": details}
