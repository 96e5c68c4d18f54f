"""SkillX service entry point.

Builds the FastAPI app: error envelopes, CORS, the v1 routers under
``/api/v1`` and ``/health``. On shutdown the background progress queue
is stopped.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skillx.api.deps import reset_assessment_flow
from skillx.api.v1.router import router as v1_router
from skillx.core.config import settings
from skillx.core.errors import APIError, InternalError
from skillx.core.responses import ErrorDetail, ErrorResponse

logger = structlog.get_logger()


def _error_envelope(
    status_code: int, code: str, message: str, details: list[dict] | None = None
) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    return _error_envelope(exc.status_code, exc.code, exc.message, exc.details)


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request body/query problems as VALIDATION_ERROR (400).

    Each detail carries the pydantic ``loc``, ``msg`` and ``type``.
    """
    details = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return _error_envelope(400, "VALIDATION_ERROR", "Request validation failed", details)


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log anything unhandled and answer with a bare INTERNAL_ERROR."""
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))
    return api_error_handler(request, InternalError())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logging.getLogger("skillx").setLevel(settings.log_level.upper())
    yield
    await reset_assessment_flow()


def create_app() -> FastAPI:
    """Assemble the SkillX API."""
    app = FastAPI(
        title="SkillX Assessment API",
        version="1.0.0",
        description="Career assessment wizard, persistence sync and results",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

    # Catch-all must be registered last
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "healthy"}

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on API_HOST:API_PORT."""
    uvicorn.run("skillx.main:app", host=settings.api_host, port=settings.api_port)
