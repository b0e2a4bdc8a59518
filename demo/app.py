"""
jsonwrap demo - FastAPI service returning foreign types.

Endpoints:
- GET /hello              Foreign[ForeignType]
- GET /wrapped            Foreign[WrappedForeign] (documented as ForeignType)
- GET /optional           Optional[Foreign[ForeignType]], present
- GET /optional-none      Optional[Foreign[ForeignType]], absent
- GET /foreign-opt        Foreign[Optional[ForeignType]], present
- GET /foreign-opt-none   Foreign[Optional[ForeignType]], absent
- POST /echo             Foreign[Optional[ForeignType]] body, echoed back

Usage:
    uvicorn demo.app:app --port 3000
"""

import logging

import json_log_formatter
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from jsonwrap import ForeignOpenAPI, JsonWrapError, SchemaConfig

from .config import Settings
from .routes import create_router

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Demo service settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the demo FastAPI app."""
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        servers=[{"url": settings.server_url}],
        docs_url=settings.docs_url,
        openapi_url=settings.openapi_url,
    )

    docs = ForeignOpenAPI(config=SchemaConfig.from_env())
    app.include_router(create_router(docs))

    @app.exception_handler(JsonWrapError)
    async def jsonwrap_error_handler(request: Request, exc: JsonWrapError) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": exc.code, "message": exc.message},
        )

    docs.install(app)
    app.state.docs = docs
    return app


app = create_app()
