"""Main module for the Polymarket events aggregation service."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from market_events_agg.config import Settings, configure_logging
from market_events_agg.container import Container, init_container
from market_events_agg.providers.core.exceptions import (AppError, ErrorCode,
                                                         error_response)
from market_events_agg.routers import polymarket_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _error_json(exc: Exception) -> JSONResponse:
    payload = error_response(exc)
    return JSONResponse(
        status_code=payload["statusCode"],
        content={"success": False, "error": payload},
    )


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app around a container (a fresh one by default)."""
    container = container or init_container()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Start background polling at startup; stop it and close the client on shutdown."""
        settings: Settings = container.settings()
        polling = container.polling_service()
        if settings.polling_enabled:
            polling.start()
        else:
            logger.info("Background polling disabled")

        yield

        await polling.stop()
        try:
            await container.client().close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error closing Gamma client: %s", exc)

    app = FastAPI(
        title="Polymarket Events Aggregator",
        description="Normalized, cached Polymarket events with grouped outcomes",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.container = container

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error_json(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return _error_json(AppError(ErrorCode.VALIDATION_ERROR, str(exc.errors())))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_json(exc)

    app.include_router(polymarket_router)

    @app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api")
    def api_info():
        return {
            "message": "Polymarket Events Aggregator API",
            "version": VERSION,
            "documentation": "/docs",
        }

    return app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    settings = Settings()
    configure_logging(settings)
    uvicorn.run("market_events_agg.main:app", host=settings.host, port=settings.port)
