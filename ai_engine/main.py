"""
Main FastAPI application for the prompt-to-site bundle engine
"""
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import httpx
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sentry_sdk.integrations.fastapi import FastApiIntegration

from config import Settings, get_settings, validate_required_config
from errors import BundleServiceError
from logging_config import logger
from routers import download, generate
from services.bundle_service import BundleService
from services.upstream_client import UpstreamClient

VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application around one immutable settings value"""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        logger.info("Starting site engine", environment=settings.ENVIRONMENT)

        # Missing upstream config is reported, not fatal
        validate_required_config(settings)

        if settings.SENTRY_DSN:
            sentry_sdk.init(
                dsn=settings.SENTRY_DSN,
                environment=settings.SENTRY_ENVIRONMENT,
                traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
                integrations=[FastApiIntegration()],
            )
            logger.info("Sentry initialized")

        logger.info(
            "Site engine started",
            model=settings.GEMINI_MODEL,
            upstream_configured=settings.upstream_configured,
        )

        yield

        logger.info("Shutting down site engine")

    app = FastAPI(
        title="Prompt-to-Site Engine",
        description="Generates static site bundles from natural-language prompts",
        version=VERSION,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.bundle_service = BundleService(settings, UpstreamClient(settings, transport=transport))

    # In development, allow all origins for easier testing
    if settings.ENVIRONMENT == "development" or settings.DEBUG or settings.allowed_origins == ["*"]:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,  # Cannot use credentials with wildcard origins
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check():
        """Service status and upstream configuration"""
        return {
            "status": "healthy" if settings.upstream_configured else "degraded",
            "version": VERSION,
            "timestamp": datetime.utcnow().isoformat(),
            "checks": {
                "upstream": {
                    "configured": settings.upstream_configured,
                    "model": settings.GEMINI_MODEL,
                }
            }
        }

    app.include_router(generate.router, prefix="/api", tags=["Site Generation"])
    app.include_router(download.router, prefix="/api", tags=["Site Download"])

    @app.exception_handler(BundleServiceError)
    async def bundle_error_handler(request: Request, exc: BundleServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected malformed request body", path=request.url.path)
        return JSONResponse(
            status_code=400,
            content={"error": "Request body must be a JSON object."}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler with Sentry integration"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True
        )

        if settings.SENTRY_DSN:
            sentry_sdk.capture_exception(exc)

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.ENVIRONMENT == "development" else None
            }
        )

    # Front-end goes last so /api and /health win
    if os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="public")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    reload_enabled = app.state.settings.ENVIRONMENT == "development" or app.state.settings.DEBUG
    if reload_enabled:
        uvicorn.run("main:app", host="0.0.0.0", port=app.state.settings.PORT, reload=True)
    else:
        uvicorn.run(app, host="0.0.0.0", port=app.state.settings.PORT)
