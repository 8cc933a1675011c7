from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hirehub.api.middleware import correlation_id_middleware, rate_limit_middleware
from hirehub.api.routes import register_routes
from hirehub.core.config import get_settings
from hirehub.core.errors import AppError, UnauthenticatedError, ValidationFailedError
from hirehub.core.logging import setup_logging
from hirehub.infrastructure.cache import RedisCache
from hirehub.infrastructure.db.session import dispose_engine
from hirehub.infrastructure.storage import ResumeStorage
from hirehub.libs.mailer import build_mailer
from hirehub.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()

_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into ``[{"field", "message"}]``, one entry per violation."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        errors.append({"field": ".".join(loc) or "body", "message": error.get("msg", "Invalid value")})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.info(
            "request_failed",
            error=type(exc).__name__,
            status_code=exc.status_code,
            detail=exc.detail,
        )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = ValidationFailedError(validation_errors(exc))
        logger.info("request_validation_failed", fields=[e["field"] for e in error.errors])
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", error=type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app() -> FastAPI:
    """Application factory for the public API."""
    settings = get_settings()
    setup_logging(settings.log_level, log_format=settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "service_startup",
            service=settings.app_name,
            environment=settings.environment,
            version=settings.version,
            email_delivery_mode=settings.email_delivery_mode,
        )
        yield
        await app.state.cache.close()
        await dispose_engine()
        logger.info("service_shutdown", service=settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

    app.state.cache = RedisCache(settings.redis_url)
    app.state.registry = ConnectionRegistry()
    app.state.mailer = build_mailer(settings)
    app.state.resume_storage = ResumeStorage(
        Path(settings.upload_dir), max_bytes=settings.max_resume_bytes
    )

    cors_origins = list(settings.cors_origins)
    if settings.environment in ("local", "development"):
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        # Credentialed requests (the refresh cookie) are refused for a wildcard origin
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routes(app)

    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(correlation_id_middleware)

    return app


app = create_app()
