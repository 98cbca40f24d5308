"""FastAPI application factory."""

import logging
import secrets
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from shortener.auth import UserTokenSigner
from shortener.tasks import BackgroundTasks
from .api import api_router
from .web import web_router
from .middleware.auth import AuthMiddleware
from .middleware.gzip import GzipRequestMiddleware
from .middleware.logging import LoggingMiddleware


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request body", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors reduced to location and message."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def create_app(
    service_instance,
    config,
    tasks: Optional[BackgroundTasks] = None,
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: Service instance (may be set later, e.g. in lifespan)
        config: Configuration instance
        tasks: Background task registry (created if omitted)
        logger: Optional logger

    Returns:
        Configured FastAPI app
    """
    logger = logger or logging.getLogger("shortener.web")

    app = FastAPI(
        title="URL Shortener",
        description="URL shortening service",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    secret_key = config.auth_secret_key
    if not secret_key:
        logger.warning("AUTH_SECRET_KEY is not set; using a random key, cookies will not survive a restart")
        secret_key = secrets.token_hex(32)

    # Store instances in app state for access in routes
    app.state.service = service_instance
    app.state.config = config
    app.state.tasks = tasks or BackgroundTasks(logger=logger)
    app.state.logger = logger

    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # Last added runs first: logging wraps gzip wraps auth wraps request gunzip
    app.add_middleware(GzipRequestMiddleware, logger=logger)
    app.add_middleware(
        AuthMiddleware,
        signer=UserTokenSigner(secret_key),
        cookie_name=config.auth_cookie_name,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Web"])

    return app
