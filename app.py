#!/usr/bin/env python3
"""
Main entry point for URL shortener service.

Concurrency: The server handles multiple connections simultaneously via async I/O
(FastAPI + asyncpg connection pool + redis.asyncio). URL deletions run as
supervised background tasks on the same event loop; shutdown waits up to
SHUTDOWN_TIMEOUT_SECONDS for them before cancelling.

Usage:
    python app.py

Environment variables:
    DATABASE_DSN - PostgreSQL connection string (optional)
    FILE_STORAGE_PATH - JSON-lines storage file (used when DATABASE_DSN is unset)
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    AUTH_SECRET_KEY - Key used to sign user cookies
    TRUSTED_SUBNET - CIDR allowed to read /api/internal/stats
    CONFIG - Optional JSON configuration file
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from shortener.deleter import URLDeleter
from shortener.storage import init_storage
from shortener.storage.cache import RedisCache
from shortener.service import URLShortenerService
from shortener.shortcode import ShortCodeGenerator
from shortener.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger
    tasks = app.state.tasks

    logger.info("Starting URL shortener service...")

    store = init_storage(config, logger=logger)

    # Initialize cache (optional)
    cache = None
    if config.redis_url:
        logger.info("Connecting to Redis")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")

    service = URLShortenerService(
        store=store,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        deleter=URLDeleter(
            store,
            logger=logger,
            batch_size=config.delete_batch_size,
            num_workers=config.delete_workers,
        ),
        logger=logger,
        max_collision_retries=config.max_collision_retries,
    )
    app.state.service = service

    logger.info("Service started successfully")

    # Yield control to the application
    yield

    # Shutdown
    logger.info("Shutting down URL shortener service...")

    await tasks.shutdown(config.shutdown_timeout_seconds)
    await service.close()

    logger.info("Service stopped")


def main():
    """Main entry point."""
    # Load configuration
    config = load_config()

    # Setup logging
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("URL Shortener Service")
    logger.info(f"Configuration: {config.safe_dump()}")

    # Create FastAPI app; the service is built in lifespan
    app = create_app(
        service_instance=None,
        config=config,
        logger=logger,
    )
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )

    server = uvicorn.Server(uvicorn_config)

    # Setup signal handlers for graceful shutdown
    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    # Run server
    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
