"""
Main entry point for the shortlinks service.

Concurrency: requests are served with async I/O (FastAPI + asyncpg pool +
redis.asyncio) in a single uvicorn process. Scale out by running more instances; each
instance owns its own pool and its own pending click increments.

Usage:
    shortlinks-server

Environment variables:
    DATABASE_BACKEND - 'postgres' (default) or 'memory'
    DATABASE_URL - PostgreSQL connection URL
    DATABASE_CREATE_TABLES - 'true' to create the schema on startup
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    JWT_SECRET - Secret used to verify session tokens (optional)
    PORT - Port to listen on
    LOG_LEVEL - Logging level
"""

import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI

from .config import Config, load_config
from .lib.common.logging_config import setup_logging
from .lib.database import MappingStoreBase, RedisCache, create_store
from .lib.service import ShortLinkService
from .lib.shortcode import ShortCodeGenerator
from .web_app import create_app


async def build_service(
    config: Config,
    logger: logging.Logger,
) -> Tuple[MappingStoreBase, Optional[RedisCache], ShortLinkService]:
    """Create and connect store, cache and service from configuration."""
    logger.info(f"Using {config.database_backend} mapping store")
    store = create_store(config, logger=logger)
    await store.initialize()

    cache = None
    if config.redis_url:
        logger.info(f"Connecting to Redis at {config.redis_url}")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")

    service = ShortLinkService(
        store=store,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        logger=logger,
        enable_custom_codes=config.enable_custom_codes,
        max_collision_retries=config.max_collision_retries,
        custom_code_min_length=config.custom_code_min_length,
        custom_code_max_length=config.custom_code_max_length,
    )
    return store, cache, service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting shortlinks service...")
    store, cache, service = await build_service(config, logger)

    app.state.store = store
    app.state.cache = cache
    app.state.service = service
    logger.info("Service started successfully")

    yield

    logger.info("Shutting down shortlinks service...")
    await service.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("shortlinks service")
    logger.info(f"Configuration: {config.model_dump(exclude={'jwt_secret', 'database_url'})}")

    app = create_app(
        store_instance=None,  # Set in lifespan
        cache_instance=None,
        service_instance=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=True,
    )
    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
