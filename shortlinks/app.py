"""
Main entry point for the shortlinks HTTP service.

Usage:
    shortlinks-server

Environment variables:
    STORE_PATH - Directory of the link store (temporary if unset)
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    LOG_LEVEL - Logging level
"""

import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import Config, load_config
from .manager import LinkManager
from .database.cache import RedisCache
from .shortcode import ShortCodeGenerator
from .common.logging_config import setup_logging
from .web_app import create_app


async def build_manager(config: Config, logger) -> LinkManager:
    """Open the store and cache described by the configuration.

    Raises:
        StoreOpenFailure: If the store cannot be opened
    """
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

    return await LinkManager.create(
        store_path=config.store_path,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        logger=logger,
        max_collision_retries=config.max_collision_retries,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting shortlinks service...")
    app.state.manager = await build_manager(config, logger)
    logger.info("Service started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down shortlinks service...")
        await app.state.manager.close()
        logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info(f"Configuration: {config.model_dump()}")

    app = create_app(manager_instance=None, config=config)
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

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
