"""
FastAPI Production Application

Main entry point for the Storefront Catalog API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError
import structlog

from storefront.config import get_settings
from storefront.config.logging import configure_logging
from storefront.database.connection import close_database, get_session_factory, init_database
from storefront.lifecycle.services import build_services
from storefront.media.cloudinary_gateway import close_media_gateway, init_media_gateway
from storefront.serving.api.main import create_api_app
from storefront.serving.cache import close_redis, init_redis

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    settings = get_settings()

    logger.info("Starting Storefront Catalog API", environment=settings.app_env)

    await init_database(create_schema=settings.is_development)
    gateway = init_media_gateway()

    try:
        await init_redis()
    except RedisError as e:
        logger.warning("Redis unavailable, serving without cache", error=str(e))

    app.state.gateway = gateway
    app.state.services = build_services(
        get_session_factory(),
        gateway,
        media_roots=settings.media.root_folders,
    )

    yield

    logger.info("Shutting down...")
    await close_redis()
    close_media_gateway()
    await close_database()


def create_app() -> FastAPI:
    return create_api_app(lifespan=lifespan)


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
