"""
FastAPI Application Factory

Creates and configures the catalog API application. Startup and shutdown of
the database, media gateway and cache are left to the caller's lifespan so
tests can attach their own services to ``app.state``.
"""

from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from storefront.config import get_settings
from storefront.serving.api.errors import register_exception_handlers
from storefront.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from storefront.serving.api.routes import (
    categories_router,
    explore_products_router,
    featured_collections_router,
    health_router,
    hero_sliders_router,
    products_router,
    reviews_router,
    video_gallery_router,
)


def create_api_app(lifespan: Optional[Callable] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Optional lifespan context manager factory

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Storefront Catalog API",
        description="Catalog management with remote media lifecycle",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(categories_router, prefix="/api/categories", tags=["Categories"])
    app.include_router(products_router, prefix="/api/products", tags=["Products"])
    app.include_router(reviews_router, prefix="/api/reviews", tags=["Reviews"])
    app.include_router(hero_sliders_router, prefix="/api/hero-sliders", tags=["Hero Sliders"])
    app.include_router(explore_products_router, prefix="/api/explore-products", tags=["Explore Products"])
    app.include_router(featured_collections_router, prefix="/api/featured-collections", tags=["Featured Collections"])
    app.include_router(video_gallery_router, prefix="/api/video-gallery", tags=["Video Gallery"])

    return app
