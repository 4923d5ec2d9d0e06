"""
API Routes Module
"""
from .health import router as health_router
from .categories import router as categories_router
from .products import router as products_router
from .reviews import router as reviews_router
from .promotions import (
    explore_products_router,
    featured_collections_router,
    hero_sliders_router,
    video_gallery_router,
)

__all__ = [
    "health_router",
    "categories_router",
    "products_router",
    "reviews_router",
    "explore_products_router",
    "featured_collections_router",
    "hero_sliders_router",
    "video_gallery_router",
]
