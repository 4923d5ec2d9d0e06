"""
Catalog service wiring.

All lifecycles share one session factory and one media gateway, both created
once per process and injected here.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.database.models import (
    Category,
    ExploreProduct,
    FeaturedCollection,
    HeroSlider,
    Product,
    Review,
    VideoItem,
)
from storefront.database.repository import Repository
from storefront.lifecycle.categories import CategoryLifecycle
from storefront.lifecycle.products import ProductLifecycle
from storefront.lifecycle.promotions import (
    ExploreProductLifecycle,
    FeaturedCollectionLifecycle,
    HeroSliderLifecycle,
    VideoItemLifecycle,
)
from storefront.lifecycle.reconcile import MediaReconciler
from storefront.lifecycle.reviews import ReviewLifecycle
from storefront.media.gateway import MediaGateway


@dataclass
class CatalogServices:
    categories: CategoryLifecycle
    products: ProductLifecycle
    reviews: ReviewLifecycle
    explore_products: ExploreProductLifecycle
    featured_collections: FeaturedCollectionLifecycle
    hero_sliders: HeroSliderLifecycle
    video_items: VideoItemLifecycle
    reconciler: MediaReconciler


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    gateway: MediaGateway,
    media_roots=("products", "reviews"),
) -> CatalogServices:
    category_repo = Repository(Category, session_factory)
    product_repo = Repository(Product, session_factory)
    review_repo = Repository(Review, session_factory)

    products = ProductLifecycle(product_repo, category_repo, review_repo, gateway)

    return CatalogServices(
        categories=CategoryLifecycle(category_repo, products, gateway),
        products=products,
        reviews=ReviewLifecycle(review_repo, products, gateway),
        explore_products=ExploreProductLifecycle(Repository(ExploreProduct, session_factory), gateway),
        featured_collections=FeaturedCollectionLifecycle(Repository(FeaturedCollection, session_factory), gateway),
        hero_sliders=HeroSliderLifecycle(Repository(HeroSlider, session_factory), gateway),
        video_items=VideoItemLifecycle(Repository(VideoItem, session_factory), gateway),
        reconciler=MediaReconciler(gateway, category_repo, product_repo, roots=media_roots),
    )
