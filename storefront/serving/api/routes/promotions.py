"""
Promotional Content Endpoints

Explore products, featured collections, hero sliders and the video gallery
expose the same five operations; one router factory builds all four.
"""

from typing import List, Type
from uuid import UUID

from fastapi import APIRouter, Body, Depends

from storefront.lifecycle.base import EntityLifecycle
from storefront.lifecycle.services import CatalogServices
from storefront.serving.api.dependencies import get_services
from storefront.serving.api.schemas import (
    Envelope,
    ExploreProductOut,
    ExploreProductRequest,
    FeaturedCollectionOut,
    FeaturedCollectionRequest,
    HeroSliderOut,
    HeroSliderRequest,
    MediaRequest,
    RecordOut,
    VideoItemOut,
    VideoItemRequest,
    ok,
    status_payload,
)
from storefront.serving.cache import (
    CacheManager,
    explore_products_cache,
    featured_collections_cache,
    hero_sliders_cache,
    invalidate,
    video_gallery_cache,
)


def build_promotion_router(
    service_name: str,
    request_model: Type[MediaRequest],
    response_model: Type[RecordOut],
    cache: CacheManager,
) -> APIRouter:
    """Router with list/get/create/update/delete for one promotional kind"""
    router = APIRouter()

    def lifecycle(services: CatalogServices = Depends(get_services)) -> EntityLifecycle:
        return getattr(services, service_name)

    @router.get("", response_model=Envelope[List[response_model]], response_model_exclude_unset=True)
    async def list_items(items: EntityLifecycle = Depends(lifecycle)):
        async def load():
            records = await items.list()
            return [response_model.model_validate(record).model_dump(mode="json", by_alias=True) for record in records]

        data = await cache.get_or_set("list", load)
        return ok(data, count=len(data))

    @router.get("/{item_id}", response_model=Envelope[response_model], response_model_exclude_unset=True)
    async def get_item(item_id: UUID, items: EntityLifecycle = Depends(lifecycle)):
        return ok(response_model.model_validate(await items.get(item_id)))

    @router.post("", status_code=201, response_model=Envelope[response_model], response_model_exclude_unset=True)
    async def create_item(body: request_model = Body(...), items: EntityLifecycle = Depends(lifecycle)):
        fields, media = body.split()
        outcome = await items.create(fields, media)
        await invalidate(cache)
        return ok(
            response_model.model_validate(outcome.data),
            message=f"{items.label} created successfully",
            warnings=outcome.warnings,
        )

    @router.put("/{item_id}", response_model=Envelope[response_model], response_model_exclude_unset=True)
    async def update_item(
        item_id: UUID,
        body: request_model = Body(...),
        items: EntityLifecycle = Depends(lifecycle),
    ):
        fields, media = body.split(partial=True)
        outcome = await items.update(item_id, fields, media)
        await invalidate(cache)
        return ok(
            response_model.model_validate(outcome.data),
            message=f"{items.label} updated successfully",
            warnings=outcome.warnings,
        )

    @router.delete("/{item_id}", response_model=Envelope, response_model_exclude_unset=True)
    async def delete_item(item_id: UUID, items: EntityLifecycle = Depends(lifecycle)):
        outcome = await items.delete(item_id)
        await invalidate(cache)
        return ok(
            message=f"{items.label} deleted successfully",
            deletion_status=status_payload(outcome.status),
            warnings=outcome.warnings,
        )

    return router


explore_products_router = build_promotion_router(
    "explore_products", ExploreProductRequest, ExploreProductOut, explore_products_cache
)
featured_collections_router = build_promotion_router(
    "featured_collections", FeaturedCollectionRequest, FeaturedCollectionOut, featured_collections_cache
)
hero_sliders_router = build_promotion_router(
    "hero_sliders", HeroSliderRequest, HeroSliderOut, hero_sliders_cache
)
video_gallery_router = build_promotion_router(
    "video_items", VideoItemRequest, VideoItemOut, video_gallery_cache
)
