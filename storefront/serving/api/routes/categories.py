"""
Category API Endpoints

Deleting a category deletes every product under it, their reviews, and all
of their media.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from storefront.lifecycle.services import CatalogServices
from storefront.serving.api.dependencies import get_services
from storefront.serving.api.schemas import CategoryOut, CategoryRequest, Envelope, ok, status_payload
from storefront.serving.cache import categories_cache, invalidate, products_cache, reviews_cache

router = APIRouter()


@router.get("", response_model=Envelope[List[CategoryOut]], response_model_exclude_unset=True)
async def list_categories(services: CatalogServices = Depends(get_services)):
    async def load():
        records = await services.categories.list()
        return [CategoryOut.model_validate(record).model_dump(mode="json", by_alias=True) for record in records]

    items = await categories_cache.get_or_set("list", load)
    return ok(items, count=len(items))


@router.get("/{category_id}", response_model=Envelope[CategoryOut], response_model_exclude_unset=True)
async def get_category(category_id: UUID, services: CatalogServices = Depends(get_services)):
    category = await services.categories.get(category_id)
    return ok(CategoryOut.model_validate(category))


@router.post("", status_code=201, response_model=Envelope[CategoryOut], response_model_exclude_unset=True)
async def create_category(body: CategoryRequest, services: CatalogServices = Depends(get_services)):
    fields, media = body.split()
    outcome = await services.categories.create(fields, media)
    await invalidate(categories_cache)
    return ok(
        CategoryOut.model_validate(outcome.data),
        message="Category created successfully",
        warnings=outcome.warnings,
    )


@router.put("/{category_id}", response_model=Envelope[CategoryOut], response_model_exclude_unset=True)
async def update_category(
    category_id: UUID,
    body: CategoryRequest,
    services: CatalogServices = Depends(get_services),
):
    fields, media = body.split(partial=True)
    outcome = await services.categories.update(category_id, fields, media)
    await invalidate(categories_cache, products_cache)
    return ok(
        CategoryOut.model_validate(outcome.data),
        message="Category updated successfully",
        warnings=outcome.warnings,
    )


@router.delete("/{category_id}", response_model=Envelope, response_model_exclude_unset=True)
async def delete_category(category_id: UUID, services: CatalogServices = Depends(get_services)):
    outcome = await services.categories.delete(category_id)
    await invalidate(categories_cache, products_cache, reviews_cache)
    return ok(
        message="Category and all associated products deleted successfully",
        deletion_status=status_payload(outcome.status),
        warnings=outcome.warnings,
    )
