"""
Product API Endpoints

REST API for the product catalog.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from storefront.database.models import Product
from storefront.lifecycle.services import CatalogServices
from storefront.serving.api.dependencies import get_services
from storefront.serving.api.schemas import Envelope, ProductOut, ProductRequest, ok, status_payload
from storefront.serving.cache import invalidate, products_cache, reviews_cache

router = APIRouter()


@router.get("", response_model=Envelope[List[ProductOut]], response_model_exclude_unset=True)
async def list_products(
    category_id: Optional[UUID] = Query(None, alias="categoryId"),
    services: CatalogServices = Depends(get_services),
):
    """List products, newest first, optionally within one category."""
    conditions = [Product.category_id == category_id] if category_id else []

    async def load():
        records = await services.products.list(*conditions)
        return [ProductOut.from_record(record).model_dump(mode="json", by_alias=True) for record in records]

    items = await products_cache.get_or_set(f"list:{category_id or 'all'}", load)
    return ok(items, count=len(items))


@router.get("/slug/{slug}", response_model=Envelope[ProductOut], response_model_exclude_unset=True)
async def get_product_by_slug(slug: str, services: CatalogServices = Depends(get_services)):
    product = await services.products.get_by_slug(slug)
    return ok(ProductOut.from_record(product))


@router.get("/{product_id}", response_model=Envelope[ProductOut], response_model_exclude_unset=True)
async def get_product(product_id: UUID, services: CatalogServices = Depends(get_services)):
    product = await services.products.get(product_id)
    return ok(ProductOut.from_record(product))


@router.get("/{product_id}/related", response_model=Envelope[List[ProductOut]], response_model_exclude_unset=True)
async def get_related_products(product_id: UUID, services: CatalogServices = Depends(get_services)):
    """Active products from the same category first, then from other categories."""
    related = await services.products.related(product_id)
    return ok([ProductOut.from_record(product) for product in related], count=len(related))


@router.post("", status_code=201, response_model=Envelope[ProductOut], response_model_exclude_unset=True)
async def create_product(body: ProductRequest, services: CatalogServices = Depends(get_services)):
    fields, media = body.split()
    outcome = await services.products.create(fields, media)
    await invalidate(products_cache)
    return ok(
        ProductOut.from_record(outcome.data),
        message="Product created successfully",
        warnings=outcome.warnings,
    )


@router.put("/{product_id}", response_model=Envelope[ProductOut], response_model_exclude_unset=True)
async def update_product(
    product_id: UUID,
    body: ProductRequest,
    services: CatalogServices = Depends(get_services),
):
    fields, media = body.split(partial=True)
    outcome = await services.products.update(product_id, fields, media)
    await invalidate(products_cache)
    return ok(
        ProductOut.from_record(outcome.data),
        message="Product updated successfully",
        warnings=outcome.warnings,
    )


@router.delete("/{product_id}", response_model=Envelope, response_model_exclude_unset=True)
async def delete_product(product_id: UUID, services: CatalogServices = Depends(get_services)):
    outcome = await services.products.delete(product_id)
    await invalidate(products_cache, reviews_cache)
    return ok(
        message="Product and associated data deleted successfully",
        deletion_status=status_payload(outcome.status),
        warnings=outcome.warnings,
    )
