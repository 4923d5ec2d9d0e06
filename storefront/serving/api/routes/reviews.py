"""
Review API Endpoints
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from storefront.lifecycle.services import CatalogServices
from storefront.serving.api.dependencies import get_services
from storefront.serving.api.schemas import (
    Envelope,
    ReviewOut,
    ReviewRequest,
    ReviewStatsOut,
    ok,
    status_payload,
)
from storefront.serving.cache import invalidate, products_cache, reviews_cache

router = APIRouter()


@router.get("", response_model=Envelope[List[ReviewOut]], response_model_exclude_unset=True)
async def list_reviews(services: CatalogServices = Depends(get_services)):
    reviews = await services.reviews.list()
    return ok([ReviewOut.model_validate(review) for review in reviews], count=len(reviews))


@router.get("/product/{product_id}", response_model=Envelope[List[ReviewOut]], response_model_exclude_unset=True)
async def list_product_reviews(product_id: UUID, services: CatalogServices = Depends(get_services)):
    async def load():
        records = await services.reviews.for_product(product_id)
        return [ReviewOut.model_validate(record).model_dump(mode="json", by_alias=True) for record in records]

    items = await reviews_cache.get_or_set(f"product:{product_id}", load)
    return ok(items, count=len(items))


@router.get("/product/{product_id}/stats", response_model=Envelope[ReviewStatsOut], response_model_exclude_unset=True)
async def get_review_stats(product_id: UUID, services: CatalogServices = Depends(get_services)):
    """Review count, per-rating counts and average rating of a product."""
    stats = await services.reviews.stats(product_id)
    return ok(ReviewStatsOut.model_validate(stats))


@router.get("/{review_id}", response_model=Envelope[ReviewOut], response_model_exclude_unset=True)
async def get_review(review_id: UUID, services: CatalogServices = Depends(get_services)):
    review = await services.reviews.get(review_id)
    return ok(ReviewOut.model_validate(review))


@router.post("", status_code=201, response_model=Envelope[ReviewOut], response_model_exclude_unset=True)
async def create_review(body: ReviewRequest, services: CatalogServices = Depends(get_services)):
    fields, media = body.split()
    outcome = await services.reviews.create(fields, media)
    await invalidate(reviews_cache, products_cache)
    return ok(
        ReviewOut.model_validate(outcome.data),
        message="Review created successfully",
        warnings=outcome.warnings,
    )


@router.put("/{review_id}", response_model=Envelope[ReviewOut], response_model_exclude_unset=True)
async def update_review(
    review_id: UUID,
    body: ReviewRequest,
    services: CatalogServices = Depends(get_services),
):
    fields, media = body.split(partial=True)
    outcome = await services.reviews.update(review_id, fields, media)
    await invalidate(reviews_cache)
    return ok(
        ReviewOut.model_validate(outcome.data),
        message="Review updated successfully",
        warnings=outcome.warnings,
    )


@router.delete("/{review_id}", response_model=Envelope, response_model_exclude_unset=True)
async def delete_review(review_id: UUID, services: CatalogServices = Depends(get_services)):
    outcome = await services.reviews.delete(review_id)
    await invalidate(reviews_cache, products_cache)
    return ok(
        message="Review deleted successfully",
        deletion_status=status_payload(outcome.status),
        warnings=outcome.warnings,
    )
