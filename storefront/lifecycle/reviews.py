"""
Review Lifecycle

Reviews hang off a product and store their photos under the product's review
folder. Photos are optional: items that are not data URIs are ignored and
individual upload failures drop the photo instead of failing the review.

Deletion order is media, then detach from the product, then the record.
Media and detach failures are recorded and do not stop the next step.
"""

import uuid
from typing import Any, Dict, List, Optional

import structlog

from storefront.database.models import Review
from storefront.database.repository import Repository
from storefront.errors import CatalogError, ValidationError
from storefront.lifecycle.base import EntityLifecycle, MediaBinding, MediaInput
from storefront.lifecycle.products import ProductLifecycle
from storefront.lifecycle.results import Outcome, ReviewDeletionStatus
from storefront.lifecycle.stats import ReviewStats, compute_review_stats
from storefront.media.gateway import MediaGateway
from storefront.media.paths import is_data_uri, slugify, timestamp_ms

logger = structlog.get_logger(__name__)


def check_rating(value: Any) -> int:
    try:
        rating = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("Rating must be a whole number between 1 and 5") from e
    if rating != value or not 1 <= rating <= 5:
        raise ValidationError("Rating must be a whole number between 1 and 5")
    return rating


class ReviewLifecycle(EntityLifecycle[Review]):
    """Create/update/delete for product reviews"""

    label = "Review"
    required_fields = ("product_id", "reviewer_name", "rating", "comment")
    media_required = False

    def __init__(self, repository: Repository[Review], products: ProductLifecycle, gateway: MediaGateway):
        super().__init__(
            repository,
            gateway,
            MediaBinding(url_field="images", ref_field="media_refs", many=True),
        )
        self.products = products

    # =========================================================================
    # READ
    # =========================================================================

    async def for_product(self, product_id: uuid.UUID) -> List[Review]:
        await self.products.get(product_id)
        return await self.repository.find(Review.product_id == product_id)

    async def stats(self, product_id: uuid.UUID) -> ReviewStats:
        reviews = await self.for_product(product_id)
        return compute_review_stats(review.rating for review in reviews)

    # =========================================================================
    # CREATE / UPDATE
    # =========================================================================

    def filenames(self, fields: Dict[str, Any], count: int) -> List[str]:
        stem = f"{fields['product_id']}-{slugify(fields['reviewer_name'])}-{timestamp_ms()}"
        return [f"{stem}-{index + 1}" for index in range(count)]

    def _photos(self, media: Optional[MediaInput]) -> List[str]:
        items = self._media_items(media)
        photos = [item for item in items if is_data_uri(item)]
        if len(photos) != len(items):
            logger.warning("Ignoring media that is not a data URI", submitted=len(items), valid=len(photos))
        return photos

    async def create(self, fields: Dict[str, Any], media: Optional[MediaInput] = None) -> Outcome[Review]:
        self.validate_create(fields, media)
        values = dict(fields)
        values["rating"] = check_rating(values["rating"])
        product = await self.products.get(values["product_id"])
        warnings: List[str] = []

        photos = self._photos(media)
        uploaded = []
        if photos:
            uploaded = await self.upload_all(
                photos,
                product.review_folder,
                self.filenames(values, len(photos)),
                tolerate_failures=True,
            )
            if len(uploaded) < len(photos):
                warnings.append(f"Uploaded {len(uploaded)} of {len(photos)} images")
        values.update(self.media_fields(uploaded))

        review = await self.repository.create(values)
        logger.info("Review created", id=str(review.id), product_id=str(product.id), images=len(uploaded))

        try:
            await self.products.attach_review(product.id, review.id)
        except CatalogError as e:
            logger.error("Could not attach review to product", review_id=str(review.id), error=e.message)
            warnings.append(f"Review not linked to product: {e.message}")
        return Outcome(data=review, warnings=warnings)

    def validate_update(self, changes: Dict[str, Any]) -> None:
        super().validate_update(changes)
        if "product_id" in changes:
            raise ValidationError("A review cannot be moved to another product")
        if "rating" in changes:
            changes["rating"] = check_rating(changes["rating"])

    async def folder_for(self, record: Review) -> str:
        product = await self.products.get(record.product_id)
        return product.review_folder

    async def update(self, record_id: uuid.UUID, changes: Dict[str, Any], media: Optional[MediaInput] = None) -> Outcome[Review]:
        return await super().update(record_id, changes, self._photos(media) if media else None)

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete(self, record_id: uuid.UUID) -> Outcome[ReviewDeletionStatus]:
        review = await self.get(record_id)
        status = ReviewDeletionStatus()
        warnings: List[str] = []

        cleanup = await self.delete_refs(review.media_refs or [], self.media.default_kind)
        status.media_deleted = cleanup.succeeded
        if not cleanup.succeeded:
            warnings.append(f"Review media not deleted: {', '.join(cleanup.failed_refs)}")

        try:
            await self.products.detach_review(review.product_id, review.id)
            status.detached = True
        except CatalogError as e:
            logger.warning("Could not detach review from product", review_id=str(review.id), error=e.message)
            warnings.append(f"Review not detached from product: {e.message}")

        await self.repository.delete_by_id(review.id)
        status.record_deleted = True
        logger.info("Review deleted", id=str(review.id), **status.to_dict())
        return Outcome(data=None, status=status, warnings=warnings)
