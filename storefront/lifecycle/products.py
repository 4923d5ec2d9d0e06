"""
Product Lifecycle

Products belong to a category and own an ordered list of images plus every
review written about them. Deleting a product cascades to its reviews and
to both media folders:

1. resolve the parent category
2. load the product's reviews
3. bulk-delete the product media folder (fallback: delete each ref)
4. bulk-delete the review media folder (fallback: delete each review ref)
5. delete the review records
6. delete the product record

Steps 3-5 record their result in ProductDeletionStatus and never stop the
cascade. Only step 6 is fatal: a product record without media is a worse
inconsistency than media without a record.
"""

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import or_

from storefront.database.models import Category, MediaKind, Product, Review, StockStatus, VariantType
from storefront.database.repository import Repository
from storefront.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from storefront.lifecycle.base import EntityLifecycle, MediaBinding
from storefront.lifecycle.results import MediaCleanup, Outcome, ProductDeletionStatus
from storefront.media.gateway import MediaGateway
from storefront.media.paths import folder_key, product_folder, review_folder, slugify, timestamp_ms

logger = structlog.get_logger(__name__)

RELATED_PRODUCTS_LIMIT = 8

DUPLICATE_TITLE = "A product with this name already exists. Please choose a different name."
CATEGORY_LOCKED = "A product cannot be moved to another category"


def to_price(name: str, value: Any) -> Decimal:
    """Parse a non-negative money amount"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"{name} must be a number") from e
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{name} cannot be negative")
    return amount


def to_enum(enum_type, name: str, value: Any):
    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"{name} must be one of: {allowed}") from e


class ProductLifecycle(EntityLifecycle[Product]):
    """Create/update/delete for products, including the review cascade"""

    label = "Product"
    required_fields = ("title", "description", "price", "category_id", "parent_page")
    nullable_fields = frozenset({"old_price"})

    def __init__(
        self,
        repository: Repository[Product],
        categories: Repository[Category],
        reviews: Repository[Review],
        gateway: MediaGateway,
    ):
        super().__init__(
            repository,
            gateway,
            MediaBinding(url_field="images", ref_field="media_refs", many=True),
        )
        self.categories = categories
        self.reviews = reviews

    # =========================================================================
    # READ
    # =========================================================================

    async def get_by_slug(self, slug: str) -> Product:
        product = await self.repository.find_one(Product.slug == slug)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    async def related(self, product_id: uuid.UUID) -> List[Product]:
        """Active products from the same category, topped up from other categories"""
        product = await self.get(product_id)
        related = await self.repository.find(
            Product.category_id == product.category_id,
            Product.id != product.id,
            Product.is_active.is_(True),
            limit=RELATED_PRODUCTS_LIMIT,
        )
        if len(related) < RELATED_PRODUCTS_LIMIT:
            related += await self.repository.find(
                Product.category_id != product.category_id,
                Product.id != product.id,
                Product.is_active.is_(True),
                limit=RELATED_PRODUCTS_LIMIT - len(related),
            )
        return related

    # =========================================================================
    # CREATE / UPDATE HOOKS
    # =========================================================================

    def validate_create(self, fields: Dict[str, Any], media) -> None:
        super().validate_create(fields, media)
        if not fields.get("variant_options"):
            raise ValidationError("At least one variant option is required")

    def _normalize(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = dict(fields)
        if values.get("price") is not None:
            values["price"] = to_price("Price", values["price"])
        if values.get("old_price") is not None:
            values["old_price"] = to_price("Old price", values["old_price"])
        if values.get("stock_status") is not None:
            values["stock_status"] = to_enum(StockStatus, "Stock status", values["stock_status"])
        if values.get("variant_type") is not None:
            values["variant_type"] = to_enum(VariantType, "Variant type", values["variant_type"])
        if "variant_options" in values and not values["variant_options"]:
            raise ValidationError("At least one variant option is required")
        return values

    async def _category(self, category_id: uuid.UUID) -> Category:
        category = await self.categories.find_by_id(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def _folders(self, category: Category, slug: str) -> Tuple[str, str]:
        """Product and review folders under the category's stored folder"""
        key = folder_key(category.media_folder) if category.media_folder else category.slug
        return product_folder(key, slug), review_folder(key, slug)

    async def prepare_create(self, fields: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        values = self._normalize(fields)
        slug = slugify(values["title"])

        category = await self._category(values["category_id"])
        folder, reviews_folder = self._folders(category, slug)

        existing = await self.repository.find_one(
            or_(Product.slug == slug, Product.media_folder == folder, Product.review_folder == reviews_folder)
        )
        if existing is not None:
            raise ConflictError(DUPLICATE_TITLE)

        values.update(
            slug=slug,
            media_folder=folder,
            review_folder=reviews_folder,
            review_ids=[],
        )
        values.setdefault("tags", [])
        values.setdefault("stock_status", StockStatus.IN_STOCK)
        values.setdefault("is_active", True)
        values.setdefault("variant_type", VariantType.MOBILE_MODEL)
        for key in ("tags", "stock_status", "is_active", "variant_type"):
            if values[key] is None:
                values.pop(key)
        return values, folder

    async def prepare_update(self, existing: Product, changes: Dict[str, Any]) -> Dict[str, Any]:
        values = self._normalize(changes)

        title = values.get("title")
        if title and title != existing.title:
            slug = slugify(title)
            duplicate = await self.repository.find_one(Product.slug == slug, Product.id != existing.id)
            if duplicate is not None:
                raise ConflictError(DUPLICATE_TITLE)
            values["slug"] = slug

        # Media folders live under the category's folder and are never moved
        category_id = values.get("category_id")
        if category_id and category_id != existing.category_id:
            raise ValidationError(CATEGORY_LOCKED, details={"categoryId": str(existing.category_id)})
        return values

    async def folder_for(self, record: Product) -> str:
        if record.media_folder:
            return record.media_folder
        category = await self._category(record.category_id)
        return self._folders(category, record.slug)[0]

    def filenames(self, fields: Dict[str, Any], count: int) -> List[str]:
        slug = fields.get("slug") or slugify(fields["title"])
        stamp = timestamp_ms()
        return [f"{slug}-{index + 1}-{stamp}" for index in range(count)]

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete(self, record_id: uuid.UUID) -> Outcome[ProductDeletionStatus]:
        product = await self.get(record_id)
        status, warnings = await self.cascade_delete(product)
        return Outcome(data=None, status=status, warnings=warnings)

    async def _fallback_cleanup(self, refs: List[str], what: str, warnings: List[str]) -> bool:
        cleanup: MediaCleanup = await self.delete_refs(refs, MediaKind.IMAGE)
        if cleanup.failed_refs:
            warnings.append(f"{what} not deleted: {', '.join(cleanup.failed_refs)}")
        elif not cleanup.attempted:
            warnings.append(f"{what} folder not deleted and no refs to fall back on")
        return cleanup.attempted > 0 and cleanup.succeeded

    async def cascade_delete(self, product: Product) -> Tuple[ProductDeletionStatus, List[str]]:
        """Run the full product deletion cascade for an already loaded product"""
        status = ProductDeletionStatus()
        warnings: List[str] = []
        log = logger.bind(product_id=str(product.id), slug=product.slug)

        # 1. parent category, only needed when folders were never stored
        media_folder = product.media_folder
        reviews_folder = product.review_folder
        if not (media_folder and reviews_folder):
            category = await self.categories.find_by_id(product.category_id)
            if category is not None:
                derived_media, derived_reviews = self._folders(category, product.slug)
                media_folder = media_folder or derived_media
                reviews_folder = reviews_folder or derived_reviews
            else:
                log.warning("Parent category missing, folder cleanup skipped")

        # 2. reviews
        try:
            reviews = await self.reviews.find(Review.product_id == product.id)
        except PersistenceError as e:
            log.error("Could not load reviews", error=str(e))
            warnings.append(f"Reviews could not be loaded: {e.message}")
            reviews = []
        log.info("Deleting product", reviews=len(reviews))

        # 3. product media
        if media_folder and await self.delete_folder(media_folder):
            status.media_deleted = True
        else:
            status.media_deleted = await self._fallback_cleanup(
                list(product.media_refs or []), "Product media", warnings
            )

        # 4. review media
        if reviews_folder and await self.delete_folder(reviews_folder):
            status.review_media_deleted = True
        else:
            refs = [ref for review in reviews for ref in (review.media_refs or [])]
            status.review_media_deleted = await self._fallback_cleanup(refs, "Review media", warnings)

        # 5. review records
        try:
            status.reviews_removed = await self.reviews.delete_many(Review.product_id == product.id)
            status.reviews_deleted = True
        except PersistenceError as e:
            log.error("Could not delete reviews", error=str(e))
            warnings.append(f"Reviews not deleted: {e.message}")

        # 6. product record
        try:
            await self.repository.delete_by_id(product.id)
        except PersistenceError as e:
            log.error("Could not delete product record", error=str(e), status=status.to_dict())
            raise PersistenceError(
                "Server error while deleting product from database",
                details={"deletionStatus": status, "productId": str(product.id)},
            ) from e
        status.record_deleted = True

        log.info("Product deleted", **status.to_dict())
        return status, warnings

    async def attach_review(self, product_id: uuid.UUID, review_id: uuid.UUID) -> None:
        product = await self.get(product_id)
        review_ids = list(product.review_ids or [])
        if str(review_id) not in review_ids:
            review_ids.append(str(review_id))
            await self.repository.update_by_id(product_id, {"review_ids": review_ids})

    async def detach_review(self, product_id: uuid.UUID, review_id: uuid.UUID) -> None:
        product = await self.get(product_id)
        review_ids = [value for value in (product.review_ids or []) if value != str(review_id)]
        await self.repository.update_by_id(product_id, {"review_ids": review_ids})
