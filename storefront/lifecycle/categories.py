"""
Category Lifecycle

A category owns one image and, through its products, every product and review
folder below ``products/{category-slug}``. Deleting a category runs the full
product cascade for each of its products before removing the category's own
image, its folder and finally its record.
"""

import uuid
from typing import Any, Dict, List, Tuple

import structlog
from sqlalchemy import or_

from storefront.database.models import Category, MediaKind, Product
from storefront.database.repository import Repository
from storefront.errors import ConflictError, PersistenceError
from storefront.lifecycle.base import EntityLifecycle, MediaBinding
from storefront.lifecycle.products import ProductLifecycle
from storefront.lifecycle.results import CategoryDeletionStatus, Outcome, ProductDeletionStatus
from storefront.media.gateway import MediaGateway
from storefront.media.paths import category_folder, slugify

logger = structlog.get_logger(__name__)

DUPLICATE_NAME = "Category with this name already exists"


class CategoryLifecycle(EntityLifecycle[Category]):
    """Create/update/delete for categories, cascading to products"""

    label = "Category"
    required_fields = ("name", "parent_page")

    def __init__(self, repository: Repository[Category], products: ProductLifecycle, gateway: MediaGateway):
        super().__init__(
            repository,
            gateway,
            MediaBinding(url_field="image_url", ref_field="media_ref"),
        )
        self.products = products

    async def prepare_create(self, fields: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        values = dict(fields)
        slug = slugify(values["name"])

        folder = category_folder(slug)
        existing = await self.repository.find_one(
            or_(Category.name == values["name"], Category.slug == slug, Category.media_folder == folder)
        )
        if existing is not None:
            raise ConflictError(DUPLICATE_NAME)

        values.update(slug=slug, media_folder=folder)
        return values, folder

    async def prepare_update(self, existing: Category, changes: Dict[str, Any]) -> Dict[str, Any]:
        values = dict(changes)
        name = values.get("name")
        if name and name != existing.name:
            slug = slugify(name)
            duplicate = await self.repository.find_one(
                or_(Category.name == name, Category.slug == slug, Category.media_folder == category_folder(slug)),
                Category.id != existing.id,
            )
            if duplicate is not None:
                raise ConflictError(DUPLICATE_NAME)
            values["slug"] = slug
            # Media stays where it was uploaded; the stored folder is not renamed
            logger.info(
                "Category renamed, media folder unchanged",
                id=str(existing.id),
                old_slug=existing.slug,
                new_slug=slug,
                media_folder=existing.media_folder,
            )
        return values

    async def delete(self, record_id: uuid.UUID) -> Outcome[CategoryDeletionStatus]:
        category = await self.get(record_id)
        status = CategoryDeletionStatus()
        warnings: List[str] = []
        log = logger.bind(category_id=str(category.id), slug=category.slug)

        # 1. folder
        folder = category.media_folder or category_folder(category.slug)

        # 2. products
        products = await self.products.repository.find(Product.category_id == category.id)
        log.info("Deleting category", products=len(products))

        # 3. full product cascade for each product
        for product in products:
            try:
                product_status, product_warnings = await self.products.cascade_delete(product)
            except PersistenceError as e:
                status.products_failed.append(str(product.id))
                partial = e.details.get("deletionStatus")
                status.products[str(product.id)] = (
                    partial if isinstance(partial, ProductDeletionStatus) else ProductDeletionStatus()
                )
                warnings.append(f"Product {product.id} not deleted: {e.message}")
                continue
            status.products[str(product.id)] = product_status
            status.products_deleted += 1
            warnings.extend(f"Product {product.id}: {warning}" for warning in product_warnings)

        if status.products_failed:
            log.error("Category kept, some products could not be deleted", failed=status.products_failed)
            raise PersistenceError(
                "Server error while deleting category products",
                details={"deletionStatus": status, "warnings": warnings},
            )

        # 4. category image
        cleanup = await self.delete_refs([category.media_ref] if category.media_ref else [], MediaKind.IMAGE)
        status.media_deleted = cleanup.succeeded
        if not cleanup.succeeded:
            warnings.append(f"Category image not deleted: {', '.join(cleanup.failed_refs)}")

        # 5. remaining folder contents
        status.folder_deleted = await self.delete_folder(folder)
        if not status.folder_deleted:
            warnings.append(f"Category folder not deleted: {folder}")

        # 6. record
        try:
            await self.repository.delete_by_id(category.id)
        except PersistenceError as e:
            log.error("Could not delete category record", error=str(e))
            raise PersistenceError(
                "Server error while deleting category from database",
                details={"deletionStatus": status, "warnings": warnings},
            ) from e
        status.record_deleted = True

        log.info(
            "Category deleted",
            products_deleted=status.products_deleted,
            fully_cleaned=status.fully_cleaned,
        )
        return Outcome(data=None, status=status, warnings=warnings)
