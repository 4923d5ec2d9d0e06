"""
Unit Tests - Product Lifecycle
"""
from decimal import Decimal
import uuid

import pytest

from conftest import JPEG, PNG
from storefront.database.models import Product, Review, StockStatus, VariantType
from storefront.errors import ConflictError, MediaGatewayError, NotFoundError, PersistenceError, ValidationError


class TestProductCreate:
    """Tests for product creation"""

    async def test_derives_slug_and_folders(self, category, product):
        """Test slug and folders come from the category and title"""
        assert product.slug == "clear-case"
        assert product.media_folder == "products/phone-cases/products/clear-case"
        assert product.review_folder == "reviews/phone-cases/clear-case"

    async def test_uploads_every_image_into_product_folder(self, product, gateway):
        """Test every image lands in the product folder"""
        folders = [folder for folder, _, _ in gateway.uploads if "/products/clear-case" in folder]

        assert folders == ["products/phone-cases/products/clear-case"] * 2
        assert len(product.images) == len(product.media_refs) == 2

    async def test_applies_defaults(self, product):
        """Test create defaults"""
        assert product.stock_status == StockStatus.IN_STOCK
        assert product.is_active is True
        assert product.variant_type == VariantType.MOBILE_MODEL
        assert product.tags == []
        assert product.review_ids == []
        assert product.price == Decimal("19.99")

    async def test_duplicate_title_uploads_nothing(self, services, product, product_fields, gateway):
        """Test duplicate title is rejected before any upload"""
        uploads_before = len(gateway.uploads)

        with pytest.raises(ConflictError):
            await services.products.create(product_fields, [PNG])

        assert len(gateway.uploads) == uploads_before

    async def test_renamed_product_keeps_its_folder_reserved(self, services, product, product_fields, gateway):
        """Test a new product cannot reuse a renamed product's folder"""
        await services.products.update(product.id, {"title": "Crystal Case"})
        uploads_before = len(gateway.uploads)

        with pytest.raises(ConflictError):
            await services.products.create(product_fields, [PNG])

        assert len(gateway.uploads) == uploads_before

    async def test_unknown_category_uploads_nothing(self, services, product_fields, gateway):
        """Test unknown category is rejected before any upload"""
        uploads_before = len(gateway.uploads)
        product_fields["category_id"] = uuid.uuid4()

        with pytest.raises(NotFoundError, match="Category not found"):
            await services.products.create(product_fields, [PNG])

        assert len(gateway.uploads) == uploads_before

    async def test_missing_fields(self, services, product_fields):
        """Test missing required fields are listed"""
        del product_fields["price"]

        with pytest.raises(ValidationError) as exc_info:
            await services.products.create(product_fields, [PNG])

        assert exc_info.value.message == "Please provide all required fields"
        assert exc_info.value.details["missing"] == ["price"]

    async def test_requires_media(self, services, product_fields):
        """Test a product needs at least one image"""
        with pytest.raises(ValidationError) as exc_info:
            await services.products.create(product_fields, [])

        assert "media" in exc_info.value.details["missing"]

    async def test_requires_variant_options(self, services, product_fields):
        """Test a product needs variant options"""
        product_fields["variant_options"] = []

        with pytest.raises(ValidationError):
            await services.products.create(product_fields, [PNG])

    async def test_rejects_negative_price(self, services, product_fields, gateway):
        """Test negative price is rejected before any upload"""
        product_fields["price"] = -1

        with pytest.raises(ValidationError):
            await services.products.create(product_fields, [PNG])

        assert not any("clear-case" in folder for folder, _, _ in gateway.uploads)

    async def test_rejects_unknown_stock_status(self, services, product_fields):
        """Test stock status must be a known value"""
        product_fields["stock_status"] = "Backordered"

        with pytest.raises(ValidationError, match="Stock status"):
            await services.products.create(product_fields, [PNG])

    async def test_failed_upload_persists_nothing(self, services, product_fields, gateway):
        """Test a failed upload leaves no record"""
        gateway.failing_contents.add(JPEG)

        with pytest.raises(MediaGatewayError) as exc_info:
            await services.products.create(product_fields, [PNG, JPEG])

        assert len(exc_info.value.details["orphanedRefs"]) == 1
        assert await services.products.repository.count() == 0


class TestProductRead:
    """Tests for product reads"""

    async def test_get_by_slug(self, services, product):
        """Test lookup by slug"""
        found = await services.products.get_by_slug("clear-case")
        assert found.id == product.id

    async def test_get_by_unknown_slug(self, services):
        """Test lookup by unknown slug"""
        with pytest.raises(NotFoundError):
            await services.products.get_by_slug("missing")

    async def test_related_prefers_same_category(self, services, category, product, product_fields):
        """Test related products list same-category items first"""
        other_category = (await services.categories.create({"name": "Chargers", "parent_page": "accessories"}, PNG)).data
        sibling = (await services.products.create({**product_fields, "title": "Leather Case"}, [PNG])).data
        other = (
            await services.products.create(
                {**product_fields, "title": "USB-C Charger", "category_id": other_category.id}, [PNG]
            )
        ).data
        await services.products.create({**product_fields, "title": "Hidden Case", "is_active": False}, [PNG])

        related = await services.products.related(product.id)

        assert [item.id for item in related] == [sibling.id, other.id]


class TestProductUpdate:
    """Tests for product updates"""

    async def test_update_without_media_keeps_media(self, services, product, gateway):
        """Test field-only update keeps media"""
        uploads_before = len(gateway.uploads)

        outcome = await services.products.update(product.id, {"price": 24.5})

        assert outcome.data.price == Decimal("24.50")
        assert outcome.data.media_refs == product.media_refs
        assert outcome.data.images == product.images
        assert len(gateway.uploads) == uploads_before
        assert gateway.deleted_refs == []

    async def test_update_with_media_replaces_all_artifacts(self, services, product, gateway):
        """Test each old artifact is deleted once before the new ones upload"""
        mark = len(gateway.calls)

        outcome = await services.products.update(product.id, {}, [JPEG])

        assert gateway.operations_since(mark) == ["delete", "delete", "upload"]
        assert sorted(ref for _, ref in gateway.calls[mark:mark + 2]) == sorted(product.media_refs)
        assert len(outcome.data.media_refs) == len(outcome.data.images) == 1
        assert outcome.data.media_refs[0].startswith(product.media_folder + "/")

    async def test_rename_checks_uniqueness_first(self, services, product, product_fields):
        """Test renaming onto an existing title conflicts"""
        await services.products.create({**product_fields, "title": "Leather Case"}, [PNG])

        with pytest.raises(ConflictError):
            await services.products.update(product.id, {"title": "Leather Case"})

    async def test_rename_changes_slug_not_folder(self, services, product):
        """Test renaming changes the slug but not the folder"""
        outcome = await services.products.update(product.id, {"title": "Crystal Case"})

        assert outcome.data.slug == "crystal-case"
        assert outcome.data.media_folder == product.media_folder

    async def test_cannot_move_to_another_category(self, services, product, product_fields, gateway):
        """Test moving a product to another category is refused"""
        chargers = (await services.categories.create({"name": "Chargers", "parent_page": "accessories"}, PNG)).data

        with pytest.raises(ValidationError, match="cannot be moved"):
            await services.products.update(product.id, {"category_id": chargers.id})

        stored = await services.products.get(product.id)
        assert stored.category_id == product.category_id
        assert stored.media_folder == product.media_folder

    async def test_same_category_id_is_accepted(self, services, product):
        """Test resending the current category is not a move"""
        outcome = await services.products.update(product.id, {"category_id": product.category_id, "price": 21})

        assert outcome.data.category_id == product.category_id

    async def test_category_delete_cannot_reach_other_products(self, services, category, product, gateway):
        """Test a refused move keeps the product out of the other category's cascade"""
        chargers = (await services.categories.create({"name": "Chargers", "parent_page": "accessories"}, PNG)).data
        with pytest.raises(ValidationError):
            await services.products.update(product.id, {"category_id": chargers.id})

        await services.categories.delete(chargers.id)

        assert await services.products.repository.find_by_id(product.id) is not None
        assert all(ref in gateway.stored for ref in product.media_refs)

    async def test_explicit_null_clears_old_price(self, services, product):
        """Test null clears the old price"""
        await services.products.update(product.id, {"old_price": 29})

        outcome = await services.products.update(product.id, {"old_price": None})

        assert outcome.data.old_price is None

    async def test_null_for_required_field_is_rejected(self, services, product):
        """Test null is rejected for required fields"""
        with pytest.raises(ValidationError):
            await services.products.update(product.id, {"price": None})

    async def test_update_missing_product(self, services):
        """Test updating an unknown product"""
        with pytest.raises(NotFoundError):
            await services.products.update(uuid.uuid4(), {"price": 1})


class TestProductDelete:
    """Tests for the product deletion cascade"""

    async def _add_review(self, services, product, images=(PNG, JPEG)):
        outcome = await services.reviews.create(
            {"product_id": product.id, "reviewer_name": "Dana", "rating": 5, "comment": "Great"},
            list(images),
        )
        return outcome.data

    async def test_phone_cases_scenario(self, services, category, product, gateway):
        """Test full cascade for a product with reviews"""
        assert category.slug == "phone-cases"
        review = await self._add_review(services, product)
        assert all(ref.startswith("reviews/phone-cases/clear-case/") for ref in review.media_refs)

        outcome = await services.products.delete(product.id)

        assert outcome.status.record_deleted is True
        assert outcome.status.fully_cleaned
        assert outcome.status.reviews_removed == 1
        assert "products/phone-cases/products/clear-case" in gateway.deleted_prefixes
        assert "reviews/phone-cases/clear-case" in gateway.deleted_prefixes
        assert await services.reviews.repository.find_by_id(review.id) is None
        assert await services.products.repository.find_by_id(product.id) is None

    async def test_removes_every_review_of_the_product(self, services, product):
        """Test every review record is removed"""
        await self._add_review(services, product)
        await self._add_review(services, product, images=())

        await services.products.delete(product.id)

        assert await services.reviews.repository.count(Review.product_id == product.id) == 0

    async def test_media_failure_still_deletes_record(self, services, product, gateway):
        """Test media failures do not keep the record"""
        await self._add_review(services, product)
        gateway.fail_folder_deletes = True
        gateway.fail_single_deletes = True

        outcome = await services.products.delete(product.id)

        assert outcome.status.record_deleted is True
        assert outcome.status.media_deleted is False
        assert outcome.status.review_media_deleted is False
        assert outcome.status.reviews_deleted is True
        assert not outcome.status.fully_cleaned
        assert outcome.warnings
        assert await services.products.repository.find_by_id(product.id) is None

    async def test_falls_back_to_single_deletes(self, services, product, gateway):
        """Test per-ref deletes when folder deletes fail"""
        review = await self._add_review(services, product)
        gateway.fail_folder_deletes = True

        outcome = await services.products.delete(product.id)

        deleted = {ref for ref, _ in gateway.deleted_refs}
        assert set(product.media_refs) <= deleted
        assert set(review.media_refs) <= deleted
        assert outcome.status.media_deleted is True
        assert outcome.status.review_media_deleted is True

    async def test_record_delete_failure_is_fatal(self, services, product, monkeypatch):
        """Test a failed record delete raises with the partial status"""
        async def broken_delete(record_id):
            raise PersistenceError("products: delete_by_id failed")

        monkeypatch.setattr(services.products.repository, "delete_by_id", broken_delete)

        with pytest.raises(PersistenceError) as exc_info:
            await services.products.delete(product.id)

        status = exc_info.value.details["deletionStatus"]
        assert status.record_deleted is False
        assert status.media_deleted is True

    async def test_review_delete_failure_blocks_the_record(self, services, product, monkeypatch):
        """Test reviews left behind make the record delete fail with the partial status"""
        await self._add_review(services, product)

        async def broken_delete_many(*conditions):
            raise PersistenceError("reviews: delete_many failed")

        monkeypatch.setattr(services.reviews.repository, "delete_many", broken_delete_many)

        with pytest.raises(PersistenceError) as exc_info:
            await services.products.delete(product.id)

        status = exc_info.value.details["deletionStatus"]
        assert exc_info.value.status_code == 500
        assert status.media_deleted is True
        assert status.review_media_deleted is True
        assert status.reviews_deleted is False
        assert status.record_deleted is False
        assert await services.products.repository.find_by_id(product.id) is not None

    async def test_review_delete_failure_without_reviews(self, services, product, monkeypatch):
        """Test the record is still removed when there were no reviews to block it"""
        async def broken_delete_many(*conditions):
            raise PersistenceError("reviews: delete_many failed")

        monkeypatch.setattr(services.reviews.repository, "delete_many", broken_delete_many)

        outcome = await services.products.delete(product.id)

        assert outcome.status.reviews_deleted is False
        assert outcome.status.record_deleted is True
        assert not outcome.status.fully_cleaned
        assert any("Reviews not deleted" in warning for warning in outcome.warnings)

    async def test_delete_missing_product(self, services):
        """Test deleting an unknown product"""
        with pytest.raises(NotFoundError):
            await services.products.delete(uuid.uuid4())

    async def test_lists_by_category(self, services, category, product):
        """Test listing by category"""
        products = await services.products.list(Product.category_id == category.id)
        assert [item.id for item in products] == [product.id]
