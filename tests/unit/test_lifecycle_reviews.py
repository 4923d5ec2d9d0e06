"""
Unit Tests - Review Lifecycle
"""
import uuid

import pytest

from conftest import JPEG, PNG
from storefront.errors import NotFoundError, ValidationError


@pytest.fixture
def review_fields(product):
    return {"product_id": product.id, "reviewer_name": "Dana Lee", "rating": 5, "comment": "Fits perfectly"}


class TestReviewCreate:
    """Tests for review creation"""

    async def test_uploads_into_product_review_folder(self, services, product, review_fields, gateway):
        """Test photos land in the product's review folder"""
        outcome = await services.reviews.create(review_fields, [PNG, JPEG])
        review = outcome.data

        assert len(review.images) == len(review.media_refs) == 2
        assert all(ref.startswith("reviews/phone-cases/clear-case/") for ref in review.media_refs)
        assert review.media_refs[0].startswith(f"reviews/phone-cases/clear-case/{product.id}-dana-lee-")
        assert outcome.warnings == []

    async def test_attaches_review_to_product(self, services, product, review_fields):
        """Test the review id is attached to the product"""
        review = (await services.reviews.create(review_fields)).data

        refreshed = await services.products.get(product.id)
        assert refreshed.review_ids == [str(review.id)]

    async def test_media_is_optional(self, services, review_fields, gateway):
        """Test a review without photos uploads nothing"""
        uploads_before = len(gateway.uploads)

        review = (await services.reviews.create(review_fields)).data

        assert review.images == []
        assert review.media_refs == []
        assert len(gateway.uploads) == uploads_before

    async def test_ignores_items_that_are_not_data_uris(self, services, review_fields):
        """Test only data URIs are uploaded"""
        review = (await services.reviews.create(review_fields, [PNG, "https://cdn.example.com/a.png"])).data

        assert len(review.media_refs) == 1

    async def test_failed_upload_drops_the_photo(self, services, review_fields, gateway):
        """Test a failed photo upload is dropped with a warning"""
        gateway.failing_contents.add(JPEG)

        outcome = await services.reviews.create(review_fields, [PNG, JPEG])

        assert len(outcome.data.media_refs) == 1
        assert outcome.warnings == ["Uploaded 1 of 2 images"]

    @pytest.mark.parametrize("rating", [0, 6, 4.5, "five"])
    async def test_rejects_bad_rating(self, services, review_fields, rating):
        """Test rating must be an integer from 1 to 5"""
        review_fields["rating"] = rating

        with pytest.raises(ValidationError):
            await services.reviews.create(review_fields)

    async def test_unknown_product(self, services, review_fields):
        """Test reviewing an unknown product"""
        review_fields["product_id"] = uuid.uuid4()

        with pytest.raises(NotFoundError, match="Product not found"):
            await services.reviews.create(review_fields, [PNG])


class TestReviewUpdate:
    """Tests for review updates"""

    async def test_update_text_only(self, services, review_fields, gateway):
        """Test text-only update keeps photos"""
        review = (await services.reviews.create(review_fields, [PNG])).data

        outcome = await services.reviews.update(review.id, {"comment": "Still great", "rating": 4})

        assert outcome.data.comment == "Still great"
        assert outcome.data.rating == 4
        assert outcome.data.media_refs == review.media_refs
        assert gateway.deleted_refs == []

    async def test_new_photos_replace_old(self, services, review_fields, gateway):
        """Test new photos replace the old ones"""
        review = (await services.reviews.create(review_fields, [PNG])).data

        outcome = await services.reviews.update(review.id, {}, [JPEG, PNG])

        assert [ref for ref, _ in gateway.deleted_refs] == review.media_refs
        assert len(outcome.data.media_refs) == 2
        assert all(ref.startswith("reviews/phone-cases/clear-case/") for ref in outcome.data.media_refs)

    async def test_cannot_move_to_another_product(self, services, review_fields):
        """Test a review cannot change product"""
        review = (await services.reviews.create(review_fields)).data

        with pytest.raises(ValidationError):
            await services.reviews.update(review.id, {"product_id": uuid.uuid4()})


class TestReviewDelete:
    """Tests for review deletion"""

    async def test_deletes_media_detaches_and_removes_record(self, services, product, review_fields, gateway):
        """Test delete removes media, detaches and removes the record"""
        review = (await services.reviews.create(review_fields, [PNG, JPEG])).data

        outcome = await services.reviews.delete(review.id)

        assert outcome.status.media_deleted is True
        assert outcome.status.detached is True
        assert outcome.status.record_deleted is True
        assert sorted(ref for ref, _ in gateway.deleted_refs) == sorted(review.media_refs)
        assert (await services.products.get(product.id)).review_ids == []
        assert await services.reviews.repository.find_by_id(review.id) is None

    async def test_media_failure_does_not_block_the_rest(self, services, product, review_fields, gateway):
        """Test a failed photo delete does not stop the rest"""
        review = (await services.reviews.create(review_fields, [PNG, JPEG])).data
        gateway.failing_refs.add(review.media_refs[0])

        outcome = await services.reviews.delete(review.id)

        assert outcome.status.media_deleted is False
        assert outcome.status.detached is True
        assert outcome.status.record_deleted is True
        assert [ref for ref, _ in gateway.deleted_refs] == [review.media_refs[1]]


class TestReviewStatsForProduct:
    """Tests for per-product statistics"""

    async def test_stats(self, services, review_fields):
        """Test per-product statistics"""
        for rating in (5, 5, 4, 3):
            await services.reviews.create({**review_fields, "rating": rating})

        stats = await services.reviews.stats(review_fields["product_id"])

        assert stats.total_reviews == 4
        assert stats.rating_counts == {5: 2, 4: 1, 3: 1}
        assert stats.average_rating == 4.25

    async def test_stats_without_reviews(self, services, product):
        """Test statistics without reviews"""
        stats = await services.reviews.stats(product.id)

        assert stats.total_reviews == 0
        assert stats.average_rating == 0

    async def test_stats_for_unknown_product(self, services):
        """Test statistics for an unknown product"""
        with pytest.raises(NotFoundError):
            await services.reviews.stats(uuid.uuid4())
