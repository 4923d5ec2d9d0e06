"""
Unit Tests - Media Reconciliation Sweep
"""
from conftest import PNG

STRAY_FOLDERS = {
    "products/ghost-category",
    "products/phone-cases/products/old-case",
    "reviews/ghost-category/some-product",
}


class TestMediaReconciler:
    """Tests for MediaReconciler"""

    async def _seed(self, services, product, gateway):
        await services.reviews.create(
            {"product_id": product.id, "reviewer_name": "Ari", "rating": 5, "comment": "Good"},
            [PNG],
        )
        gateway.extra_folders.update(STRAY_FOLDERS)

    async def test_dry_run_reports_without_deleting(self, services, product, gateway):
        """Test dry run only reports orphans"""
        await self._seed(services, product, gateway)

        report = await services.reconciler.sweep(dry_run=True)

        assert report.orphaned == [
            "products/ghost-category",
            "products/phone-cases/products/old-case",
            "reviews/ghost-category",
        ]
        assert report.deleted == []
        assert gateway.deleted_prefixes == []

    async def test_live_folders_are_kept(self, services, product, gateway):
        """Test folders of live records are kept"""
        await self._seed(services, product, gateway)

        report = await services.reconciler.sweep(dry_run=False)

        assert product.media_folder not in report.orphaned
        assert product.review_folder not in report.orphaned
        assert set(report.deleted) == set(report.orphaned)
        assert any(ref.startswith(product.media_folder + "/") for ref in gateway.stored)

    async def test_is_idempotent(self, services, product, gateway):
        """Test a second sweep finds nothing"""
        await self._seed(services, product, gateway)

        await services.reconciler.sweep(dry_run=False)
        second = await services.reconciler.sweep(dry_run=False)

        assert second.orphaned == []
        assert second.deleted == []

    async def test_finds_folders_left_by_failed_cascade(self, services, product, gateway):
        """Test folders left by a failed cascade are found"""
        gateway.fail_folder_deletes = True
        gateway.fail_single_deletes = True
        await services.products.delete(product.id)
        gateway.fail_folder_deletes = False

        report = await services.reconciler.sweep(dry_run=False)

        assert report.orphaned == ["products/phone-cases/products"]
        assert not any(ref.startswith(product.media_folder + "/") for ref in gateway.stored)

    async def test_failed_folder_delete_is_reported(self, services, product, gateway):
        """Test a failed folder delete is reported"""
        gateway.extra_folders.add("products/ghost-category")
        gateway.fail_folder_deletes = True

        report = await services.reconciler.sweep(dry_run=False)

        assert report.failed == ["products/ghost-category"]
        assert report.deleted == []
