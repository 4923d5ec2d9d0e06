"""
Media Reconciliation Sweep

Cascading deletes are best effort: when the media store fails, records are
still removed and folders can be left behind. The sweep walks the media
folder tree and finds folders that no stored record points at.

A folder is live when a category or product stores it as its media folder
(or review folder), or when it is an ancestor of such a folder. The walk
stops at the first non-live folder, so an orphaned category folder is
reported once rather than once per product folder below it.

The sweep is idempotent; run it with ``dry_run`` first.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Set

import structlog

from storefront.database.models import Category, Product
from storefront.database.repository import Repository
from storefront.errors import MediaGatewayError
from storefront.media.gateway import MediaGateway

logger = structlog.get_logger(__name__)


@dataclass
class SweepReport:
    dry_run: bool
    scanned: int = 0
    orphaned: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class MediaReconciler:
    """Find and remove media folders with no matching record"""

    def __init__(
        self,
        gateway: MediaGateway,
        categories: Repository[Category],
        products: Repository[Product],
        roots: Sequence[str] = ("products", "reviews"),
    ):
        self.gateway = gateway
        self.categories = categories
        self.products = products
        self.roots = list(roots)

    async def known_folders(self) -> Set[str]:
        known: Set[str] = set()
        for category in await self.categories.find():
            known.add(category.media_folder)
        for product in await self.products.find():
            known.add(product.media_folder)
            known.add(product.review_folder)
        known.discard("")
        return known

    @staticmethod
    def is_live(folder: str, known: Set[str]) -> bool:
        if folder in known:
            return True
        prefix = folder.rstrip("/") + "/"
        return any(path.startswith(prefix) for path in known)

    async def find_orphans(self, known: Set[str], report: SweepReport) -> List[str]:
        orphans: List[str] = []
        pending = list(self.roots)
        while pending:
            parent = pending.pop()
            for folder in await self.gateway.list_subfolders(parent):
                report.scanned += 1
                if self.is_live(folder, known):
                    pending.append(folder)
                else:
                    orphans.append(folder)
        return sorted(orphans)

    async def sweep(self, dry_run: bool = True) -> SweepReport:
        report = SweepReport(dry_run=dry_run)
        known = await self.known_folders()
        report.orphaned = await self.find_orphans(known, report)
        logger.info("Media sweep scanned folders", scanned=report.scanned, orphaned=len(report.orphaned), dry_run=dry_run)

        if dry_run:
            return report

        for folder in report.orphaned:
            try:
                await self.gateway.delete_by_folder_prefix(folder)
                report.deleted.append(folder)
            except MediaGatewayError as e:
                logger.warning("Orphaned folder not deleted", folder=folder, error=e.message)
                report.failed.append(folder)
        logger.info("Media sweep finished", deleted=len(report.deleted), failed=len(report.failed))
        return report
