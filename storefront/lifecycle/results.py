"""
Lifecycle Results

Structured outcomes returned by the lifecycle layer. Deletion statuses record
which sub-steps of a cascade succeeded so the caller can tell "fully cleaned
up" apart from "record gone, remnants remain".
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class MediaCleanup:
    """Outcome of a fan-out of single-artifact deletes"""
    attempted: int = 0
    failed_refs: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed_refs


@dataclass
class DeletionStatus:
    """Deletion of a standalone entity"""
    media_deleted: bool = False
    record_deleted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReviewDeletionStatus(DeletionStatus):
    """Deletion of a review: media, detach from product, record"""
    detached: bool = False


@dataclass
class ProductDeletionStatus(DeletionStatus):
    """Cascading deletion of a product and its reviews"""
    review_media_deleted: bool = False
    reviews_deleted: bool = False
    reviews_removed: int = 0

    @property
    def fully_cleaned(self) -> bool:
        return all(
            (self.media_deleted, self.review_media_deleted, self.reviews_deleted, self.record_deleted)
        )


@dataclass
class CategoryDeletionStatus(DeletionStatus):
    """Cascade-of-cascades deletion of a category"""
    folder_deleted: bool = False
    products_deleted: int = 0
    products_failed: List[str] = field(default_factory=list)
    products: Dict[str, ProductDeletionStatus] = field(default_factory=dict)

    @property
    def fully_cleaned(self) -> bool:
        return (
            self.media_deleted
            and self.folder_deleted
            and self.record_deleted
            and not self.products_failed
            and all(status.fully_cleaned for status in self.products.values())
        )


@dataclass
class Outcome(Generic[T]):
    """
    Result of a lifecycle operation.

    ``warnings`` lists remote-store failures that did not abort the
    operation; operators use them for manual remediation.
    """
    data: T
    status: Optional[DeletionStatus] = None
    warnings: List[str] = field(default_factory=list)
