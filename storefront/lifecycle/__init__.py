"""
Lifecycle Module

Create/update/delete orchestration for media-backed catalog entities.
"""
from .base import EntityLifecycle, MediaBinding
from .results import (
    CategoryDeletionStatus,
    DeletionStatus,
    Outcome,
    ProductDeletionStatus,
    ReviewDeletionStatus,
)
from .services import CatalogServices, build_services
from .stats import ReviewStats, compute_review_stats

__all__ = [
    "EntityLifecycle",
    "MediaBinding",
    "CategoryDeletionStatus",
    "DeletionStatus",
    "Outcome",
    "ProductDeletionStatus",
    "ReviewDeletionStatus",
    "CatalogServices",
    "build_services",
    "ReviewStats",
    "compute_review_stats",
]
