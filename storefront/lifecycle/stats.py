"""
Review statistics for a product.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable


@dataclass
class ReviewStats:
    total_reviews: int = 0
    # rating -> occurrences, highest rating first
    rating_counts: Dict[int, int] = field(default_factory=dict)
    average_rating: float = 0


def compute_review_stats(ratings: Iterable[int]) -> ReviewStats:
    """Count, per-rating histogram and mean of ``ratings``; mean is 0 when empty"""
    ratings = [int(rating) for rating in ratings]
    if not ratings:
        return ReviewStats()

    counts = Counter(ratings)
    return ReviewStats(
        total_reviews=len(ratings),
        rating_counts={rating: counts[rating] for rating in sorted(counts, reverse=True)},
        average_rating=sum(ratings) / len(ratings),
    )
