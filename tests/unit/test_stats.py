"""
Unit Tests - Review Statistics
"""
from storefront.lifecycle.stats import compute_review_stats


class TestReviewStats:
    """Tests for compute_review_stats"""

    def test_counts_and_average(self):
        """Test rating counts and average"""
        stats = compute_review_stats([5, 5, 4, 3])

        assert stats.total_reviews == 4
        assert stats.rating_counts == {5: 2, 4: 1, 3: 1}
        assert stats.average_rating == 4.25

    def test_counts_are_ordered_by_rating_descending(self):
        """Test counts are ordered by rating, highest first"""
        stats = compute_review_stats([1, 3, 5, 3])

        assert list(stats.rating_counts) == [5, 3, 1]

    def test_no_reviews(self):
        """Test statistics with no reviews"""
        stats = compute_review_stats([])

        assert stats.total_reviews == 0
        assert stats.rating_counts == {}
        assert stats.average_rating == 0
