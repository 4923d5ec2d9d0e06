"""
Unit Tests - Slugs and Media Folders
"""
import pytest

from storefront.database.models import MediaKind
from storefront.media.paths import (
    category_folder,
    folder_key,
    folder_path,
    is_data_uri,
    product_folder,
    review_folder,
    sniff_media_kind,
    slugify,
    stamped_filename,
)


class TestSlugify:
    """Tests for slugify"""

    def test_lowercases_and_replaces_spaces(self):
        """Test lower-casing and space replacement"""
        assert slugify("Phone Cases") == "phone-cases"

    def test_every_non_alphanumeric_becomes_a_dash(self):
        """Test punctuation becomes dashes"""
        assert slugify("Kids' T-Shirts & More!") == "kids--t-shirts---more-"

    @pytest.mark.parametrize("name", ["Phone Cases", "Clear Case", "A&B  c", "ÄÖÜ 2024", "already-slugged"])
    def test_is_idempotent(self, name):
        """Test slugify is idempotent"""
        assert slugify(slugify(name)) == slugify(name)

    def test_is_not_collision_free(self):
        """Test different names can share a slug"""
        assert slugify("A&B") == slugify("A B")


class TestFolders:
    """Tests for folder derivation"""

    def test_category_folder(self):
        """Test category folder"""
        assert category_folder("phone-cases") == "products/phone-cases"

    def test_product_folder(self):
        """Test product folder"""
        assert product_folder("phone-cases", "clear-case") == "products/phone-cases/products/clear-case"

    def test_review_folder(self):
        """Test review folder"""
        assert review_folder("phone-cases", "clear-case") == "reviews/phone-cases/clear-case"

    def test_folder_key(self):
        """Test the last segment of a stored folder"""
        assert folder_key("products/phone-cases") == "phone-cases"
        assert folder_key("products/phone-cases/") == "phone-cases"

    def test_folder_path_drops_empty_segments_and_slashes(self):
        """Test empty segments and stray slashes are dropped"""
        assert folder_path("products/", "", "/shoes") == "products/shoes"


class TestMediaHelpers:
    """Tests for data URI helpers"""

    def test_sniff_video(self):
        """Test video data URI detection"""
        assert sniff_media_kind("data:video/mp4;base64,AAAA") == MediaKind.VIDEO

    def test_sniff_image(self):
        """Test image data URI detection"""
        assert sniff_media_kind("data:image/png;base64,AAAA") == MediaKind.IMAGE

    def test_sniff_remote_url_is_unknown(self):
        """Test remote URLs are not sniffed"""
        assert sniff_media_kind("https://example.com/a.png") is None

    def test_is_data_uri(self):
        """Test data URI check"""
        assert is_data_uri("data:image/png;base64,AAAA")
        assert not is_data_uri("https://example.com/a.png")
        assert not is_data_uri(None)

    def test_stamped_filename(self):
        """Test stamped filename format"""
        name = stamped_filename("hero", "Summer Sale")
        prefix, stamp = name.rsplit("-", 1)
        assert prefix == "hero-summer-sale"
        assert stamp.isdigit()
