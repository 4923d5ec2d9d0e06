"""
Promotional Entity Lifecycles

Explore products, featured collections, hero slides and gallery videos each
own a single artifact in a fixed folder. They share the generic lifecycle
and differ only in their required fields and media binding.
"""

from typing import Any, Dict, Tuple

from storefront.database.models import (
    ExploreProduct,
    FeaturedCollection,
    HeroSlider,
    MediaKind,
    VideoItem,
)
from storefront.database.repository import Repository
from storefront.lifecycle.base import EntityLifecycle, MediaBinding
from storefront.lifecycle.products import to_price
from storefront.media.gateway import MediaGateway


class ExploreProductLifecycle(EntityLifecycle[ExploreProduct]):
    label = "Explore product"
    required_fields = ("title", "description", "redirect_url")

    def __init__(self, repository: Repository[ExploreProduct], gateway: MediaGateway):
        super().__init__(
            repository,
            gateway,
            MediaBinding(url_field="image_url", ref_field="media_ref"),
            folder="exploreproducts",
            filename_prefix="explore",
        )


class FeaturedCollectionLifecycle(EntityLifecycle[FeaturedCollection]):
    label = "Featured collection"
    required_fields = ("title", "button_text", "redirect_url")
    nullable_fields = frozenset({"subtitle"})

    def __init__(self, repository: Repository[FeaturedCollection], gateway: MediaGateway):
        super().__init__(
            repository,
            gateway,
            MediaBinding(url_field="image_url", ref_field="media_ref"),
            folder="featuredcollections",
            filename_prefix="featured",
        )


class HeroSliderLifecycle(EntityLifecycle[HeroSlider]):
    """Hero slides accept images or videos; the stored media type drives deletion"""

    label = "Hero slider"
    required_fields = ("title", "subtitle", "button_label", "redirect_url")

    def __init__(self, repository: Repository[HeroSlider], gateway: MediaGateway):
        super().__init__(
            repository,
            gateway,
            MediaBinding(url_field="media_url", ref_field="media_ref", type_field="media_type"),
            folder="heroslider",
            filename_prefix="hero",
        )


class VideoItemLifecycle(EntityLifecycle[VideoItem]):
    """Gallery videos are always uploaded as video and carry a thumbnail"""

    label = "Video item"
    required_fields = ("title", "new_price", "old_price")

    def __init__(self, repository: Repository[VideoItem], gateway: MediaGateway):
        super().__init__(
            repository,
            gateway,
            MediaBinding(
                url_field="video_url",
                ref_field="media_ref",
                type_field="media_type",
                thumbnail_field="thumbnail",
                upload_kind=MediaKind.VIDEO,
                default_kind=MediaKind.VIDEO,
            ),
            folder="videogallery",
            filename_prefix="video",
        )

    def _normalize(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = dict(fields)
        if values.get("new_price") is not None:
            values["new_price"] = to_price("New price", values["new_price"])
        if values.get("old_price") is not None:
            values["old_price"] = to_price("Old price", values["old_price"])
        return values

    async def prepare_create(self, fields: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        values = self._normalize(fields)
        values["description"] = values.get("description") or ""
        values["social_media_url"] = values.get("social_media_url") or ""
        return values, self.folder_for_new(values)

    async def prepare_update(self, existing: VideoItem, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._normalize(changes)
