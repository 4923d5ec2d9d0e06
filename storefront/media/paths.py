"""
Slug and remote folder derivation.

Folder paths are the unit of bulk deletion in the media store, so they are
built only from values stored on the entities themselves.
"""

import re
import time
from typing import Optional

from storefront.database.models import MediaKind

_NON_SLUG = re.compile(r"[^a-z0-9]")

CATEGORY_ROOT = "products"
REVIEW_ROOT = "reviews"


def slugify(name: str) -> str:
    """
    Lower-case ``name`` and replace every character outside ``[a-z0-9]`` with ``-``.

    Not collision free: "A&B" and "A B" both become "a-b".
    """
    return _NON_SLUG.sub("-", name.lower())


def folder_path(*segments: str) -> str:
    """Join path segments with ``/``, dropping empty ones"""
    return "/".join(segment.strip("/") for segment in segments if segment and segment.strip("/"))


def category_folder(category_slug: str) -> str:
    """products/{category-slug}"""
    return folder_path(CATEGORY_ROOT, category_slug)


def folder_key(folder: str) -> str:
    """Last segment of a stored folder, e.g. ``phone-cases`` for ``products/phone-cases``"""
    return folder.rstrip("/").rsplit("/", 1)[-1]


def product_folder(category_slug: str, product_slug: str) -> str:
    """products/{category-slug}/products/{product-slug}"""
    return folder_path(CATEGORY_ROOT, category_slug, "products", product_slug)


def review_folder(category_slug: str, product_slug: str) -> str:
    """reviews/{category-slug}/{product-slug}"""
    return folder_path(REVIEW_ROOT, category_slug, product_slug)


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def stamped_filename(prefix: str, title: str) -> str:
    """``{prefix}-{title-slug}-{ms}`` used by the promotional kinds"""
    return f"{prefix}-{slugify(title)}-{timestamp_ms()}"


def sniff_media_kind(content: str) -> Optional[MediaKind]:
    """Media kind declared by a base64 data URI, None when it is not one"""
    if not isinstance(content, str) or not content.startswith("data:"):
        return None
    if content.startswith("data:video/"):
        return MediaKind.VIDEO
    return MediaKind.IMAGE


def is_data_uri(content: object) -> bool:
    return isinstance(content, str) and content.startswith("data:")
