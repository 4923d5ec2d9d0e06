"""
API Schemas

Request and response bodies. JSON uses camelCase keys; Python code sees the
snake_case column names. Media arrives as base64 data URIs.

Request bodies leave every field optional: required-field checks belong to
the lifecycle layer so that all entry points report them the same way.
"""

from dataclasses import fields as dataclass_fields, is_dataclass
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Dict, Generic, List, Optional, Tuple, TypeVar
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.database.models import MediaKind, StockStatus, VariantType

T = TypeVar("T")


def _decimal_to_float(value: Any) -> Any:
    return float(value) if isinstance(value, Decimal) else value


# Numeric columns come back as Decimal; JSON carries plain numbers
Money = Annotated[float, BeforeValidator(_decimal_to_float)]


class CamelModel(BaseModel):
    """Base model with camelCase aliases"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# ENVELOPE
# =============================================================================

class Envelope(CamelModel, Generic[T]):
    """Uniform response body"""
    success: bool = True
    data: Optional[T] = None
    count: Optional[int] = None
    message: Optional[str] = None
    deletion_status: Optional[Dict[str, Any]] = None
    warnings: Optional[List[str]] = None


def ok(
    data: Any = None,
    *,
    count: Optional[int] = None,
    message: Optional[str] = None,
    deletion_status: Optional[Dict[str, Any]] = None,
    warnings: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Build a success body holding only the keys that were given"""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if count is not None:
        body["count"] = count
    if message:
        body["message"] = message
    if deletion_status is not None:
        body["deletionStatus"] = deletion_status
    if warnings:
        body["warnings"] = warnings
    return body


def status_payload(status: Any) -> Any:
    """camelCase view of a deletion status, including ``fullyCleaned`` where defined"""
    if is_dataclass(status):
        payload = {to_camel(f.name): status_payload(getattr(status, f.name)) for f in dataclass_fields(status)}
        if hasattr(status, "fully_cleaned"):
            payload["fullyCleaned"] = status.fully_cleaned
        return payload
    if isinstance(status, dict):
        return {key: status_payload(value) for key, value in status.items()}
    if isinstance(status, list):
        return [status_payload(value) for value in status]
    return status


# =============================================================================
# REQUESTS
# =============================================================================

class MediaRequest(CamelModel):
    """Request body carrying an optional media payload"""

    media_field: ClassVar[str] = "media"

    def split(self, partial: bool = False) -> Tuple[Dict[str, Any], Any]:
        """
        Separate entity fields from media.

        With ``partial`` only fields present in the body are returned, and an
        explicit null is kept so it can clear an optional column.
        """
        values = self.model_dump(exclude_unset=True) if partial else self.model_dump(exclude_none=True)
        media = values.pop(self.media_field, None)
        return values, media


class CategoryRequest(MediaRequest):
    name: Optional[str] = None
    parent_page: Optional[str] = None
    media: Optional[str] = None


class Variants(CamelModel):
    type: Optional[VariantType] = None
    options: Optional[List[str]] = None


class ProductRequest(MediaRequest):
    media_field: ClassVar[str] = "media_files"

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    old_price: Optional[float] = None
    category_id: Optional[UUID] = None
    parent_page: Optional[str] = None
    tags: Optional[List[str]] = None
    stock_status: Optional[StockStatus] = None
    is_active: Optional[bool] = None
    variants: Optional[Variants] = None
    media_files: Optional[List[str]] = None

    def split(self, partial: bool = False) -> Tuple[Dict[str, Any], Any]:
        values, media = super().split(partial)
        variants = values.pop("variants", None) or {}
        if "type" in variants:
            values["variant_type"] = variants["type"]
        if "options" in variants:
            values["variant_options"] = variants["options"]
        return values, media


class ReviewRequest(MediaRequest):
    product_id: Optional[UUID] = None
    reviewer_name: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    media: Optional[List[str]] = None


class ExploreProductRequest(MediaRequest):
    title: Optional[str] = None
    description: Optional[str] = None
    redirect_url: Optional[str] = None
    media: Optional[str] = None


class FeaturedCollectionRequest(MediaRequest):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    button_text: Optional[str] = None
    redirect_url: Optional[str] = None
    media: Optional[str] = None


class HeroSliderRequest(MediaRequest):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    button_label: Optional[str] = None
    redirect_url: Optional[str] = None
    media: Optional[str] = None


class VideoItemRequest(MediaRequest):
    title: Optional[str] = None
    description: Optional[str] = None
    new_price: Optional[float] = None
    old_price: Optional[float] = None
    social_media_url: Optional[str] = None
    media: Optional[str] = None


# =============================================================================
# RESPONSES
# =============================================================================

class RecordOut(CamelModel):
    id: UUID
    created_at: datetime
    updated_at: datetime


class CategoryOut(RecordOut):
    name: str
    slug: str
    parent_page: str
    image_url: str
    media_ref: str


class ProductOut(RecordOut):
    title: str
    slug: str
    description: Optional[str] = None
    price: Money
    old_price: Optional[Money] = None
    category_id: UUID
    parent_page: str
    tags: List[str] = Field(default_factory=list)
    stock_status: StockStatus
    is_active: bool
    variants: Variants
    images: List[str]
    media_refs: List[str]
    review_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, product: Any) -> "ProductOut":
        return cls(
            id=product.id,
            created_at=product.created_at,
            updated_at=product.updated_at,
            title=product.title,
            slug=product.slug,
            description=product.description,
            price=product.price,
            old_price=product.old_price,
            category_id=product.category_id,
            parent_page=product.parent_page,
            tags=product.tags or [],
            stock_status=product.stock_status,
            is_active=product.is_active,
            variants=Variants(type=product.variant_type, options=product.variant_options),
            images=product.images,
            media_refs=product.media_refs,
            review_ids=product.review_ids or [],
        )


class ReviewOut(RecordOut):
    product_id: UUID
    reviewer_name: str
    rating: int
    comment: str
    images: List[str]
    media_refs: List[str]


class ReviewStatsOut(CamelModel):
    total_reviews: int
    rating_counts: Dict[int, int]
    average_rating: float


class ExploreProductOut(RecordOut):
    title: str
    description: str
    redirect_url: str
    image_url: str
    media_ref: str


class FeaturedCollectionOut(RecordOut):
    title: str
    subtitle: Optional[str] = None
    button_text: str
    redirect_url: str
    image_url: str
    media_ref: str


class HeroSliderOut(RecordOut):
    title: str
    subtitle: str
    button_label: str
    redirect_url: str
    media_url: str
    media_type: MediaKind
    media_ref: str


class VideoItemOut(RecordOut):
    title: str
    description: str
    new_price: Money
    old_price: Money
    social_media_url: str
    video_url: str
    thumbnail: str
    media_type: MediaKind
    media_ref: str


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]
