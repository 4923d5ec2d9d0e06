"""
Database Models - Catalog Schema

Every catalog entity owns one or more artifacts in the remote media store.
Each row keeps the public URL(s) of its artifacts next to the opaque media
reference(s) needed to delete them later.

Cascading entities:
- Category: 1-N Product
- Product: 1-N Review

Standalone promotional entities:
- ExploreProduct
- FeaturedCollection
- HeroSlider
- VideoItem

References are plain foreign-key columns; cascades are carried out by the
lifecycle layer, not by the database, because each deleted row also has
remote media that has to be cleaned up.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time used for audit columns"""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class TimestampMixin:
    """Audit columns shared by every catalog table"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# =============================================================================
# ENUMERATIONS
# =============================================================================

class StockStatus(str, Enum):
    """Product stock status"""
    IN_STOCK = "In Stock"
    OUT_OF_STOCK = "Out of Stock"


class VariantType(str, Enum):
    """Kind of options a product is sold in"""
    MOBILE_MODEL = "mobileModel"
    CLOTHING_SIZE = "clothingSize"


class MediaKind(str, Enum):
    """Resource type of a remote artifact"""
    IMAGE = "image"
    VIDEO = "video"


# =============================================================================
# CATALOG TABLES
# =============================================================================

class Category(TimestampMixin, Base):
    """
    Product category.

    ``slug`` is always the normalized form of ``name``. ``media_folder`` is
    derived once at creation and used for every later bulk deletion.
    """
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    parent_page: Mapped[str] = mapped_column(String(100), nullable=False)

    # Media
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_ref: Mapped[str] = mapped_column(String(500), nullable=False)
    media_folder: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)

    __table_args__ = (
        Index("ix_categories_parent_page", "parent_page"),
    )


class Product(TimestampMixin, Base):
    """
    Catalog product.

    ``images`` and ``media_refs`` are parallel lists of the same length.
    ``review_ids`` mirrors the reviews attached to the product.
    """
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(300), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    old_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    # Placement
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id"), nullable=False
    )
    parent_page: Mapped[str] = mapped_column(String(100), nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    # Availability
    stock_status: Mapped[StockStatus] = mapped_column(
        SQLEnum(StockStatus), default=StockStatus.IN_STOCK, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Variants
    variant_type: Mapped[VariantType] = mapped_column(
        SQLEnum(VariantType), default=VariantType.MOBILE_MODEL, nullable=False
    )
    variant_options: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    # Media
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    media_refs: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    media_folder: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    review_folder: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)

    review_ids: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("old_price IS NULL OR old_price >= 0", name="ck_products_old_price_non_negative"),
        Index("ix_products_category_id", "category_id"),
    )


class Review(TimestampMixin, Base):
    """Customer review of a product with optional photos"""
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id"), nullable=False
    )
    reviewer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)

    # Media
    images: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    media_refs: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        Index("ix_reviews_product_id", "product_id"),
    )


# =============================================================================
# PROMOTIONAL TABLES
# =============================================================================

class ExploreProduct(TimestampMixin, Base):
    """Tile in the explore-products strip"""
    __tablename__ = "explore_products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    redirect_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_ref: Mapped[str] = mapped_column(String(500), nullable=False)


class FeaturedCollection(TimestampMixin, Base):
    """Featured collection banner"""
    __tablename__ = "featured_collections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(500))
    button_text: Mapped[str] = mapped_column(String(100), nullable=False)
    redirect_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_ref: Mapped[str] = mapped_column(String(500), nullable=False)


class HeroSlider(TimestampMixin, Base):
    """Home page hero slide; the artifact may be an image or a video"""
    __tablename__ = "hero_sliders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    subtitle: Mapped[str] = mapped_column(String(500), nullable=False)
    button_label: Mapped[str] = mapped_column(String(100), nullable=False)
    redirect_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_type: Mapped[MediaKind] = mapped_column(
        SQLEnum(MediaKind), default=MediaKind.IMAGE, nullable=False
    )
    media_ref: Mapped[str] = mapped_column(String(500), nullable=False)


class VideoItem(TimestampMixin, Base):
    """Shoppable video in the video gallery"""
    __tablename__ = "video_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    new_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    old_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    social_media_url: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
    video_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    thumbnail: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_type: Mapped[MediaKind] = mapped_column(
        SQLEnum(MediaKind), default=MediaKind.VIDEO, nullable=False
    )
    media_ref: Mapped[str] = mapped_column(String(500), nullable=False)
