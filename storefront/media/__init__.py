"""
Media Module
"""
from .gateway import MediaGateway, UploadedMedia
from .cloudinary_gateway import (
    CloudinaryGateway,
    init_media_gateway,
    get_media_gateway,
    close_media_gateway,
)

__all__ = [
    "MediaGateway",
    "UploadedMedia",
    "CloudinaryGateway",
    "init_media_gateway",
    "get_media_gateway",
    "close_media_gateway",
]
