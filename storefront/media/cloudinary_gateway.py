"""
Cloudinary Media Gateway

Adapter from the MediaGateway interface onto the Cloudinary SDK.

The SDK is blocking, so every network call runs in a worker thread. SDK
errors are wrapped into MediaGatewayError; the lifecycle layer decides
whether a failure is fatal.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
import cloudinary.utils
import structlog

from storefront.config import get_settings
from storefront.config.settings import MediaSettings
from storefront.database.models import MediaKind
from storefront.media.gateway import MediaGateway, UploadedMedia
from storefront.errors import MediaGatewayError

logger = structlog.get_logger(__name__)

# /v1699999999/<public_id>.<ext>
_DELIVERY_PUBLIC_ID = re.compile(r"/v\d+/(.+?)(?:\.[^./]+)?$")

# Cloudinary deletes at most 1000 resources per prefix call
_MAX_PREFIX_PASSES = 50

# Global gateway instance
_gateway: Optional["CloudinaryGateway"] = None


class CloudinaryGateway(MediaGateway):
    """MediaGateway backed by a Cloudinary account"""

    def __init__(self, settings: MediaSettings):
        self.settings = settings
        cloudinary.config(
            cloud_name=settings.cloud_name,
            api_key=settings.api_key,
            api_secret=settings.api_secret.get_secret_value(),
            secure=settings.secure,
        )

    def _thumbnail_transformation(self) -> List[Dict[str, Any]]:
        return [
            {"width": self.settings.thumbnail_width, "crop": "scale"},
            {"start_offset": "0", "end_offset": "1"},
        ]

    async def upload(
        self,
        content: str,
        folder: str,
        filename: str,
        kind: Optional[MediaKind] = None,
    ) -> UploadedMedia:
        options: Dict[str, Any] = {
            "folder": folder,
            "public_id": filename,
            "resource_type": kind.value if kind else "auto",
        }
        if kind == MediaKind.VIDEO:
            options["eager"] = [
                {"format": "jpg", "transformation": self._thumbnail_transformation()}
            ]

        logger.info("Uploading media", folder=folder, filename=filename, resource_type=options["resource_type"])
        try:
            response = await asyncio.to_thread(cloudinary.uploader.upload, content, **options)
        except cloudinary.exceptions.Error as e:
            logger.error("Media upload failed", folder=folder, filename=filename, error=str(e))
            raise MediaGatewayError(f"Failed to upload media to {folder}: {e}") from e

        eager = response.get("eager") or []
        thumbnail = eager[0].get("secure_url") if eager else None
        resource_type = response.get("resource_type")

        uploaded = UploadedMedia(
            url=response["secure_url"],
            ref=response["public_id"],
            kind=MediaKind.VIDEO if resource_type == "video" else MediaKind.IMAGE,
            thumbnail_url=thumbnail,
        )
        logger.info("Media uploaded", ref=uploaded.ref, kind=uploaded.kind.value)
        return uploaded

    async def delete_one(self, ref: str, kind: MediaKind = MediaKind.IMAGE) -> str:
        try:
            response = await asyncio.to_thread(
                cloudinary.uploader.destroy, ref, resource_type=kind.value
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Media delete failed", ref=ref, error=str(e))
            raise MediaGatewayError(f"Failed to delete media {ref}: {e}") from e

        outcome = response.get("result", "unknown")
        if outcome != "ok":
            logger.warning("Media delete reported no deletion", ref=ref, outcome=outcome)
        return outcome

    async def _delete_prefix_of_type(self, prefix: str, resource_type: str) -> int:
        deleted = 0
        for _ in range(_MAX_PREFIX_PASSES):
            response = await asyncio.to_thread(
                cloudinary.api.delete_resources_by_prefix, prefix, resource_type=resource_type
            )
            deleted += len(response.get("deleted") or {})
            if not response.get("partial"):
                break
        return deleted

    async def delete_by_folder_prefix(self, prefix: str) -> Dict[str, Any]:
        try:
            images = await self._delete_prefix_of_type(prefix, "image")
            videos = await self._delete_prefix_of_type(prefix, "video")
        except cloudinary.exceptions.Error as e:
            logger.error("Bulk media delete failed", prefix=prefix, error=str(e))
            raise MediaGatewayError(f"Failed to delete media under {prefix}: {e}") from e

        folder_removed = True
        try:
            await asyncio.to_thread(cloudinary.api.delete_folder, prefix)
        except cloudinary.exceptions.NotFound:
            # Folder marker already gone
            folder_removed = False
        except cloudinary.exceptions.Error as e:
            logger.error("Folder removal failed", prefix=prefix, error=str(e))
            raise MediaGatewayError(f"Failed to delete folder {prefix}: {e}") from e

        logger.info("Media folder deleted", prefix=prefix, images=images, videos=videos)
        return {"prefix": prefix, "images": images, "videos": videos, "folder_removed": folder_removed}

    def thumbnail_url(self, ref: str) -> str:
        url, _ = cloudinary.utils.cloudinary_url(
            ref,
            resource_type="video",
            format="jpg",
            secure=self.settings.secure,
            transformation=[
                {"width": self.settings.thumbnail_width, "crop": "scale"},
                {"start_offset": "0"},
            ],
        )
        return url

    def derive_thumbnail(self, url: str) -> str:
        match = _DELIVERY_PUBLIC_ID.search(url or "")
        if not match:
            logger.warning("Could not extract media ref from URL", url=url)
            return url
        try:
            return self.thumbnail_url(match.group(1))
        except Exception as e:
            logger.warning("Thumbnail generation failed", url=url, error=str(e))
            return url

    async def list_subfolders(self, path: str) -> List[str]:
        folders: List[str] = []
        cursor = None
        try:
            while True:
                options = {"next_cursor": cursor} if cursor else {}
                response = await asyncio.to_thread(cloudinary.api.subfolders, path, **options)
                folders.extend(folder["path"] for folder in response.get("folders", []))
                cursor = response.get("next_cursor")
                if not cursor:
                    break
        except cloudinary.exceptions.NotFound:
            return []
        except cloudinary.exceptions.Error as e:
            raise MediaGatewayError(f"Failed to list folders under {path}: {e}") from e
        return folders

    async def ping(self) -> bool:
        try:
            response = await asyncio.to_thread(cloudinary.api.ping)
        except cloudinary.exceptions.Error as e:
            logger.warning("Media store ping failed", error=str(e))
            return False
        return response.get("status") == "ok"


def init_media_gateway() -> MediaGateway:
    """Configure the process-wide media gateway from settings"""
    global _gateway

    if _gateway is not None:
        logger.warning("Media gateway already initialized")
        return _gateway

    settings = get_settings()
    if not settings.media.is_configured:
        logger.warning("Cloudinary credentials are not configured")
    _gateway = CloudinaryGateway(settings.media)
    logger.info("Media gateway initialized", cloud_name=settings.media.cloud_name)
    return _gateway


def get_media_gateway() -> MediaGateway:
    """Get the media gateway instance"""
    if _gateway is None:
        raise RuntimeError("Media gateway not initialized. Call init_media_gateway() first.")
    return _gateway


def close_media_gateway() -> None:
    global _gateway
    _gateway = None
