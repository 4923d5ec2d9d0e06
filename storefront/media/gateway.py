"""
Media Gateway Interface

Operations the lifecycle layer needs from the remote media store. The store
has no transactions, so every call is independent and may fail on its own.
"""

import abc
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from storefront.database.models import MediaKind
from storefront.errors import MediaGatewayError

__all__ = ["MediaGateway", "UploadedMedia", "MediaGatewayError"]


@dataclass
class UploadedMedia:
    """Result of a single upload"""
    url: str
    ref: str
    kind: MediaKind
    thumbnail_url: Optional[str] = None


class MediaGateway(abc.ABC):
    """Remote object store holding catalog images and videos"""

    @abc.abstractmethod
    async def upload(
        self,
        content: str,
        folder: str,
        filename: str,
        kind: Optional[MediaKind] = None,
    ) -> UploadedMedia:
        """
        Upload ``content`` (a data URI or remote URL) as ``folder/filename``.

        When ``kind`` is None the store detects it. Video uploads also ask
        the store for a thumbnail, reported as ``thumbnail_url`` when ready.

        Raises:
            MediaGatewayError: the upload did not complete
        """

    @abc.abstractmethod
    async def delete_one(self, ref: str, kind: MediaKind = MediaKind.IMAGE) -> str:
        """
        Delete a single artifact and return the store's outcome.

        Deleting an unknown ref is not an error ("not found" outcome).
        """

    @abc.abstractmethod
    async def delete_by_folder_prefix(self, prefix: str) -> Dict[str, Any]:
        """Delete every artifact under ``prefix`` and then the empty folder"""

    @abc.abstractmethod
    def thumbnail_url(self, ref: str) -> str:
        """Scaled JPEG thumbnail URL for a video ref, without re-uploading"""

    @abc.abstractmethod
    def derive_thumbnail(self, url: str) -> str:
        """Thumbnail URL for a delivered video URL; returns ``url`` if none can be built"""

    @abc.abstractmethod
    async def list_subfolders(self, path: str) -> List[str]:
        """Full paths of the immediate subfolders of ``path``"""

    @abc.abstractmethod
    async def ping(self) -> bool:
        """Whether the store is reachable with the configured credentials"""
