"""
Media-backed Entity Lifecycle

One component drives create/update/delete for every entity kind that owns
remote media. Entity kinds differ only in:

- the repository they persist through,
- where their artifacts live (folder strategy) and how files are named,
- media arity (one artifact or an ordered list) and which columns hold it.

Ordering rules:

- create: validate, check uniqueness, upload, then persist. A conflict is
  detected before anything is uploaded.
- update: load, re-check uniqueness, merge present fields, and when new media
  is supplied delete the old artifacts before uploading the new ones.
- delete: remote artifacts first (failures recorded, not raised), then the
  record. Only the record delete is fatal.
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

import structlog

from storefront.database.models import Base, MediaKind
from storefront.database.repository import Repository
from storefront.errors import MediaGatewayError, NotFoundError, ValidationError
from storefront.lifecycle.results import DeletionStatus, MediaCleanup, Outcome
from storefront.media.gateway import MediaGateway, UploadedMedia
from storefront.media.paths import stamped_filename

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

MediaInput = Union[str, Sequence[str]]


@dataclass(frozen=True)
class MediaBinding:
    """Columns holding an entity's media and how it is uploaded"""
    url_field: str
    ref_field: str
    many: bool = False
    # Column storing the artifact's media kind, when the kind varies per record
    type_field: Optional[str] = None
    thumbnail_field: Optional[str] = None
    # Force the upload resource type; None lets the store detect it
    upload_kind: Optional[MediaKind] = None
    default_kind: MediaKind = MediaKind.IMAGE

    def refs_of(self, record: Any) -> List[str]:
        value = getattr(record, self.ref_field, None)
        if not value:
            return []
        return list(value) if self.many else [value]

    def kind_of(self, record: Any) -> MediaKind:
        if self.type_field:
            stored = getattr(record, self.type_field, None)
            if stored is not None:
                return MediaKind(stored)
        return self.upload_kind or self.default_kind


class EntityLifecycle(Generic[ModelT]):
    """
    Create/update/delete protocol for one media-backed entity kind.

    Subclasses override the ``prepare_*`` hooks for slugs, uniqueness and
    reference checks, and ``delete`` for cascades.
    """

    label = "Record"
    required_fields: Sequence[str] = ()
    nullable_fields: frozenset = frozenset()
    media_required = True

    def __init__(
        self,
        repository: Repository[ModelT],
        gateway: MediaGateway,
        media: MediaBinding,
        folder: Optional[str] = None,
        filename_prefix: Optional[str] = None,
    ):
        self.repository = repository
        self.gateway = gateway
        self.media = media
        self.folder = folder
        self.filename_prefix = filename_prefix

    # =========================================================================
    # READ
    # =========================================================================

    async def get(self, record_id: uuid.UUID) -> ModelT:
        record = await self.repository.find_by_id(record_id)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    async def list(self, *conditions, limit: Optional[int] = None) -> List[ModelT]:
        return await self.repository.find(*conditions, limit=limit)

    # =========================================================================
    # HOOKS
    # =========================================================================

    def validate_create(self, fields: Dict[str, Any], media: Optional[MediaInput]) -> None:
        missing = [name for name in self.required_fields if fields.get(name) in (None, "")]
        if self.media_required and not self._media_items(media):
            missing.append("media")
        if missing:
            raise ValidationError(
                "Please provide all required fields",
                details={"missing": missing},
            )

    def validate_update(self, changes: Dict[str, Any]) -> None:
        cleared = [
            name for name, value in changes.items()
            if value is None and name not in self.nullable_fields
        ]
        if cleared:
            raise ValidationError(
                f"Fields cannot be null: {', '.join(sorted(cleared))}",
                details={"fields": cleared},
            )

    async def prepare_create(self, fields: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        """Return the fields to persist and the folder to upload into"""
        return dict(fields), self.folder_for_new(fields)

    async def prepare_update(self, existing: ModelT, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Return the changes to persist (uniqueness checks happen here)"""
        return dict(changes)

    def folder_for_new(self, fields: Dict[str, Any]) -> str:
        if self.folder is None:
            raise NotImplementedError(f"{type(self).__name__} must define a folder strategy")
        return self.folder

    async def folder_for(self, record: ModelT) -> str:
        """Folder an existing record's artifacts live in"""
        stored = getattr(record, "media_folder", None)
        return stored or self.folder_for_new({})

    def filenames(self, fields: Dict[str, Any], count: int) -> List[str]:
        title = fields.get("title") or fields.get("name") or self.label
        base = stamped_filename(self.filename_prefix or self.label.lower(), title)
        if count == 1:
            return [base]
        return [f"{base}-{index + 1}" for index in range(count)]

    def media_fields(self, uploaded: List[UploadedMedia]) -> Dict[str, Any]:
        """Column values describing freshly uploaded artifacts"""
        binding = self.media
        if binding.many:
            values: Dict[str, Any] = {
                binding.url_field: [item.url for item in uploaded],
                binding.ref_field: [item.ref for item in uploaded],
            }
        else:
            item = uploaded[0]
            values = {binding.url_field: item.url, binding.ref_field: item.ref}
            if binding.type_field:
                values[binding.type_field] = item.kind
            if binding.thumbnail_field:
                values[binding.thumbnail_field] = item.thumbnail_url or self.gateway.derive_thumbnail(item.url)
        return values

    # =========================================================================
    # MEDIA FAN-OUT
    # =========================================================================

    def _media_items(self, media: Optional[MediaInput]) -> List[str]:
        if media is None or media == "":
            return []
        if isinstance(media, str):
            return [media]
        return [item for item in media if item]

    async def upload_all(
        self,
        contents: Sequence[str],
        folder: str,
        filenames: Sequence[str],
        tolerate_failures: bool = False,
    ) -> List[UploadedMedia]:
        """
        Upload every item concurrently and wait for all of them.

        With ``tolerate_failures`` failed items are dropped; otherwise any
        failure raises MediaGatewayError after the whole batch settled.
        """
        results = await asyncio.gather(
            *(
                self.gateway.upload(content, folder, filename, self.media.upload_kind)
                for content, filename in zip(contents, filenames)
            ),
            return_exceptions=True,
        )
        uploaded = [result for result in results if isinstance(result, UploadedMedia)]
        failures = [result for result in results if isinstance(result, BaseException)]

        if failures and not tolerate_failures:
            orphaned = [item.ref for item in uploaded]
            logger.error(
                "Media upload failed",
                entity=self.label,
                folder=folder,
                failed=len(failures),
                orphaned_refs=orphaned,
                error=str(failures[0]),
            )
            raise MediaGatewayError(
                f"{len(failures)} of {len(contents)} uploads to {folder} failed: {failures[0]}",
                details={"orphanedRefs": orphaned},
            ) from failures[0]

        for failure in failures:
            logger.warning("Dropping failed upload", entity=self.label, folder=folder, error=str(failure))
        return uploaded

    async def delete_refs(self, refs: Sequence[str], kind: MediaKind) -> MediaCleanup:
        """Delete artifacts independently; failures are collected, not raised"""
        refs = list(refs)
        if not refs:
            return MediaCleanup()
        results = await asyncio.gather(
            *(self.gateway.delete_one(ref, kind) for ref in refs),
            return_exceptions=True,
        )
        cleanup = MediaCleanup(attempted=len(refs))
        for ref, result in zip(refs, results):
            if isinstance(result, BaseException):
                logger.warning("Media delete failed", entity=self.label, ref=ref, error=str(result))
                cleanup.failed_refs.append(ref)
        return cleanup

    async def delete_folder(self, prefix: str) -> bool:
        """Bulk-delete a folder; returns False (and logs) on failure"""
        try:
            await self.gateway.delete_by_folder_prefix(prefix)
            return True
        except Exception as e:
            logger.warning("Media folder delete failed", entity=self.label, prefix=prefix, error=str(e))
            return False

    # =========================================================================
    # CREATE / UPDATE / DELETE
    # =========================================================================

    async def create(self, fields: Dict[str, Any], media: Optional[MediaInput] = None) -> Outcome[ModelT]:
        self.validate_create(fields, media)
        values, folder = await self.prepare_create(fields)

        items = self._media_items(media)
        if items:
            uploaded = await self.upload_all(items, folder, self.filenames(values, len(items)))
            values.update(self.media_fields(uploaded))

        record = await self.repository.create(values)
        logger.info("Entity created", entity=self.label, id=str(record.id), artifacts=len(items))
        return Outcome(data=record)

    async def update(
        self,
        record_id: uuid.UUID,
        changes: Dict[str, Any],
        media: Optional[MediaInput] = None,
    ) -> Outcome[ModelT]:
        existing = await self.get(record_id)
        self.validate_update(changes)
        values = await self.prepare_update(existing, changes)
        warnings: List[str] = []

        items = self._media_items(media)
        if items:
            cleanup = await self.delete_refs(self.media.refs_of(existing), self.media.kind_of(existing))
            if not cleanup.succeeded:
                warnings.append(f"Previous media not deleted: {', '.join(cleanup.failed_refs)}")

            merged = {**self._snapshot(existing), **values}
            folder = await self.folder_for(existing)
            uploaded = await self.upload_all(items, folder, self.filenames(merged, len(items)))
            values.update(self.media_fields(uploaded))

        record = await self.repository.update_by_id(record_id, values)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        logger.info("Entity updated", entity=self.label, id=str(record_id), media_replaced=bool(items))
        return Outcome(data=record, warnings=warnings)

    async def delete(self, record_id: uuid.UUID) -> Outcome[DeletionStatus]:
        record = await self.get(record_id)
        status = DeletionStatus()
        warnings: List[str] = []

        cleanup = await self.delete_refs(self.media.refs_of(record), self.media.kind_of(record))
        status.media_deleted = cleanup.succeeded
        if not cleanup.succeeded:
            warnings.append(f"Media not deleted: {', '.join(cleanup.failed_refs)}")

        await self.repository.delete_by_id(record_id)
        status.record_deleted = True
        logger.info("Entity deleted", entity=self.label, id=str(record_id), media_deleted=status.media_deleted)
        return Outcome(data=None, status=status, warnings=warnings)

    def _snapshot(self, record: ModelT) -> Dict[str, Any]:
        return {column.key: getattr(record, column.key) for column in record.__table__.columns}
