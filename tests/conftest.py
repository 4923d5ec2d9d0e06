"""
Test Suite Configuration
"""
import pytest
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.database.models import Base, MediaKind
from storefront.errors import MediaGatewayError
from storefront.lifecycle.services import build_services
from storefront.media.gateway import MediaGateway, UploadedMedia
from storefront.media.paths import sniff_media_kind
from storefront.serving.api.main import create_api_app

PNG = "data:image/png;base64,iVBORw0KGgo="
JPEG = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="
MP4 = "data:video/mp4;base64,AAAAIGZ0eXBpc29t"


class FakeMediaGateway(MediaGateway):
    """
    In-memory media store.

    Records every call, in order, in ``calls``. Uploads, single deletes and
    folder deletes can be made to fail.
    """

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []
        self.stored: Set[str] = set()
        self.extra_folders: Set[str] = set()
        self.uploads: List[Tuple[str, str, Optional[MediaKind]]] = []
        self.deleted_refs: List[Tuple[str, MediaKind]] = []
        self.deleted_prefixes: List[str] = []

        self.failing_contents: Set[str] = set()
        self.fail_single_deletes = False
        self.failing_refs: Set[str] = set()
        self.fail_folder_deletes = False
        self.eager_thumbnails = True

    async def upload(self, content, folder, filename, kind=None) -> UploadedMedia:
        self.calls.append(("upload", f"{folder}/{filename}"))
        if content in self.failing_contents:
            raise MediaGatewayError(f"upload of {filename} refused")
        detected = kind or sniff_media_kind(content) or MediaKind.IMAGE
        ref = f"{folder}/{filename}"
        self.uploads.append((folder, filename, kind))
        self.stored.add(ref)
        thumbnail = None
        if detected == MediaKind.VIDEO and self.eager_thumbnails:
            thumbnail = f"https://media.test/video/upload/eager/{ref}.jpg"
        return UploadedMedia(
            url=f"https://media.test/{detected.value}/upload/v1/{ref}",
            ref=ref,
            kind=detected,
            thumbnail_url=thumbnail,
        )

    async def delete_one(self, ref, kind=MediaKind.IMAGE) -> str:
        self.calls.append(("delete", ref))
        if self.fail_single_deletes or ref in self.failing_refs:
            raise MediaGatewayError(f"delete of {ref} refused")
        self.deleted_refs.append((ref, kind))
        if ref in self.stored:
            self.stored.discard(ref)
            return "ok"
        return "not found"

    async def delete_by_folder_prefix(self, prefix) -> Dict[str, Any]:
        self.calls.append(("delete_folder", prefix))
        if self.fail_folder_deletes:
            raise MediaGatewayError(f"bulk delete of {prefix} refused")
        self.deleted_prefixes.append(prefix)
        removed = {ref for ref in self.stored if ref.startswith(prefix + "/")}
        self.stored -= removed
        self.extra_folders = {
            folder for folder in self.extra_folders
            if folder != prefix and not folder.startswith(prefix + "/")
        }
        return {"prefix": prefix, "images": len(removed), "videos": 0}

    def thumbnail_url(self, ref) -> str:
        return f"https://media.test/video/upload/w_640/{ref}.jpg"

    def derive_thumbnail(self, url) -> str:
        marker = "/upload/v1/"
        if marker not in url:
            return url
        return self.thumbnail_url(url.split(marker, 1)[1])

    def operations_since(self, mark: int) -> List[str]:
        """Call names recorded after ``mark``"""
        return [name for name, _ in self.calls[mark:]]

    def folders(self) -> Set[str]:
        folders = set()
        for path in list(self.stored) + [folder + "/" for folder in self.extra_folders]:
            parts = path.split("/")[:-1]
            for depth in range(1, len(parts) + 1):
                folders.add("/".join(parts[:depth]))
        return folders

    async def list_subfolders(self, path) -> List[str]:
        prefix = path.rstrip("/") + "/"
        return sorted(
            folder for folder in self.folders()
            if folder.startswith(prefix) and "/" not in folder[len(prefix):]
        )

    async def ping(self) -> bool:
        return True


@pytest.fixture
async def session_factory():
    """In-memory database with foreign keys enforced, shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enforce_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.fixture
def gateway() -> FakeMediaGateway:
    return FakeMediaGateway()


@pytest.fixture
def services(session_factory, gateway):
    return build_services(session_factory, gateway)


@pytest.fixture
async def category(services):
    """The "Phone Cases" category"""
    outcome = await services.categories.create({"name": "Phone Cases", "parent_page": "accessories"}, PNG)
    return outcome.data


@pytest.fixture
def product_fields(category) -> Dict[str, Any]:
    return {
        "title": "Clear Case",
        "description": "Slim transparent case",
        "price": 19.99,
        "category_id": category.id,
        "parent_page": "accessories",
        "variant_options": ["iPhone 15", "iPhone 15 Pro"],
    }


@pytest.fixture
async def product(services, product_fields):
    """The "Clear Case" product with two images"""
    outcome = await services.products.create(product_fields, [PNG, JPEG])
    return outcome.data


@pytest.fixture
async def client(services, gateway):
    """API client with the test services attached"""
    app = create_api_app()
    app.state.services = services
    app.state.gateway = gateway

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
