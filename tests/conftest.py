"""Shared test fixtures."""

import asyncio
import io
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest
from PIL import Image

from event_photobooth.adapters.descriptor_client import DescriptorClient
from event_photobooth.catalog import BUILTIN_OVERLAYS, BUILTIN_TEMPLATES
from event_photobooth.config import Settings, parse_name_list
from event_photobooth.containers import AppContainer
from event_photobooth.domain.descriptors import (
    OverlayDescriptor,
    TemplateDescriptor,
    normalize_overlay,
    normalize_template,
)
from event_photobooth.services.admin import (
    AdminService,
    BlobStorage,
    DescriptorRepository,
)
from event_photobooth.services.booth import BoothService
from event_photobooth.services.catalog import RemoteDescriptorCache
from event_photobooth.services.compositing import Compositor, ImageLoader
from event_photobooth.services.imaging import encode_data_url
from event_photobooth.services.key_value import InMemoryKeyValueStore
from event_photobooth.services.photos import PhotoStore
from event_photobooth.services.sessions import BoothSessionService


def make_png(
    size: tuple[int, int] = (40, 30),
    color: tuple[int, int, int, int] = (10, 120, 200, 255),
) -> bytes:
    """Return PNG bytes of a solid-color image."""
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_url(
    size: tuple[int, int] = (40, 30),
    color: tuple[int, int, int, int] = (10, 120, 200, 255),
) -> str:
    """Return a PNG data URL of a solid-color image."""
    return encode_data_url(Image.new("RGBA", size, color), "PNG")


@dataclass
class FixedClock:
    """Clock that only moves when a test advances it."""

    now: datetime = field(default_factory=lambda: datetime(2026, 2, 17, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class InMemoryDescriptorRepository(DescriptorRepository):
    """In-memory overlay and template repository for tests."""

    overlays: dict[str, OverlayDescriptor] = field(default_factory=dict)
    templates: dict[str, TemplateDescriptor] = field(default_factory=dict)
    saved_at: dict[str, datetime] = field(default_factory=dict)

    def list_overlays(self) -> list[OverlayDescriptor]:
        return list(reversed(self.overlays.values()))

    def get_overlay(self, overlay_id: str) -> OverlayDescriptor | None:
        return self.overlays.get(overlay_id)

    def save_overlay(self, overlay: OverlayDescriptor, saved_at: datetime) -> None:
        self.overlays[overlay.id] = overlay
        self.saved_at[overlay.id] = saved_at

    def delete_overlay(self, overlay_id: str) -> None:
        self.overlays.pop(overlay_id, None)

    def update_overlay_image(
        self, overlay_id: str, image_ref: str, updated_at: datetime
    ) -> None:
        current = self.overlays[overlay_id]
        self.overlays[overlay_id] = OverlayDescriptor(
            id=current.id,
            display_name=current.display_name,
            kind=current.kind,
            glyph=current.glyph,
            image_ref=image_ref,
        )
        self.saved_at[overlay_id] = updated_at

    def list_templates(self) -> list[TemplateDescriptor]:
        return list(reversed(self.templates.values()))

    def get_template(self, template_id: str) -> TemplateDescriptor | None:
        return self.templates.get(template_id)

    def save_template(self, template: TemplateDescriptor, saved_at: datetime) -> None:
        self.templates[template.id] = template
        self.saved_at[template.id] = saved_at

    def delete_template(self, template_id: str) -> None:
        self.templates.pop(template_id, None)


@dataclass
class FakeBlobStorage(BlobStorage):
    """Blob storage that records uploads."""

    uploads: list[tuple[str, bytes, str]] = field(default_factory=list)

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.uploads.append((path, content, content_type))
        return f"https://blob.example.com/{path}"


@dataclass
class FakeImageLoader(ImageLoader):
    """Serves artwork from memory, keyed by URL without its query string."""

    images: dict[str, bytes] = field(default_factory=dict)
    delay_seconds: float = 0.0
    requested: list[str] = field(default_factory=list)

    async def load(self, url: str) -> bytes:
        self.requested.append(url)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        key = url.split("?", maxsplit=1)[0]
        if key not in self.images:
            raise RuntimeError(f"404 for {url}")
        return self.images[key]


@dataclass
class FakeDescriptorClient(DescriptorClient):
    """Descriptor client returning canned listing payloads."""

    overlays_payload: dict[str, object] = field(
        default_factory=lambda: {"success": True, "overlays": []}
    )
    templates_payload: dict[str, object] = field(
        default_factory=lambda: {"success": True, "templates": []}
    )
    fail: bool = False
    calls: int = 0

    async def fetch_overlays(self) -> dict[str, object]:
        self.calls += 1
        if self.fail:
            raise RuntimeError("listing unavailable")
        return self.overlays_payload

    async def fetch_templates(self) -> dict[str, object]:
        self.calls += 1
        if self.fail:
            raise RuntimeError("listing unavailable")
        return self.templates_payload


@pytest.fixture(autouse=True)
def _propagate_app_logs() -> None:
    # configure_logging turns propagation off; caplog listens on the root logger
    logging.getLogger("event_photobooth").propagate = True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service.key.signature",
        admin_token="admin-token",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def descriptor_repository() -> InMemoryDescriptorRepository:
    return InMemoryDescriptorRepository()


@pytest.fixture
def blob_storage() -> FakeBlobStorage:
    return FakeBlobStorage()


@pytest.fixture
def image_loader() -> FakeImageLoader:
    return FakeImageLoader()


@pytest.fixture
def descriptor_client() -> FakeDescriptorClient:
    return FakeDescriptorClient()


@pytest.fixture
def container(
    settings: Settings,
    clock: FixedClock,
    descriptor_repository: InMemoryDescriptorRepository,
    blob_storage: FakeBlobStorage,
    image_loader: FakeImageLoader,
    descriptor_client: FakeDescriptorClient,
) -> AppContainer:
    admin_service = AdminService(
        repository=descriptor_repository,
        blob_storage=blob_storage,
        max_upload_bytes=settings.max_upload_bytes,
        clock=clock,
    )
    hidden_names = parse_name_list(settings.hidden_descriptor_names)
    overlay_cache = RemoteDescriptorCache(
        fetch=descriptor_client.fetch_overlays,
        normalize=normalize_overlay,
        builtins=BUILTIN_OVERLAYS,
        records_key="overlays",
        hidden_names=hidden_names,
        clock=clock,
    )
    template_cache = RemoteDescriptorCache(
        fetch=descriptor_client.fetch_templates,
        normalize=normalize_template,
        builtins=BUILTIN_TEMPLATES,
        records_key="templates",
        hidden_names=hidden_names,
        clock=clock,
    )
    compositor = Compositor(image_loader=image_loader, image_load_timeout_seconds=1)
    kv_store = InMemoryKeyValueStore()
    photo_store = PhotoStore(kv_store=kv_store, clock=clock)
    session_service = BoothSessionService(kv_store=kv_store, clock=clock)
    booth_service = BoothService(
        overlay_cache=overlay_cache,
        template_cache=template_cache,
        compositor=compositor,
        photo_store=photo_store,
        session_service=session_service,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        admin_service=admin_service,
        booth_service=booth_service,
        photo_store=photo_store,
        session_service=session_service,
        close_resources=close_resources,
    )
