"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from event_photobooth.adapters.descriptor_client import HttpxDescriptorClient
from event_photobooth.adapters.file_key_value_store import FileKeyValueStore
from event_photobooth.adapters.image_loader import HttpxImageLoader
from event_photobooth.adapters.supabase_blob_storage import SupabaseBlobStorage
from event_photobooth.adapters.supabase_descriptor_repository import (
    SupabaseDescriptorRepository,
)
from event_photobooth.catalog import BUILTIN_OVERLAYS, BUILTIN_TEMPLATES
from event_photobooth.config import Settings, parse_ceilings, parse_name_list
from event_photobooth.domain.descriptors import normalize_overlay, normalize_template
from event_photobooth.services.admin import AdminService
from event_photobooth.services.booth import BoothService
from event_photobooth.services.catalog import RemoteDescriptorCache
from event_photobooth.services.compositing import Compositor
from event_photobooth.services.photos import PhotoStore
from event_photobooth.services.sessions import BoothSessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    admin_service: AdminService
    booth_service: BoothService
    photo_store: PhotoStore
    session_service: BoothSessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    admin_service = AdminService(
        repository=SupabaseDescriptorRepository(supabase_client),
        blob_storage=SupabaseBlobStorage(
            supabase_client, resolved_settings.storage_bucket
        ),
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )

    descriptor_client = HttpxDescriptorClient.create(resolved_settings.public_base_url)
    image_loader = HttpxImageLoader.create(resolved_settings.public_base_url)
    hidden_names = parse_name_list(resolved_settings.hidden_descriptor_names)
    overlay_cache = RemoteDescriptorCache(
        fetch=descriptor_client.fetch_overlays,
        normalize=normalize_overlay,
        builtins=BUILTIN_OVERLAYS,
        records_key="overlays",
        ttl_seconds=resolved_settings.catalog_ttl_seconds,
        hidden_names=hidden_names,
    )
    template_cache = RemoteDescriptorCache(
        fetch=descriptor_client.fetch_templates,
        normalize=normalize_template,
        builtins=BUILTIN_TEMPLATES,
        records_key="templates",
        ttl_seconds=resolved_settings.catalog_ttl_seconds,
        hidden_names=hidden_names,
    )
    compositor = Compositor(
        image_loader=image_loader,
        brand_primary_text=resolved_settings.brand_primary_text,
        brand_secondary_text=resolved_settings.brand_secondary_text,
        image_load_timeout_seconds=resolved_settings.image_load_timeout_seconds,
        overlay_lookup=overlay_cache.get_by_id,
    )

    kv_store = FileKeyValueStore.create(
        resolved_settings.photo_store_dir,
        resolved_settings.photo_store_capacity_bytes,
    )
    photo_store = PhotoStore(
        kv_store=kv_store,
        photos_key=resolved_settings.photos_key,
        max_photos=resolved_settings.max_photos,
        retention_ceilings=parse_ceilings(resolved_settings.retention_ceilings),
        compression_quality=resolved_settings.compression_quality,
        max_width=resolved_settings.max_image_width,
        max_height=resolved_settings.max_image_height,
    )
    session_service = BoothSessionService(
        kv_store=kv_store, session_key=resolved_settings.session_key
    )
    booth_service = BoothService(
        overlay_cache=overlay_cache,
        template_cache=template_cache,
        compositor=compositor,
        photo_store=photo_store,
        session_service=session_service,
    )

    async def close_resources() -> None:
        await descriptor_client.close()
        await image_loader.close()

    return AppContainer(
        settings=resolved_settings,
        admin_service=admin_service,
        booth_service=booth_service,
        photo_store=photo_store,
        session_service=session_service,
        close_resources=close_resources,
    )
