"""Capture flow tying the catalog, compositor and photo store together."""

import logging
from dataclasses import dataclass

from event_photobooth.domain.descriptors import OverlayDescriptor, TemplateDescriptor
from event_photobooth.domain.photos import PhotoRecord
from event_photobooth.services.catalog import RemoteDescriptorCache
from event_photobooth.services.compositing import CompositeResult, Compositor
from event_photobooth.services.imaging import Orientation
from event_photobooth.services.photos import PhotoStore
from event_photobooth.services.sessions import BoothSessionService

_logger = logging.getLogger(__name__)


@dataclass
class BoothService:
    """Application service behind the kiosk screens."""

    overlay_cache: RemoteDescriptorCache[OverlayDescriptor]
    template_cache: RemoteDescriptorCache[TemplateDescriptor]
    compositor: Compositor
    photo_store: PhotoStore
    session_service: BoothSessionService

    async def list_overlays(self) -> list[OverlayDescriptor]:
        """Return the overlays offered on the selection screen."""
        return await self.overlay_cache.get_merged_async()

    async def list_templates(self) -> list[TemplateDescriptor]:
        """Return the templates offered on the selection screen."""
        return await self.template_cache.get_merged_async()

    async def capture(
        self,
        raw_image: str,
        overlay_id: str,
        template_id: str | None = None,
        orientation: Orientation | None = None,
    ) -> tuple[PhotoRecord, CompositeResult]:
        """Composite a captured frame, store it and return both results."""
        await self.overlay_cache.get_merged_async()
        overlay = self.overlay_cache.get_by_id(overlay_id)
        if overlay is None:
            _logger.info("Unknown overlay %s; using the branding frame", overlay_id)

        template = None
        if template_id:
            await self.template_cache.get_merged_async()
            template = self.template_cache.get_by_id(template_id)
            if template is None:
                _logger.warning("Unknown template %s; skipping template", template_id)

        result = await self.compositor.composite(
            raw_image,
            overlay_id,
            resolved=overlay,
            template=template,
            orientation=orientation,
        )
        photo = self.photo_store.save(result.image_data)
        self.session_service.update_photo_count(self.photo_store.count())
        _logger.info(
            "Captured %s with overlay %s (%s)", photo.id, overlay_id, result.render_path
        )
        return photo, result
