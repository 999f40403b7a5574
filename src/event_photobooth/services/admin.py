"""Admin operations for managing overlays, templates and their artwork."""

import logging
import secrets
import string
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from event_photobooth.catalog import (
    BUILTIN_OVERLAYS,
    BUILTIN_TEMPLATES,
    is_builtin_overlay,
    is_builtin_template,
)
from event_photobooth.domain.descriptors import (
    DescriptorKind,
    OverlayDescriptor,
    TemplateDescriptor,
    clean_ref,
    overlay_to_payload,
    parse_kind,
    pick_text,
    pick_value,
)
from event_photobooth.domain.photos import to_epoch_ms, utc_now

_logger = logging.getLogger(__name__)

_ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg"}
_EXTENSION_CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}
_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


class DescriptorValidationError(ValueError):
    """Raised when a descriptor payload is missing required fields."""


class BuiltinDescriptorError(Exception):
    """Raised when a mutation targets a built-in descriptor."""


class DescriptorNotFoundError(LookupError):
    """Raised when a stored descriptor does not exist."""


class UploadValidationError(ValueError):
    """Raised when an uploaded file is not an acceptable image."""


class DescriptorRepository(Protocol):
    """Persistence interface for admin-managed overlays and templates."""

    def list_overlays(self) -> list[OverlayDescriptor]:
        """Return stored overlays, newest first."""

    def get_overlay(self, overlay_id: str) -> OverlayDescriptor | None:
        """Return a stored overlay, if present."""

    def save_overlay(self, overlay: OverlayDescriptor, saved_at: datetime) -> None:
        """Insert or update an overlay."""

    def delete_overlay(self, overlay_id: str) -> None:
        """Delete a stored overlay."""

    def update_overlay_image(
        self, overlay_id: str, image_ref: str, updated_at: datetime
    ) -> None:
        """Point an overlay at new artwork."""

    def list_templates(self) -> list[TemplateDescriptor]:
        """Return stored templates, newest first."""

    def get_template(self, template_id: str) -> TemplateDescriptor | None:
        """Return a stored template, if present."""

    def save_template(self, template: TemplateDescriptor, saved_at: datetime) -> None:
        """Insert or update a template."""

    def delete_template(self, template_id: str) -> None:
        """Delete a stored template."""


class BlobStorage(Protocol):
    """Public blob storage for uploaded artwork."""

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store content and return its public URL."""


@dataclass(frozen=True)
class UploadedAsset:
    """An uploaded image file."""

    filename: str
    content_type: str | None
    content: bytes


@dataclass
class AdminService:
    """Service behind the admin dashboard."""

    repository: DescriptorRepository
    blob_storage: BlobStorage
    max_upload_bytes: int = 10 * 1024 * 1024
    clock: Callable[[], datetime] = utc_now

    def list_overlays(self) -> list[OverlayDescriptor]:
        """Return stored overlays followed by built-ins they do not override."""
        stored = self.repository.list_overlays()
        stored_ids = {overlay.id for overlay in stored}
        return [
            *stored,
            *(overlay for overlay in BUILTIN_OVERLAYS if overlay.id not in stored_ids),
        ]

    def upsert_overlay(
        self, payload: Mapping[str, object]
    ) -> tuple[OverlayDescriptor, bool]:
        """Validate and store an overlay; return it and whether it was created."""
        name = pick_text(payload, "name", "displayName")
        raw_kind = pick_value(payload, "type", "kind")
        if not name or raw_kind is None:
            raise DescriptorValidationError("Name and type are required")
        kind = parse_kind(raw_kind)
        if kind is None:
            raise DescriptorValidationError("Type must be either 'glyph' or 'image'")
        image_ref = clean_ref(pick_value(payload, "imageUrl", "image_url", "imageRef"))
        glyph = pick_text(payload, "emoji", "glyph")
        if kind is DescriptorKind.IMAGE and image_ref is None:
            raise DescriptorValidationError(
                "Image URL is required for image-type overlays. "
                "Please upload an image file."
            )
        if kind is DescriptorKind.GLYPH and not glyph:
            raise DescriptorValidationError("Glyph is required for glyph-type overlays")

        now = self.clock()
        overlay_id = pick_text(payload, "id") or f"overlay-{to_epoch_ms(now)}"
        created = self.repository.get_overlay(overlay_id) is None
        overlay = OverlayDescriptor(
            id=overlay_id,
            display_name=name,
            kind=kind,
            glyph=glyph if kind is DescriptorKind.GLYPH else None,
            image_ref=image_ref if kind is DescriptorKind.IMAGE else None,
        )
        self.repository.save_overlay(overlay, saved_at=now)
        _logger.info(
            "%s overlay %s (%s)", "Created" if created else "Updated", overlay.id, kind
        )
        return overlay, created

    def delete_overlay(self, overlay_id: str | None) -> None:
        """Delete a stored overlay; built-ins cannot be deleted."""
        if not overlay_id:
            raise DescriptorValidationError("Overlay ID is required")
        if is_builtin_overlay(overlay_id):
            raise BuiltinDescriptorError("Cannot delete built-in overlay")
        self.repository.delete_overlay(overlay_id)
        _logger.info("Deleted overlay %s", overlay_id)

    def replace_overlay_image(
        self, overlay_id: str | None, asset: UploadedAsset
    ) -> str:
        """Upload new artwork for a stored overlay and return its URL."""
        if not overlay_id:
            raise DescriptorValidationError("Overlay ID is required")
        self.validate_upload(asset, label="Overlay")
        if self.repository.get_overlay(overlay_id) is None:
            raise DescriptorNotFoundError(f"Overlay {overlay_id} not found")
        url = self.upload_asset("overlays", asset, label="Overlay")
        self.repository.update_overlay_image(overlay_id, url, updated_at=self.clock())
        return url

    def overlay_diagnostics(self) -> dict[str, object]:
        """Summarize stored overlays and artwork shared between them."""
        overlays = self.repository.list_overlays()
        by_image: dict[str, list[str]] = {}
        for overlay in overlays:
            if overlay.image_ref:
                by_image.setdefault(overlay.image_ref, []).append(overlay.id)
        duplicates = [
            {"url": url, "overlayIds": ids}
            for url, ids in by_image.items()
            if len(ids) > 1
        ]
        return {
            "totalOverlays": len(overlays),
            "overlays": [overlay_to_payload(overlay) for overlay in overlays],
            "duplicateImageUrls": duplicates,
            "summary": {
                "total": len(overlays),
                "imageType": sum(
                    1 for overlay in overlays if overlay.kind is DescriptorKind.IMAGE
                ),
                "glyphType": sum(
                    1 for overlay in overlays if overlay.kind is DescriptorKind.GLYPH
                ),
                "withImageUrl": sum(1 for overlay in overlays if overlay.image_ref),
                "duplicates": len(duplicates),
            },
        }

    def list_templates(self) -> list[TemplateDescriptor]:
        """Return stored templates followed by built-ins they do not override."""
        stored = self.repository.list_templates()
        stored_ids = {template.id for template in stored}
        return [
            *stored,
            *(
                template
                for template in BUILTIN_TEMPLATES
                if template.id not in stored_ids
            ),
        ]

    def upsert_template(
        self, payload: Mapping[str, object]
    ) -> tuple[TemplateDescriptor, bool]:
        """Validate and store a template; return it and whether it was created."""
        name = pick_text(payload, "name", "displayName")
        category = pick_text(payload, "category")
        if not name or not category:
            raise DescriptorValidationError("Name and category are required")
        image_ref = clean_ref(pick_value(payload, "imageUrl", "image_url", "image"))
        if image_ref is None:
            raise DescriptorValidationError(
                "Image URL is required for templates. Please upload an image file."
            )
        now = self.clock()
        template_id = pick_text(payload, "id") or f"template-{to_epoch_ms(now)}"
        created = self.repository.get_template(template_id) is None
        template = TemplateDescriptor(
            id=template_id,
            display_name=name,
            image_ref=image_ref,
            thumbnail_ref=clean_ref(
                pick_value(payload, "thumbnailUrl", "thumbnail_url", "thumbnail")
            ),
            description=pick_text(payload, "description") or "",
            category=category,
        )
        self.repository.save_template(template, saved_at=now)
        _logger.info(
            "%s template %s", "Created" if created else "Updated", template.id
        )
        return template, created

    def delete_template(self, template_id: str | None) -> None:
        """Delete a stored template; built-ins cannot be deleted."""
        if not template_id:
            raise DescriptorValidationError("Template ID is required")
        if is_builtin_template(template_id):
            raise BuiltinDescriptorError("Cannot delete built-in template")
        self.repository.delete_template(template_id)
        _logger.info("Deleted template %s", template_id)

    def upload_template_assets(
        self, template: UploadedAsset | None, thumbnail: UploadedAsset | None
    ) -> dict[str, str]:
        """Upload template artwork and/or its thumbnail; return both URLs.

        When only one file is given it serves as both the template and the
        thumbnail.
        """
        if template is None and thumbnail is None:
            raise UploadValidationError(
                "At least one file (template or thumbnail) is required"
            )
        if template is not None:
            self.validate_upload(template, label="Template")
        if thumbnail is not None:
            self.validate_upload(thumbnail, label="Thumbnail")
        urls: dict[str, str] = {}
        if template is not None:
            urls["template"] = self.upload_asset(
                "templates", template, label="Template"
            )
        if thumbnail is not None:
            urls["thumbnail"] = self.upload_asset(
                "templates/thumbnails", thumbnail, label="Thumbnail"
            )
        urls.setdefault("template", urls.get("thumbnail", ""))
        urls.setdefault("thumbnail", urls["template"])
        return urls

    def validate_upload(self, asset: UploadedAsset, label: str = "Overlay") -> None:
        """Check the file type allow-list and size limit."""
        content_type = (asset.content_type or "").lower()
        if (
            content_type not in _ALLOWED_CONTENT_TYPES
            and _extension(asset.filename) not in _EXTENSION_CONTENT_TYPES
        ):
            raise UploadValidationError(f"{label} file must be .png or .jpg format")
        if len(asset.content) > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            raise UploadValidationError(
                f"{label} file is too large. Maximum size is {limit_mb}MB."
            )

    def upload_asset(
        self, folder: str, asset: UploadedAsset, label: str = "Overlay"
    ) -> str:
        """Validate and upload a file under a unique name; return its URL."""
        self.validate_upload(asset, label=label)
        extension = _extension(asset.filename)
        if extension not in _EXTENSION_CONTENT_TYPES:
            extension = "jpg" if "jpeg" in (asset.content_type or "") else "png"
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(7))
        prefix = folder.rsplit("/", maxsplit=1)[-1].rstrip("s")
        path = f"{folder}/{prefix}-{to_epoch_ms(self.clock())}-{suffix}.{extension}"
        url = self.blob_storage.upload(
            path, asset.content, _EXTENSION_CONTENT_TYPES[extension]
        )
        _logger.info("Uploaded %s to %s", asset.filename, path)
        return url


def _extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", maxsplit=1)[-1].lower()
