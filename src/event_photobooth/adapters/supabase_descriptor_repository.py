"""Supabase implementation for admin-managed overlays and templates."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from supabase import Client

from event_photobooth.domain.descriptors import (
    DescriptorKind,
    OverlayDescriptor,
    TemplateDescriptor,
    normalize_overlay,
    normalize_template,
)
from event_photobooth.domain.photos import to_epoch_ms
from event_photobooth.services.admin import DescriptorRepository

_OVERLAYS_TABLE = "overlays"
_TEMPLATES_TABLE = "templates"

_RecordT = TypeVar("_RecordT")


@dataclass
class SupabaseDescriptorRepository(DescriptorRepository):
    """Supabase-backed repository for overlays and templates."""

    client: Client

    def list_overlays(self) -> list[OverlayDescriptor]:
        """Return stored overlays, newest first."""
        response = (
            self.client.table(_OVERLAYS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return _parse_rows(response.data, normalize_overlay)

    def get_overlay(self, overlay_id: str) -> OverlayDescriptor | None:
        """Return an overlay by id, if present."""
        response = (
            self.client.table(_OVERLAYS_TABLE)
            .select("*")
            .eq("id", overlay_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return normalize_overlay(response.data[0])

    def save_overlay(self, overlay: OverlayDescriptor, saved_at: datetime) -> None:
        """Insert a new overlay or update the stored one."""
        self._save(_OVERLAYS_TABLE, overlay.id, _overlay_row(overlay), saved_at)

    def delete_overlay(self, overlay_id: str) -> None:
        """Delete an overlay row."""
        self.client.table(_OVERLAYS_TABLE).delete().eq("id", overlay_id).execute()

    def update_overlay_image(
        self, overlay_id: str, image_ref: str, updated_at: datetime
    ) -> None:
        """Point an overlay at new artwork."""
        response = (
            self.client.table(_OVERLAYS_TABLE)
            .update({"image_url": image_ref, "updated_at": to_epoch_ms(updated_at)})
            .eq("id", overlay_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to update image for overlay {overlay_id}")

    def list_templates(self) -> list[TemplateDescriptor]:
        """Return stored templates, newest first."""
        response = (
            self.client.table(_TEMPLATES_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return _parse_rows(response.data, normalize_template)

    def get_template(self, template_id: str) -> TemplateDescriptor | None:
        """Return a template by id, if present."""
        response = (
            self.client.table(_TEMPLATES_TABLE)
            .select("*")
            .eq("id", template_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return normalize_template(response.data[0])

    def save_template(self, template: TemplateDescriptor, saved_at: datetime) -> None:
        """Insert a new template or update the stored one."""
        self._save(_TEMPLATES_TABLE, template.id, _template_row(template), saved_at)

    def delete_template(self, template_id: str) -> None:
        """Delete a template row."""
        self.client.table(_TEMPLATES_TABLE).delete().eq("id", template_id).execute()

    def _save(
        self, table: str, row_id: str, row: dict[str, object], saved_at: datetime
    ) -> None:
        timestamp = to_epoch_ms(saved_at)
        existing = (
            self.client.table(table).select("id").eq("id", row_id).limit(1).execute()
        )
        if existing.data:
            response = (
                self.client.table(table)
                .update({**row, "updated_at": timestamp})
                .eq("id", row_id)
                .execute()
            )
        else:
            response = (
                self.client.table(table)
                .insert(
                    {
                        "id": row_id,
                        **row,
                        "created_at": timestamp,
                        "updated_at": timestamp,
                    }
                )
                .execute()
            )
        if not response.data:
            raise RuntimeError(f"Failed to save {table} row {row_id}")


def _overlay_row(overlay: OverlayDescriptor) -> dict[str, object]:
    """Map an overlay to table columns; glyphs are stored with the emoji type."""
    return {
        "name": overlay.display_name,
        "type": "emoji" if overlay.kind is DescriptorKind.GLYPH else "image",
        "emoji": overlay.glyph,
        "image_url": overlay.image_ref,
    }


def _template_row(template: TemplateDescriptor) -> dict[str, object]:
    return {
        "name": template.display_name,
        "image_url": template.image_ref,
        "thumbnail_url": template.thumbnail_ref,
        "description": template.description,
        "category": template.category,
    }


def _parse_rows(
    rows: list[dict[str, object]] | None,
    normalize: Callable[[dict[str, object]], _RecordT | None],
) -> list[_RecordT]:
    parsed = (normalize(row) for row in rows or [])
    return [record for record in parsed if record is not None]
