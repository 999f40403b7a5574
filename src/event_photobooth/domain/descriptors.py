"""Overlay and template descriptors plus boundary normalization."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

_PLACEHOLDER_REFS = {"null", "undefined"}


class DescriptorKind(StrEnum):
    """How a descriptor is rendered during compositing."""

    GLYPH = "glyph"
    IMAGE = "image"


@dataclass(frozen=True)
class OverlayDescriptor:
    """An overlay drawn over the captured frame."""

    id: str
    display_name: str
    kind: DescriptorKind
    glyph: str | None = None
    image_ref: str | None = None

    @property
    def is_composable(self) -> bool:
        """Return true when the descriptor carries what its kind needs."""
        if self.kind is DescriptorKind.IMAGE:
            return clean_ref(self.image_ref) is not None
        return bool(self.glyph)


@dataclass(frozen=True)
class TemplateDescriptor:
    """A full-canvas template layered after the overlay."""

    id: str
    display_name: str
    image_ref: str | None
    thumbnail_ref: str | None = None
    description: str = ""
    category: str = ""

    @property
    def kind(self) -> DescriptorKind:
        return DescriptorKind.IMAGE

    @property
    def is_composable(self) -> bool:
        return clean_ref(self.image_ref) is not None


@dataclass(frozen=True)
class BackgroundDescriptor:
    """A backdrop image offered for photo compositions."""

    id: str
    display_name: str
    description: str
    thumbnail_ref: str
    image_ref: str
    color: str


def clean_ref(value: object) -> str | None:
    """Return a usable image reference or None for empty and placeholder values."""
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned or cleaned in _PLACEHOLDER_REFS:
        return None
    return cleaned


def parse_kind(value: object) -> DescriptorKind | None:
    """Parse a kind, accepting the legacy "emoji" spelling for glyphs."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in {"glyph", "emoji"}:
        return DescriptorKind.GLYPH
    if lowered == "image":
        return DescriptorKind.IMAGE
    return None


def normalize_overlay(raw: Mapping[str, object]) -> OverlayDescriptor | None:
    """Normalize a remote or configured overlay record.

    Remote rows have carried the image reference as either ``imageUrl`` or
    ``image_url`` and the kind as ``type`` with the legacy ``"emoji"`` value.
    """
    overlay_id = pick_text(raw, "id")
    if overlay_id is None:
        return None
    kind = parse_kind(pick_value(raw, "type", "kind")) or DescriptorKind.GLYPH
    glyph = pick_text(raw, "emoji", "glyph")
    return OverlayDescriptor(
        id=overlay_id,
        display_name=pick_text(raw, "name", "displayName") or overlay_id,
        kind=kind,
        glyph=glyph,
        image_ref=clean_ref(pick_value(raw, "imageUrl", "image_url", "imageRef")),
    )


def normalize_template(raw: Mapping[str, object]) -> TemplateDescriptor | None:
    """Normalize a remote or configured template record."""
    template_id = pick_text(raw, "id")
    if template_id is None:
        return None
    return TemplateDescriptor(
        id=template_id,
        display_name=pick_text(raw, "name", "displayName") or template_id,
        image_ref=clean_ref(pick_value(raw, "imageUrl", "image_url", "image")),
        thumbnail_ref=clean_ref(
            pick_value(raw, "thumbnailUrl", "thumbnail_url", "thumbnail")
        ),
        description=pick_text(raw, "description") or "",
        category=pick_text(raw, "category") or "",
    )


def overlay_to_payload(overlay: OverlayDescriptor) -> dict[str, object]:
    """Serialize an overlay for the listing endpoint."""
    return {
        "id": overlay.id,
        "name": overlay.display_name,
        "type": overlay.kind.value,
        "emoji": overlay.glyph,
        "imageUrl": overlay.image_ref,
    }


def template_to_payload(template: TemplateDescriptor) -> dict[str, object]:
    """Serialize a template for the listing endpoint."""
    return {
        "id": template.id,
        "name": template.display_name,
        "type": template.kind.value,
        "imageUrl": template.image_ref,
        "thumbnailUrl": template.thumbnail_ref,
        "description": template.description,
        "category": template.category,
    }


def background_to_payload(background: BackgroundDescriptor) -> dict[str, object]:
    """Serialize a background for the listing endpoint."""
    return {
        "id": background.id,
        "name": background.display_name,
        "description": background.description,
        "thumbnail": background.thumbnail_ref,
        "image": background.image_ref,
        "color": background.color,
    }


def pick_value(raw: Mapping[str, object], *keys: str) -> object | None:
    """Return the first non-empty value among several field spellings."""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def pick_text(raw: Mapping[str, object], *keys: str) -> str | None:
    """Return the first non-empty value as stripped text."""
    value = pick_value(raw, *keys)
    if value is None:
        return None
    text = str(value).strip()
    return text or None
