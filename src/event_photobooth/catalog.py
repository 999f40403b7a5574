"""Built-in overlay and template catalog shipped with the booth."""

from collections.abc import Sequence

from event_photobooth.domain.descriptors import (
    BackgroundDescriptor,
    DescriptorKind,
    OverlayDescriptor,
    TemplateDescriptor,
)

NO_OVERLAY_ID = "none"

BUILTIN_OVERLAYS: tuple[OverlayDescriptor, ...] = (
    OverlayDescriptor(
        id=NO_OVERLAY_ID,
        display_name="No Overlay",
        kind=DescriptorKind.GLYPH,
        glyph="✨",
    ),
    OverlayDescriptor(
        id="lantern", display_name="Lanterns", kind=DescriptorKind.GLYPH, glyph="🏮"
    ),
    OverlayDescriptor(
        id="dragon", display_name="Dragon", kind=DescriptorKind.GLYPH, glyph="🐉"
    ),
    OverlayDescriptor(
        id="envelope",
        display_name="Red Envelope",
        kind=DescriptorKind.GLYPH,
        glyph="🧧",
    ),
    OverlayDescriptor(
        id="fireworks",
        display_name="Fireworks",
        kind=DescriptorKind.GLYPH,
        glyph="🎆",
    ),
    OverlayDescriptor(
        id="lny-2026-vertical",
        display_name="LNY 2026 Vertical Frame",
        kind=DescriptorKind.IMAGE,
        image_ref="/img/overlays/LNY%20PHOTOBOOTH_VERTICAL_V2-02.png",
    ),
    OverlayDescriptor(
        id="lny-2026-horizontal",
        display_name="LNY 2026 Horizontal Frame",
        kind=DescriptorKind.IMAGE,
        image_ref="/img/overlays/LNY%20PHOTOBOOTH_HORIZONTAL_V2-01.png",
    ),
)

BUILTIN_TEMPLATES: tuple[TemplateDescriptor, ...] = (
    TemplateDescriptor(
        id="template-1",
        display_name="Classic Frame",
        description="Traditional red and gold frame",
        thumbnail_ref="/templates/template-1-thumb.png",
        image_ref="/templates/template-1.png",
        category="frames",
    ),
    TemplateDescriptor(
        id="template-2",
        display_name="Dragon Border",
        description="Decorative dragon border design",
        thumbnail_ref="/templates/template-2-thumb.png",
        image_ref="/templates/template-2.png",
        category="borders",
    ),
    TemplateDescriptor(
        id="template-3",
        display_name="Lantern Frame",
        description="Festive lantern-themed frame",
        thumbnail_ref="/templates/template-3-thumb.png",
        image_ref="/templates/template-3.png",
        category="frames",
    ),
    TemplateDescriptor(
        id="template-4",
        display_name="Calligraphy Style",
        description="Elegant calligraphy-inspired design",
        thumbnail_ref="/templates/template-4-thumb.png",
        image_ref="/templates/template-4.png",
        category="artistic",
    ),
    TemplateDescriptor(
        id="template-5",
        display_name="Modern Minimalist",
        description="Clean and modern design",
        thumbnail_ref="/templates/template-5-thumb.png",
        image_ref="/templates/template-5.png",
        category="modern",
    ),
)

BUILTIN_BACKGROUNDS: tuple[BackgroundDescriptor, ...] = (
    BackgroundDescriptor(
        id="bg-1",
        display_name="Red Silk",
        description="Traditional red silk texture",
        thumbnail_ref="/backgrounds/bg-1-thumb.png",
        image_ref="/backgrounds/bg-1.png",
        color="#dc2626",
    ),
    BackgroundDescriptor(
        id="bg-2",
        display_name="Gold Pattern",
        description="Luxurious gold pattern",
        thumbnail_ref="/backgrounds/bg-2-thumb.png",
        image_ref="/backgrounds/bg-2.png",
        color="#fbbf24",
    ),
    BackgroundDescriptor(
        id="bg-3",
        display_name="Bamboo Forest",
        description="Serene bamboo forest scene",
        thumbnail_ref="/backgrounds/bg-3-thumb.png",
        image_ref="/backgrounds/bg-3.png",
        color="#16a34a",
    ),
    BackgroundDescriptor(
        id="bg-4",
        display_name="Temple Courtyard",
        description="Traditional temple setting",
        thumbnail_ref="/backgrounds/bg-4-thumb.png",
        image_ref="/backgrounds/bg-4.png",
        color="#b45309",
    ),
    BackgroundDescriptor(
        id="bg-5",
        display_name="Fireworks Night",
        description="Celebratory fireworks display",
        thumbnail_ref="/backgrounds/bg-5-thumb.png",
        image_ref="/backgrounds/bg-5.png",
        color="#1e40af",
    ),
    BackgroundDescriptor(
        id="bg-6",
        display_name="Cherry Blossom",
        description="Beautiful cherry blossom scene",
        thumbnail_ref="/backgrounds/bg-6-thumb.png",
        image_ref="/backgrounds/bg-6.png",
        color="#ec4899",
    ),
)

_BUILTIN_OVERLAY_IDS = frozenset(overlay.id for overlay in BUILTIN_OVERLAYS)
_BUILTIN_TEMPLATE_IDS = frozenset(template.id for template in BUILTIN_TEMPLATES)


def is_builtin_overlay(overlay_id: str) -> bool:
    """Return true when the overlay ships with the booth."""
    return overlay_id in _BUILTIN_OVERLAY_IDS


def is_builtin_template(template_id: str) -> bool:
    """Return true when the template ships with the booth."""
    return template_id in _BUILTIN_TEMPLATE_IDS


def template_categories(
    templates: Sequence[TemplateDescriptor] = BUILTIN_TEMPLATES,
) -> list[str]:
    """Return distinct template categories in first-seen order."""
    seen: dict[str, None] = {}
    for template in templates:
        if template.category:
            seen.setdefault(template.category, None)
    return list(seen)


def get_background(background_id: str) -> BackgroundDescriptor | None:
    """Return a built-in background by id, if present."""
    for background in BUILTIN_BACKGROUNDS:
        if background.id == background_id:
            return background
    return None
