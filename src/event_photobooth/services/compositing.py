"""Composites captured frames with overlays and templates."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol
from urllib.parse import quote

from PIL import Image, ImageDraw, ImageFont

from event_photobooth.catalog import NO_OVERLAY_ID
from event_photobooth.domain.descriptors import (
    DescriptorKind,
    OverlayDescriptor,
    TemplateDescriptor,
    clean_ref,
)
from event_photobooth.services.imaging import (
    ImageDecodeError,
    Orientation,
    canvas_size,
    crop_to_aspect,
    encode_data_url,
    load_data_url,
    load_image,
)

_logger = logging.getLogger(__name__)

_FRAME_COLOR = (220, 38, 38, 204)
_TEXT_COLOR = (220, 38, 38, 230)
_FRAME_WIDTH = 20


class ImageLoader(Protocol):
    """Loads overlay and template artwork."""

    async def load(self, url: str) -> bytes:
        """Return the raw bytes behind an image reference."""


class RenderPath(StrEnum):
    """Which overlay rendering produced a composite."""

    BRANDING = "branding"
    GLYPH = "glyph"
    IMAGE = "image"


@dataclass(frozen=True)
class CompositeResult:
    """Final image plus how it was produced."""

    image_data: str
    render_path: RenderPath
    template_applied: bool = False


def with_cache_buster(url: str, key: str) -> str:
    """Append a version parameter so updated artwork is not served stale."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}v={quote(key, safe='')}"


@dataclass
class Compositor:
    """Draws overlays and templates on top of captured frames."""

    image_loader: ImageLoader
    brand_primary_text: str = "Lunar New Year 2026"
    brand_secondary_text: str = "Monterey Park Chamber of Commerce"
    image_load_timeout_seconds: float = 10.0
    overlay_lookup: Callable[[str], OverlayDescriptor | None] | None = None

    async def composite(
        self,
        raw_image: str,
        descriptor_id: str,
        resolved: OverlayDescriptor | None = None,
        template: TemplateDescriptor | None = None,
        orientation: Orientation | None = None,
    ) -> CompositeResult:
        """Composite a raw frame with the selected overlay and template.

        Overlay and template problems never fail the capture: missing image
        references, load errors and timeouts fall back to the branding frame.
        An undecodable ``raw_image`` raises ``ImageDecodeError``.
        """
        canvas = load_data_url(raw_image)
        if orientation is not None:
            canvas = crop_to_aspect(canvas, *canvas_size(orientation))
        if resolved is None and self.overlay_lookup is not None:
            resolved = self.overlay_lookup(descriptor_id)
        canvas, render_path = await self._apply_overlay(canvas, descriptor_id, resolved)
        template_applied = False
        if template is not None:
            canvas, template_applied = await self.apply_template(canvas, template)
        return CompositeResult(
            image_data=encode_data_url(canvas, "PNG"),
            render_path=render_path,
            template_applied=template_applied,
        )

    async def apply_template(
        self, canvas: Image.Image, template: TemplateDescriptor
    ) -> tuple[Image.Image, bool]:
        """Layer a template over the canvas; the canvas is unchanged on failure."""
        image_ref = clean_ref(template.image_ref)
        if image_ref is None:
            _logger.warning("Template %s has no image reference", template.id)
            return canvas, False
        layer = await self._load_layer(
            with_cache_buster(image_ref, template.id), canvas.size
        )
        if layer is None:
            return canvas, False
        return Image.alpha_composite(canvas, layer), True

    async def _apply_overlay(
        self,
        canvas: Image.Image,
        descriptor_id: str,
        resolved: OverlayDescriptor | None,
    ) -> tuple[Image.Image, RenderPath]:
        if resolved is None or descriptor_id == NO_OVERLAY_ID:
            return self._draw_branding(canvas), RenderPath.BRANDING
        if resolved.kind is DescriptorKind.IMAGE:
            image_ref = clean_ref(resolved.image_ref)
            if image_ref is None:
                _logger.warning(
                    "Image overlay %s has no image reference; using branding frame",
                    resolved.id,
                )
                return self._draw_branding(canvas), RenderPath.BRANDING
            layer = await self._load_layer(
                with_cache_buster(image_ref, resolved.id), canvas.size
            )
            if layer is None:
                return self._draw_branding(canvas), RenderPath.BRANDING
            return Image.alpha_composite(canvas, layer), RenderPath.IMAGE
        canvas = self._draw_branding(canvas)
        if resolved.glyph:
            canvas = _draw_corner_glyphs(canvas, resolved.glyph)
        return canvas, RenderPath.GLYPH

    async def _load_layer(
        self, url: str, size: tuple[int, int]
    ) -> Image.Image | None:
        try:
            data = await asyncio.wait_for(
                self.image_loader.load(url), timeout=self.image_load_timeout_seconds
            )
            layer = load_image(data)
        except TimeoutError:
            _logger.warning(
                "Timed out after %ss loading %s",
                self.image_load_timeout_seconds,
                url,
            )
            return None
        except ImageDecodeError:
            _logger.warning("Could not decode artwork from %s", url)
            return None
        except Exception:
            _logger.warning("Failed to load artwork from %s", url, exc_info=True)
            return None
        if layer.size != size:
            layer = layer.resize(size, Image.Resampling.LANCZOS)
        return layer

    def _draw_branding(self, canvas: Image.Image) -> Image.Image:
        width, height = canvas.size
        layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        draw.rectangle(
            (0, 0, width - 1, height - 1), outline=_FRAME_COLOR, width=_FRAME_WIDTH
        )
        _draw_centered(
            draw, self.brand_primary_text, (width / 2, 80), _font(48, bold=True)
        )
        _draw_centered(
            draw, self.brand_secondary_text, (width / 2, height - 40), _font(32)
        )
        return Image.alpha_composite(canvas, layer)


def _draw_corner_glyphs(canvas: Image.Image, glyph: str) -> Image.Image:
    width, height = canvas.size
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    font = _font(64)
    for anchor in (
        (100, 100),
        (width - 100, 100),
        (100, height - 80),
        (width - 100, height - 80),
    ):
        _draw_centered(draw, glyph, anchor, font)
    return Image.alpha_composite(canvas, layer)


def _draw_centered(
    draw: ImageDraw.ImageDraw,
    text: str,
    baseline_center: tuple[float, float],
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
) -> None:
    """Draw text horizontally centered with its bottom on the given point."""
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = baseline_center[0] - (right - left) / 2 - left
    y = baseline_center[1] - bottom
    draw.text((x, y), text, fill=_TEXT_COLOR, font=font)


def _font(
    size: int, bold: bool = False
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default(size=size)
