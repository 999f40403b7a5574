"""Raster helpers built on Pillow."""

import base64
import binascii
import io
from enum import StrEnum

from PIL import Image, UnidentifiedImageError

_DEFAULT_MIME = "image/png"
_FORMAT_MIME = {"PNG": "image/png", "JPEG": "image/jpeg"}


class ImageDecodeError(ValueError):
    """Raised when image data cannot be decoded."""


class Orientation(StrEnum):
    """Output canvas orientation."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a data URL into its mime type and decoded bytes.

    Bare base64 strings are accepted and reported as PNG.
    """
    mime = _DEFAULT_MIME
    payload = data_url.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        declared = header[len("data:") :].split(";", maxsplit=1)[0]
        if declared:
            mime = declared
    try:
        return mime, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError("Image data is not valid base64") from exc


def load_image(data: bytes) -> Image.Image:
    """Open raster bytes as a fully loaded RGBA image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return image.convert("RGBA")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise ImageDecodeError("Image bytes could not be decoded") from exc


def load_data_url(data_url: str) -> Image.Image:
    """Decode a data URL into an RGBA image."""
    _, data = decode_data_url(data_url)
    return load_image(data)


def encode_data_url(
    image: Image.Image, image_format: str = "PNG", quality: int | None = None
) -> str:
    """Encode an image as a base64 data URL."""
    buffer = io.BytesIO()
    if image_format == "JPEG":
        image.convert("RGB").save(buffer, format="JPEG", quality=quality or 90)
    else:
        image.save(buffer, format=image_format)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    mime = _FORMAT_MIME.get(image_format, _DEFAULT_MIME)
    return f"data:{mime};base64,{encoded}"


def fit_within(
    width: int, height: int, max_width: int, max_height: int
) -> tuple[int, int]:
    """Scale dimensions down to the bounds, keeping the aspect ratio."""
    if width <= max_width and height <= max_height:
        return width, height
    aspect_ratio = width / height
    if width > height:
        return max_width, max(1, round(max_width / aspect_ratio))
    return max(1, round(max_height * aspect_ratio)), max_height


def compress_data_url(
    data_url: str, quality: float, max_width: int, max_height: int
) -> str:
    """Re-encode an image as a smaller JPEG data URL."""
    image = load_data_url(data_url)
    size = fit_within(image.width, image.height, max_width, max_height)
    if size != image.size:
        image = image.resize(size, Image.Resampling.LANCZOS)
    jpeg_quality = min(95, max(1, round(quality * 100)))
    return encode_data_url(image, "JPEG", quality=jpeg_quality)


def canvas_size(
    orientation: Orientation, long_edge: int = 1920, short_edge: int = 1080
) -> tuple[int, int]:
    """Return the output canvas size for an orientation."""
    if orientation is Orientation.PORTRAIT:
        return short_edge, long_edge
    return long_edge, short_edge


def crop_to_aspect(
    frame: Image.Image, target_width: int, target_height: int
) -> Image.Image:
    """Crop the centered region matching the target aspect and scale it to fill."""
    source_width, source_height = frame.size
    target_ratio = target_width / target_height
    if source_width / source_height > target_ratio:
        crop_width = round(source_height * target_ratio)
        left = (source_width - crop_width) // 2
        box = (left, 0, left + crop_width, source_height)
    else:
        crop_height = round(source_width / target_ratio)
        top = (source_height - crop_height) // 2
        box = (0, top, source_width, top + crop_height)
    return frame.crop(box).resize(
        (target_width, target_height), Image.Resampling.LANCZOS
    )
