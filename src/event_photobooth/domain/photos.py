"""Domain models for captured photos and booth sessions."""

import secrets
import string
from dataclasses import dataclass
from datetime import UTC, datetime

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class PhotoRecord:
    """A captured photo kept in the local photo store."""

    id: str
    image_data: str
    captured_at: datetime


@dataclass(frozen=True)
class PhotoStats:
    """Footprint summary of the local photo store."""

    total_photos: int
    total_size_mb: float
    oldest_captured_at: datetime | None
    newest_captured_at: datetime | None


@dataclass(frozen=True)
class BoothSession:
    """A kiosk session tracked alongside the photo store."""

    session_id: str
    started_at: datetime
    photo_count: int
    last_activity_at: datetime


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int | float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(tz=UTC)


def truncate_to_ms(value: datetime) -> datetime:
    """Drop sub-millisecond precision so values survive a persist round trip."""
    return from_epoch_ms(to_epoch_ms(value))


def new_local_id(prefix: str, now: datetime) -> str:
    """Build an id of the form <prefix>-<epoch-ms>-<9 base36 chars>."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}-{to_epoch_ms(now)}-{suffix}"


def photo_to_payload(photo: PhotoRecord) -> dict[str, object]:
    """Serialize a photo into its persisted JSON shape."""
    return {
        "id": photo.id,
        "dataUrl": photo.image_data,
        "timestamp": to_epoch_ms(photo.captured_at),
    }


def photo_from_payload(payload: object) -> PhotoRecord | None:
    """Parse a persisted photo entry, returning None for malformed entries."""
    if not isinstance(payload, dict):
        return None
    photo_id = payload.get("id")
    data_url = payload.get("dataUrl")
    timestamp = payload.get("timestamp")
    if not isinstance(photo_id, str) or not photo_id:
        return None
    if not isinstance(data_url, str):
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
        return None
    try:
        captured_at = from_epoch_ms(timestamp)
    except (OverflowError, ValueError, OSError):
        return None
    return PhotoRecord(id=photo_id, image_data=data_url, captured_at=captured_at)
