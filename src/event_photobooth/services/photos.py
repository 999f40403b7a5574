"""Local photo store with quota-aware retention."""

import json
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from event_photobooth.domain.photos import (
    PhotoRecord,
    PhotoStats,
    new_local_id,
    photo_from_payload,
    photo_to_payload,
    truncate_to_ms,
    utc_now,
)
from event_photobooth.services.imaging import ImageDecodeError, compress_data_url
from event_photobooth.services.key_value import (
    KeyValueStore,
    KeyValueStoreError,
    QuotaExceededError,
)

_logger = logging.getLogger(__name__)


@dataclass
class PhotoStore:
    """Device-local photo retention over a key-value store.

    The list is kept newest first and bounded by ``max_photos``. When a write
    hits the store's quota the list is retried at each of the
    ``retention_ceilings`` and finally with only the newest photo. Persistence
    failures are logged and never raised to the capture flow.
    """

    kv_store: KeyValueStore
    photos_key: str = "lunar-new-year-photos"
    max_photos: int = 15
    retention_ceilings: tuple[int, ...] = (15, 10, 5, 3, 1)
    compression_quality: float = 0.7
    max_width: int = 1920
    max_height: int = 1080
    clock: Callable[[], datetime] = utc_now
    _photos: list[PhotoRecord] | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def list_all(self) -> list[PhotoRecord]:
        """Return every photo, newest first."""
        with self._lock:
            photos = list(self._current())
        return sorted(photos, key=lambda photo: photo.captured_at, reverse=True)

    def list_between(self, start: datetime, end: datetime) -> list[PhotoRecord]:
        """Return photos captured within the inclusive range, newest first."""
        return [
            photo for photo in self.list_all() if start <= photo.captured_at <= end
        ]

    def count(self) -> int:
        """Return the number of tracked photos."""
        with self._lock:
            return len(self._current())

    def save(self, raw_image: str) -> PhotoRecord:
        """Store a captured image and return its record."""
        image_data = self._compress(raw_image)
        with self._lock:
            now = truncate_to_ms(self.clock())
            photo = PhotoRecord(
                id=new_local_id("photo", now), image_data=image_data, captured_at=now
            )
            photos = [photo, *self._current()]
            if len(photos) > self.max_photos:
                _logger.info(
                    "Photo limit reached (%s); dropping %s oldest photos",
                    self.max_photos,
                    len(photos) - self.max_photos,
                )
                photos = photos[: self.max_photos]
            self._photos = self._persist(photos)
        return photo

    def delete_by_id(self, photo_id: str) -> None:
        """Delete a photo; unknown ids are ignored."""
        self.delete_many([photo_id])

    def delete_many(self, photo_ids: Iterable[str]) -> int:
        """Delete photos by id and return how many were removed."""
        doomed = set(photo_ids)
        with self._lock:
            photos = self._current()
            remaining = [photo for photo in photos if photo.id not in doomed]
            removed = len(photos) - len(remaining)
            if removed:
                self._photos = self._persist(remaining)
        return removed

    def clear_all(self) -> None:
        """Remove every photo from the store."""
        with self._lock:
            self._photos = []
            try:
                self.kv_store.remove(self.photos_key)
            except KeyValueStoreError:
                _logger.exception("Failed to clear stored photos")

    def stats(self) -> PhotoStats:
        """Summarize the photo footprint."""
        photos = self.list_all()
        total_bytes = sum(len(photo.image_data) * 0.75 for photo in photos)
        return PhotoStats(
            total_photos=len(photos),
            total_size_mb=round(total_bytes / 1024 / 1024, 2),
            oldest_captured_at=photos[-1].captured_at if photos else None,
            newest_captured_at=photos[0].captured_at if photos else None,
        )

    def _current(self) -> list[PhotoRecord]:
        if self._photos is None:
            self._photos = self._load()
        return self._photos

    def _load(self) -> list[PhotoRecord]:
        try:
            raw = self.kv_store.get(self.photos_key)
        except KeyValueStoreError:
            _logger.warning("Photo store unavailable; starting empty", exc_info=True)
            return []
        if not raw:
            return []
        try:
            payload = json.loads(raw)
        except ValueError:
            _logger.warning("Stored photos are corrupt; starting empty")
            return []
        if not isinstance(payload, list):
            _logger.warning("Stored photos are not a list; starting empty")
            return []
        photos = [photo for photo in map(photo_from_payload, payload) if photo]
        if len(photos) != len(payload):
            _logger.warning(
                "Skipped %s malformed stored photos", len(payload) - len(photos)
            )
        return photos

    def _compress(self, raw_image: str) -> str:
        try:
            return compress_data_url(
                raw_image,
                quality=self.compression_quality,
                max_width=self.max_width,
                max_height=self.max_height,
            )
        except ImageDecodeError:
            _logger.warning("Re-encoding failed; storing the original image")
            return raw_image

    def _persist(self, photos: list[PhotoRecord]) -> list[PhotoRecord]:
        """Write photos, shrinking on quota errors; return what is tracked."""
        attempted: set[int] = set()
        sizes = [
            len(photos),
            *(min(len(photos), ceiling) for ceiling in self.retention_ceilings),
            min(len(photos), 1),
        ]
        for size in sizes:
            if size in attempted:
                continue
            attempted.add(size)
            subset = photos[:size]
            try:
                self._write(subset)
            except QuotaExceededError:
                _logger.warning(
                    "Photo store quota exceeded writing %s photos", len(subset)
                )
                continue
            except KeyValueStoreError:
                _logger.exception("Failed to persist photos")
                return photos
            if size < len(photos):
                _logger.warning(
                    "Kept only the newest %s of %s photos to fit the store quota",
                    size,
                    len(photos),
                )
            return subset
        _logger.error(
            "Unable to persist photos within the store quota; "
            "the newest photo will not survive a restart"
        )
        return photos

    def _write(self, photos: list[PhotoRecord]) -> None:
        payload = json.dumps([photo_to_payload(photo) for photo in photos])
        self.kv_store.set(self.photos_key, payload)
