"""File-backed key-value store for kiosk-local persistence."""

import errno
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote

from event_photobooth.services.key_value import (
    KeyValueStore,
    KeyValueStoreError,
    QuotaExceededError,
    entry_size,
)


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Stores one UTF-8 file per key under a directory with a byte quota."""

    directory: Path
    capacity_bytes: int

    @classmethod
    def create(cls, directory: str, capacity_bytes: int) -> "FileKeyValueStore":
        """Create the store, making sure its directory exists."""
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        return cls(directory=path, capacity_bytes=capacity_bytes)

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise KeyValueStoreError(f"Failed to read {key!r}") from exc

    def set(self, key: str, value: str) -> None:
        used = self._used_bytes(excluding=key)
        if used + entry_size(key, value) > self.capacity_bytes:
            raise QuotaExceededError(
                f"Writing {key!r} exceeds capacity of {self.capacity_bytes} bytes"
            )
        target = self._path_for(key)
        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.directory, suffix=".tmp", delete=False
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(value)
            os.replace(temp_path, target)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            if exc.errno in {errno.ENOSPC, errno.EDQUOT}:
                raise QuotaExceededError(f"No space left writing {key!r}") from exc
            raise KeyValueStoreError(f"Failed to write {key!r}") from exc

    def remove(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise KeyValueStoreError(f"Failed to remove {key!r}") from exc

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def _used_bytes(self, excluding: str) -> int:
        excluded = self._path_for(excluding)
        total = 0
        for path in self.directory.glob("*.json"):
            if path == excluded:
                continue
            total += path.stat().st_size + len(unquote(path.stem).encode("utf-8"))
        return total
