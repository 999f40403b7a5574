"""Local persistent key-value store abstractions."""

from dataclasses import dataclass, field
from typing import Protocol


class KeyValueStoreError(Exception):
    """Raised when the local store cannot be read or written."""


class QuotaExceededError(KeyValueStoreError):
    """Raised when a write would exceed the store's capacity."""


class KeyValueStore(Protocol):
    """String-keyed store with a finite capacity."""

    def get(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value, raising QuotaExceededError when capacity is exceeded."""

    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""


def entry_size(key: str, value: str) -> int:
    """Return the footprint of one entry in bytes."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with an optional byte capacity."""

    capacity_bytes: int | None = None
    _values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self.capacity_bytes is not None:
            used = self.used_bytes() - (
                entry_size(key, self._values[key]) if key in self._values else 0
            )
            if used + entry_size(key, value) > self.capacity_bytes:
                raise QuotaExceededError(
                    f"Writing {key!r} exceeds capacity of {self.capacity_bytes} bytes"
                )
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def used_bytes(self) -> int:
        """Return the current footprint of all entries."""
        return sum(entry_size(key, value) for key, value in self._values.items())
