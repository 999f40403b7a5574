"""Time-boxed cache merging remote descriptors with the built-in catalog."""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Generic, Protocol, TypeVar

from event_photobooth.domain.photos import utc_now

_logger = logging.getLogger(__name__)


class Descriptor(Protocol):
    """Shape shared by overlay and template descriptors."""

    @property
    def id(self) -> str: ...

    @property
    def display_name(self) -> str: ...


DescriptorT = TypeVar("DescriptorT", bound=Descriptor)


@dataclass(frozen=True)
class CacheEntry(Generic[DescriptorT]):
    """Remote records captured at a point in time."""

    fetched_at: datetime
    records: tuple[DescriptorT, ...]

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.fetched_at < ttl


@dataclass
class RemoteDescriptorCache(Generic[DescriptorT]):
    """Remote descriptor listing with a freshness window and static fallback.

    Synchronous reads only ever use what is cached. ``get_merged_async``
    refetches first when nothing has been fetched yet or the entry is older
    than ``ttl_seconds``. Failed refreshes keep the previous entry.
    """

    fetch: Callable[[], Awaitable[Mapping[str, object]]]
    normalize: Callable[[Mapping[str, object]], DescriptorT | None]
    builtins: Sequence[DescriptorT] = ()
    records_key: str = "records"
    ttl_seconds: int = 300
    hidden_names: frozenset[str] = frozenset()
    clock: Callable[[], datetime] = utc_now
    _entry: CacheEntry[DescriptorT] | None = field(
        default=None, init=False, repr=False
    )

    @property
    def entry(self) -> CacheEntry[DescriptorT] | None:
        return self._entry

    async def refresh(self) -> None:
        """Refetch the remote listing; failures keep the cached records."""
        try:
            payload = await self.fetch()
            records = self._parse(payload)
        except Exception:
            _logger.warning(
                "Failed to refresh remote %s; keeping cached records",
                self.records_key,
                exc_info=True,
            )
            return
        self._entry = CacheEntry(fetched_at=self.clock(), records=records)
        _logger.info("Fetched %s remote %s", len(records), self.records_key)

    def is_fresh(self) -> bool:
        """Return true when a fetched entry is inside the freshness window."""
        if self._entry is None:
            return False
        return self._entry.is_fresh(self.clock(), timedelta(seconds=self.ttl_seconds))

    def invalidate(self) -> None:
        """Drop the cached entry so the next async read refetches."""
        self._entry = None

    def get_merged(self) -> list[DescriptorT]:
        """Return remote then built-in descriptors, first id occurrence wins."""
        remote = self._entry.records if self._entry else ()
        seen: set[str] = set()
        merged: list[DescriptorT] = []
        for descriptor in (*remote, *self.builtins):
            if descriptor.id in seen:
                continue
            seen.add(descriptor.id)
            if descriptor.display_name in self.hidden_names:
                continue
            merged.append(descriptor)
        return merged

    async def get_merged_async(self) -> list[DescriptorT]:
        """Refresh when stale, then return the merged listing."""
        if not self.is_fresh():
            await self.refresh()
        return self.get_merged()

    def get_by_id(self, descriptor_id: str) -> DescriptorT | None:
        """Return a merged descriptor by id, if present."""
        for descriptor in self.get_merged():
            if descriptor.id == descriptor_id:
                return descriptor
        return None

    def _parse(self, payload: Mapping[str, object]) -> tuple[DescriptorT, ...]:
        if not isinstance(payload, Mapping) or not payload.get("success"):
            raise ValueError(f"Remote {self.records_key} listing was not successful")
        raw_records = payload.get(self.records_key, payload.get("records"))
        if not isinstance(raw_records, list):
            raise ValueError(f"Remote {self.records_key} listing is malformed")
        records: list[DescriptorT] = []
        for raw in raw_records:
            descriptor = self.normalize(raw) if isinstance(raw, Mapping) else None
            if descriptor is None:
                _logger.warning("Skipping malformed remote %s record", self.records_key)
                continue
            records.append(descriptor)
        return tuple(records)
