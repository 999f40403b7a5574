"""Tests for the remote descriptor cache."""

import asyncio

from event_photobooth.catalog import BUILTIN_OVERLAYS, BUILTIN_TEMPLATES
from event_photobooth.domain.descriptors import (
    DescriptorKind,
    OverlayDescriptor,
    normalize_overlay,
    normalize_template,
)
from event_photobooth.services.catalog import RemoteDescriptorCache
from tests.conftest import FakeDescriptorClient, FixedClock


def _overlay_cache(
    client: FakeDescriptorClient, clock: FixedClock, **kwargs
) -> RemoteDescriptorCache[OverlayDescriptor]:
    return RemoteDescriptorCache(
        fetch=client.fetch_overlays,
        normalize=normalize_overlay,
        builtins=BUILTIN_OVERLAYS,
        records_key="overlays",
        clock=clock,
        **kwargs,
    )


def test_merged_listing_prefers_remote_duplicates() -> None:
    client = FakeDescriptorClient(
        overlays_payload={
            "success": True,
            "overlays": [
                {
                    "id": "lantern",
                    "name": "Gold Lanterns",
                    "type": "emoji",
                    "emoji": "🪔",
                },
                {"id": "remote-1", "name": "Remote", "type": "emoji", "emoji": "🎉"},
            ],
        }
    )
    cache = _overlay_cache(client, FixedClock())

    merged = asyncio.run(cache.get_merged_async())

    lanterns = [overlay for overlay in merged if overlay.id == "lantern"]
    assert len(lanterns) == 1
    assert lanterns[0].display_name == "Gold Lanterns"
    assert lanterns[0].glyph == "🪔"
    expected_ids = {"remote-1"} | {overlay.id for overlay in BUILTIN_OVERLAYS}
    assert len(merged) == len(expected_ids)
    assert {overlay.id for overlay in merged} == expected_ids
    assert merged[0].id == "lantern"


def test_sync_reads_use_builtins_before_first_fetch() -> None:
    client = FakeDescriptorClient()
    cache = _overlay_cache(client, FixedClock())

    assert [overlay.id for overlay in cache.get_merged()] == [
        overlay.id for overlay in BUILTIN_OVERLAYS
    ]
    assert client.calls == 0
    assert cache.get_by_id("dragon").glyph == "🐉"
    assert cache.get_by_id("missing") is None


def test_fresh_cache_is_not_refetched() -> None:
    client = FakeDescriptorClient()
    clock = FixedClock()
    cache = _overlay_cache(client, clock, ttl_seconds=300)

    asyncio.run(cache.get_merged_async())
    clock.advance(seconds=299)
    asyncio.run(cache.get_merged_async())

    assert client.calls == 1
    assert cache.is_fresh()


def test_stale_cache_is_refetched() -> None:
    client = FakeDescriptorClient()
    clock = FixedClock()
    cache = _overlay_cache(client, clock, ttl_seconds=300)

    asyncio.run(cache.get_merged_async())
    clock.advance(seconds=300)
    assert not cache.is_fresh()
    asyncio.run(cache.get_merged_async())

    assert client.calls == 2


def test_invalidate_forces_refetch() -> None:
    client = FakeDescriptorClient()
    cache = _overlay_cache(client, FixedClock())

    asyncio.run(cache.get_merged_async())
    cache.invalidate()
    asyncio.run(cache.get_merged_async())

    assert client.calls == 2


def test_failed_refresh_keeps_previous_records(caplog) -> None:
    client = FakeDescriptorClient(
        overlays_payload={
            "success": True,
            "overlays": [{"id": "remote-1", "name": "Remote", "emoji": "🎉"}],
        }
    )
    clock = FixedClock()
    cache = _overlay_cache(client, clock)
    asyncio.run(cache.refresh())
    fetched_at = cache.entry.fetched_at

    client.fail = True
    clock.advance(minutes=10)
    merged = asyncio.run(cache.get_merged_async())

    assert cache.get_by_id("remote-1") is not None
    assert cache.entry.fetched_at == fetched_at
    assert len(merged) == len(BUILTIN_OVERLAYS) + 1
    assert "Failed to refresh remote overlays" in caplog.text


def test_unsuccessful_listing_is_ignored() -> None:
    client = FakeDescriptorClient(overlays_payload={"success": False, "error": "boom"})
    cache = _overlay_cache(client, FixedClock())

    asyncio.run(cache.refresh())

    assert cache.entry is None
    assert len(cache.get_merged()) == len(BUILTIN_OVERLAYS)


def test_snake_case_image_urls_and_placeholders_are_normalized() -> None:
    client = FakeDescriptorClient(
        overlays_payload={
            "success": True,
            "overlays": [
                {
                    "id": "frame",
                    "name": "Frame",
                    "type": "image",
                    "image_url": "https://cdn.example.com/frame.png",
                },
                {"id": "x", "name": "Broken", "type": "image", "imageUrl": "null"},
                {"name": "No id"},
            ],
        }
    )
    cache = _overlay_cache(client, FixedClock())

    asyncio.run(cache.refresh())

    frame = cache.get_by_id("frame")
    assert frame.kind is DescriptorKind.IMAGE
    assert frame.image_ref == "https://cdn.example.com/frame.png"
    broken = cache.get_by_id("x")
    assert broken.image_ref is None
    assert not broken.is_composable
    assert len(cache.entry.records) == 2


def test_hidden_names_are_filtered() -> None:
    client = FakeDescriptorClient(
        overlays_payload={
            "success": True,
            "overlays": [
                {"id": "debug", "name": "Debug Overlay", "emoji": "🐞"},
                {"id": "lantern", "name": "Test Overlay", "emoji": "🏮"},
            ],
        }
    )
    cache = _overlay_cache(
        client, FixedClock(), hidden_names=frozenset({"Test Overlay", "Debug Overlay"})
    )

    merged = asyncio.run(cache.get_merged_async())

    ids = [overlay.id for overlay in merged]
    assert "debug" not in ids
    assert "lantern" not in ids


def test_template_cache_reads_templates_key() -> None:
    client = FakeDescriptorClient(
        templates_payload={
            "success": True,
            "templates": [
                {
                    "id": "template-9",
                    "name": "Night Market",
                    "image": "/templates/template-9.png",
                    "thumbnail": "/templates/template-9-thumb.png",
                    "category": "frames",
                }
            ],
        }
    )
    cache = RemoteDescriptorCache(
        fetch=client.fetch_templates,
        normalize=normalize_template,
        builtins=BUILTIN_TEMPLATES,
        records_key="templates",
        clock=FixedClock(),
    )

    merged = asyncio.run(cache.get_merged_async())

    assert merged[0].id == "template-9"
    assert merged[0].image_ref == "/templates/template-9.png"
    assert len(merged) == len(BUILTIN_TEMPLATES) + 1


def test_concurrent_refreshes_keep_the_last_completed_listing() -> None:
    delays = iter([0.05, 0.0])
    names = iter(["Slow", "Fast"])

    async def fetch() -> dict[str, object]:
        name = next(names)
        await asyncio.sleep(next(delays))
        return {
            "success": True,
            "overlays": [{"id": "remote", "name": name, "emoji": "🎉"}],
        }

    cache = RemoteDescriptorCache(
        fetch=fetch,
        normalize=normalize_overlay,
        builtins=BUILTIN_OVERLAYS,
        records_key="overlays",
        clock=FixedClock(),
    )

    async def refresh_twice() -> None:
        await asyncio.gather(cache.refresh(), cache.refresh())

    asyncio.run(refresh_twice())

    assert cache.get_by_id("remote").display_name == "Slow"
    assert [overlay.id for overlay in cache.get_merged()].count("remote") == 1


def test_failed_concurrent_refresh_keeps_the_successful_listing() -> None:
    outcomes = iter([0.05, 0.0])

    async def fetch() -> dict[str, object]:
        delay = next(outcomes)
        await asyncio.sleep(delay)
        if delay:
            raise RuntimeError("listing unavailable")
        return {
            "success": True,
            "overlays": [{"id": "remote", "name": "Remote", "emoji": "🎉"}],
        }

    cache = RemoteDescriptorCache(
        fetch=fetch,
        normalize=normalize_overlay,
        builtins=BUILTIN_OVERLAYS,
        records_key="overlays",
        clock=FixedClock(),
    )

    async def refresh_twice() -> None:
        await asyncio.gather(cache.refresh(), cache.refresh())

    asyncio.run(refresh_twice())

    assert cache.get_by_id("remote").display_name == "Remote"
