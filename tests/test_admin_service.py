"""Tests for admin overlay and template management."""

import pytest

from event_photobooth.catalog import BUILTIN_OVERLAYS, BUILTIN_TEMPLATES
from event_photobooth.domain.descriptors import DescriptorKind, OverlayDescriptor
from event_photobooth.domain.photos import to_epoch_ms
from event_photobooth.services.admin import (
    AdminService,
    BuiltinDescriptorError,
    DescriptorNotFoundError,
    DescriptorValidationError,
    UploadedAsset,
    UploadValidationError,
)
from tests.conftest import (
    FakeBlobStorage,
    FixedClock,
    InMemoryDescriptorRepository,
    make_png,
)


def _service(
    repository: InMemoryDescriptorRepository | None = None,
    blob_storage: FakeBlobStorage | None = None,
    clock: FixedClock | None = None,
    max_upload_bytes: int = 10 * 1024 * 1024,
) -> AdminService:
    return AdminService(
        repository=repository or InMemoryDescriptorRepository(),
        blob_storage=blob_storage or FakeBlobStorage(),
        max_upload_bytes=max_upload_bytes,
        clock=clock or FixedClock(),
    )


def test_image_overlay_without_image_is_rejected() -> None:
    repository = InMemoryDescriptorRepository()
    service = _service(repository)

    with pytest.raises(DescriptorValidationError, match="Image URL is required"):
        service.upsert_overlay({"name": "Frame", "type": "image", "imageUrl": ""})
    with pytest.raises(DescriptorValidationError):
        service.upsert_overlay({"name": "Frame", "type": "image", "imageUrl": "null"})

    assert repository.overlays == {}


def test_overlay_requires_name_and_type() -> None:
    service = _service()

    with pytest.raises(DescriptorValidationError, match="Name and type are required"):
        service.upsert_overlay({"type": "emoji", "emoji": "🏮"})
    with pytest.raises(DescriptorValidationError):
        service.upsert_overlay({"name": "Lanterns", "type": "video"})
    with pytest.raises(DescriptorValidationError, match="Glyph is required"):
        service.upsert_overlay({"name": "Lanterns", "type": "glyph"})


def test_create_overlay_assigns_timestamp_id() -> None:
    clock = FixedClock()
    repository = InMemoryDescriptorRepository()
    service = _service(repository, clock=clock)

    overlay, created = service.upsert_overlay(
        {
            "name": "Frame",
            "type": "image",
            "imageUrl": "https://blob.example.com/overlays/frame.png",
            "emoji": "🏮",
        }
    )

    assert created
    assert overlay.id == f"overlay-{to_epoch_ms(clock.now)}"
    assert overlay.kind is DescriptorKind.IMAGE
    assert overlay.glyph is None
    assert repository.overlays[overlay.id] == overlay
    assert repository.saved_at[overlay.id] == clock.now


def test_upsert_overlay_updates_existing_row() -> None:
    repository = InMemoryDescriptorRepository()
    service = _service(repository)
    service.upsert_overlay(
        {"id": "o-1", "name": "Old", "type": "emoji", "emoji": "🏮"}
    )

    overlay, created = service.upsert_overlay(
        {"id": "o-1", "name": "New", "type": "glyph", "glyph": "🐉"}
    )

    assert not created
    assert repository.overlays["o-1"].display_name == "New"
    assert overlay.glyph == "🐉"


def test_list_overlays_puts_stored_rows_first() -> None:
    repository = InMemoryDescriptorRepository()
    repository.save_overlay(
        OverlayDescriptor(
            id="lantern", display_name="Gold", kind=DescriptorKind.GLYPH, glyph="🪔"
        ),
        FixedClock().now,
    )
    service = _service(repository)

    overlays = service.list_overlays()

    assert overlays[0].display_name == "Gold"
    assert [overlay.id for overlay in overlays].count("lantern") == 1
    assert len(overlays) == len(BUILTIN_OVERLAYS)


def test_builtin_overlays_cannot_be_deleted() -> None:
    service = _service()

    with pytest.raises(BuiltinDescriptorError, match="Cannot delete built-in overlay"):
        service.delete_overlay("lantern")
    with pytest.raises(DescriptorValidationError):
        service.delete_overlay(None)


def test_delete_overlay_removes_row() -> None:
    repository = InMemoryDescriptorRepository()
    service = _service(repository)
    overlay, _ = service.upsert_overlay(
        {"name": "Temp", "type": "emoji", "emoji": "🎉"}
    )

    service.delete_overlay(overlay.id)

    assert repository.overlays == {}


def test_upload_accepts_png_by_extension_or_mime() -> None:
    blob_storage = FakeBlobStorage()
    clock = FixedClock()
    service = _service(blob_storage=blob_storage, clock=clock)

    by_extension = service.upload_asset(
        "overlays",
        UploadedAsset(filename="frame.PNG", content_type=None, content=make_png()),
    )
    by_mime = service.upload_asset(
        "overlays",
        UploadedAsset(filename="frame", content_type="image/jpeg", content=b"jpeg"),
    )

    first_path, _, first_type = blob_storage.uploads[0]
    assert first_path.startswith(f"overlays/overlay-{to_epoch_ms(clock.now)}-")
    assert first_path.endswith(".png")
    assert first_type == "image/png"
    assert by_extension == f"https://blob.example.com/{first_path}"
    assert blob_storage.uploads[1][0].endswith(".jpg")
    assert by_mime.endswith(".jpg")


def test_upload_rejects_wrong_type_and_size() -> None:
    blob_storage = FakeBlobStorage()
    service = _service(blob_storage=blob_storage, max_upload_bytes=10)

    with pytest.raises(UploadValidationError, match=".png or .jpg"):
        service.upload_asset(
            "overlays",
            UploadedAsset(filename="frame.gif", content_type="image/gif", content=b"x"),
        )
    with pytest.raises(UploadValidationError, match="too large"):
        service.upload_asset(
            "overlays",
            UploadedAsset(
                filename="frame.png", content_type="image/png", content=b"x" * 11
            ),
        )

    assert blob_storage.uploads == []


def test_replace_overlay_image_updates_row() -> None:
    repository = InMemoryDescriptorRepository()
    service = _service(repository)
    overlay, _ = service.upsert_overlay(
        {"name": "Frame", "type": "image", "imageUrl": "https://old.example.com/a.png"}
    )

    url = service.replace_overlay_image(
        overlay.id,
        UploadedAsset(filename="new.png", content_type="image/png", content=make_png()),
    )

    assert repository.overlays[overlay.id].image_ref == url


def test_replace_image_for_unknown_overlay() -> None:
    blob_storage = FakeBlobStorage()
    service = _service(blob_storage=blob_storage)

    with pytest.raises(DescriptorNotFoundError):
        service.replace_overlay_image(
            "overlay-missing",
            UploadedAsset(filename="a.png", content_type="image/png", content=b"png"),
        )

    assert blob_storage.uploads == []


def test_overlay_diagnostics_report_shared_images() -> None:
    service = _service()
    shared = "https://blob.example.com/overlays/shared.png"
    service.upsert_overlay(
        {"id": "a", "name": "A", "type": "image", "imageUrl": shared}
    )
    service.upsert_overlay(
        {"id": "b", "name": "B", "type": "image", "image_url": shared}
    )
    service.upsert_overlay({"id": "c", "name": "C", "type": "emoji", "emoji": "🎉"})

    diagnostics = service.overlay_diagnostics()

    assert diagnostics["totalOverlays"] == 3
    assert diagnostics["summary"]["imageType"] == 2
    assert diagnostics["summary"]["glyphType"] == 1
    assert diagnostics["duplicateImageUrls"] == [
        {"url": shared, "overlayIds": ["b", "a"]}
    ]


def test_template_validation_and_builtins() -> None:
    repository = InMemoryDescriptorRepository()
    service = _service(repository)

    with pytest.raises(DescriptorValidationError, match="Name and category"):
        service.upsert_template({"name": "Night"})
    with pytest.raises(DescriptorValidationError, match="Image URL is required"):
        service.upsert_template({"name": "Night", "category": "frames", "image": ""})
    with pytest.raises(BuiltinDescriptorError):
        service.delete_template("template-1")

    template, created = service.upsert_template(
        {
            "name": "Night",
            "category": "frames",
            "imageUrl": "https://blob.example.com/templates/night.png",
        }
    )

    assert created
    assert service.list_templates()[0] == template
    assert len(service.list_templates()) == len(BUILTIN_TEMPLATES) + 1
    service.delete_template(template.id)
    assert repository.templates == {}


def test_single_template_upload_serves_as_thumbnail() -> None:
    blob_storage = FakeBlobStorage()
    service = _service(blob_storage=blob_storage)

    files = service.upload_template_assets(
        UploadedAsset(filename="t.png", content_type="image/png", content=make_png()),
        None,
    )

    assert files["template"] == files["thumbnail"]
    assert blob_storage.uploads[0][0].startswith("templates/template-")
    with pytest.raises(UploadValidationError):
        service.upload_template_assets(None, None)
