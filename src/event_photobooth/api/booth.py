"""Kiosk-facing API for selection screens, capture and the gallery."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request

from event_photobooth.api.booth_models import CaptureRequest
from event_photobooth.catalog import (
    BUILTIN_BACKGROUNDS,
    get_background,
    template_categories,
)
from event_photobooth.domain.descriptors import (
    background_to_payload,
    overlay_to_payload,
    template_to_payload,
)
from event_photobooth.domain.photos import photo_to_payload, to_epoch_ms
from event_photobooth.services.admin import DescriptorNotFoundError

if TYPE_CHECKING:
    from event_photobooth.containers import AppContainer

router = APIRouter(prefix="/api/booth", tags=["booth"])


@router.get("/overlays")
async def list_overlays(request: Request) -> dict[str, object]:
    """Return overlays available to the kiosk."""
    container: AppContainer = request.app.state.container
    overlays = await container.booth_service.list_overlays()
    return {
        "success": True,
        "overlays": [overlay_to_payload(overlay) for overlay in overlays],
    }


@router.get("/templates")
async def list_templates(request: Request) -> dict[str, object]:
    """Return templates available to the kiosk."""
    container: AppContainer = request.app.state.container
    templates = await container.booth_service.list_templates()
    return {
        "success": True,
        "templates": [template_to_payload(template) for template in templates],
        "categories": template_categories(templates),
    }


@router.get("/backgrounds")
async def list_backgrounds() -> dict[str, object]:
    """Return the built-in backgrounds."""
    return {
        "success": True,
        "backgrounds": [
            background_to_payload(background) for background in BUILTIN_BACKGROUNDS
        ],
    }


@router.get("/backgrounds/{background_id}")
async def background_detail(background_id: str) -> dict[str, object]:
    """Return one built-in background."""
    background = get_background(background_id)
    if background is None:
        raise DescriptorNotFoundError(f"Background {background_id} not found")
    return {"success": True, "background": background_to_payload(background)}


@router.post("/capture")
async def capture(payload: CaptureRequest, request: Request) -> dict[str, object]:
    """Composite and store a captured frame."""
    container: AppContainer = request.app.state.container
    photo, result = await container.booth_service.capture(
        payload.image_data,
        payload.overlay_id,
        template_id=payload.template_id,
        orientation=payload.orientation,
    )
    return {
        "success": True,
        "photo": photo_to_payload(photo),
        "renderPath": result.render_path.value,
        "templateApplied": result.template_applied,
    }


@router.get("/photos")
async def list_photos(request: Request) -> dict[str, object]:
    """Return stored photos, newest first."""
    container: AppContainer = request.app.state.container
    photos = container.photo_store.list_all()
    return {"success": True, "photos": [photo_to_payload(photo) for photo in photos]}


@router.get("/photos/stats")
async def photo_stats(request: Request) -> dict[str, object]:
    """Return the gallery footprint."""
    container: AppContainer = request.app.state.container
    stats = container.photo_store.stats()
    return {
        "success": True,
        "totalPhotos": stats.total_photos,
        "totalSizeMb": stats.total_size_mb,
        "oldestPhoto": (
            to_epoch_ms(stats.oldest_captured_at) if stats.oldest_captured_at else None
        ),
        "newestPhoto": (
            to_epoch_ms(stats.newest_captured_at) if stats.newest_captured_at else None
        ),
    }


@router.delete("/photos/{photo_id}")
async def delete_photo(photo_id: str, request: Request) -> dict[str, object]:
    """Delete one photo; unknown ids are ignored."""
    container: AppContainer = request.app.state.container
    removed = container.photo_store.delete_many([photo_id])
    container.session_service.update_photo_count(container.photo_store.count())
    return {"success": True, "photoId": photo_id, "deleted": removed}


@router.delete("/photos")
async def delete_photos(
    request: Request, ids: str | None = Query(default=None)
) -> dict[str, object]:
    """Delete the listed photos, or every photo when no ids are given."""
    container: AppContainer = request.app.state.container
    if ids is None:
        removed = container.photo_store.count()
        container.photo_store.clear_all()
    else:
        photo_ids = [chunk.strip() for chunk in ids.split(",") if chunk.strip()]
        removed = container.photo_store.delete_many(photo_ids)
    container.session_service.update_photo_count(container.photo_store.count())
    return {"success": True, "deleted": removed}


@router.get("/session")
async def session(request: Request) -> dict[str, object]:
    """Return the active booth session."""
    container: AppContainer = request.app.state.container
    current = container.session_service.get_session()
    return {
        "success": True,
        "session": {
            "sessionId": current.session_id,
            "startTime": to_epoch_ms(current.started_at),
            "photoCount": current.photo_count,
            "lastActivity": to_epoch_ms(current.last_activity_at),
        },
    }

