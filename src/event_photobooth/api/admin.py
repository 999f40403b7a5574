"""Admin API endpoints for overlays and templates with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    Header,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)

from event_photobooth.domain.descriptors import overlay_to_payload, template_to_payload
from event_photobooth.services.admin import UploadValidationError, UploadedAsset

if TYPE_CHECKING:
    from event_photobooth.containers import AppContainer

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/overlays")
async def list_overlays(request: Request) -> dict[str, object]:
    """Public overlay listing consumed by the booth catalog cache."""
    container: AppContainer = request.app.state.container
    overlays = container.admin_service.list_overlays()
    return {
        "success": True,
        "overlays": [overlay_to_payload(overlay) for overlay in overlays],
        "count": len(overlays),
    }


@router.post("/overlays", dependencies=[Depends(require_admin)])
async def save_overlay(
    request: Request, payload: dict[str, object] = Body(...)
) -> dict[str, object]:
    """Create or update an overlay."""
    container: AppContainer = request.app.state.container
    overlay, created = container.admin_service.upsert_overlay(payload)
    return {
        "success": True,
        "overlay": overlay_to_payload(overlay),
        "message": (
            "Overlay added successfully" if created else "Overlay updated successfully"
        ),
    }


@router.delete("/overlays", dependencies=[Depends(require_admin)])
async def delete_overlay(
    request: Request, overlay_id: str | None = Query(default=None, alias="id")
) -> dict[str, object]:
    """Delete a stored overlay."""
    container: AppContainer = request.app.state.container
    container.admin_service.delete_overlay(overlay_id)
    return {
        "success": True,
        "message": "Overlay deleted successfully",
        "overlayId": overlay_id,
    }


@router.post("/overlays/upload", dependencies=[Depends(require_admin)])
async def upload_overlay(
    request: Request, overlay: UploadFile | None = File(default=None)
) -> dict[str, object]:
    """Upload overlay artwork and return its public URL."""
    container: AppContainer = request.app.state.container
    if overlay is None:
        raise UploadValidationError("Overlay file is required")
    url = container.admin_service.upload_asset(
        "overlays", await _read_asset(overlay), label="Overlay"
    )
    return {"success": True, "file": url, "message": "File uploaded successfully"}


@router.post("/overlays/update-image", dependencies=[Depends(require_admin)])
async def update_overlay_image(
    request: Request,
    overlay_id: str | None = Form(default=None, alias="overlayId"),
    overlay: UploadFile | None = File(default=None),
) -> dict[str, object]:
    """Replace the artwork of a stored overlay."""
    container: AppContainer = request.app.state.container
    if overlay is None:
        raise UploadValidationError("Overlay file is required")
    url = container.admin_service.replace_overlay_image(
        overlay_id, await _read_asset(overlay)
    )
    return {
        "success": True,
        "imageUrl": url,
        "message": "Overlay image updated successfully",
    }


@router.get("/overlays/debug", dependencies=[Depends(require_admin)])
async def overlay_debug(request: Request) -> dict[str, object]:
    """Return diagnostics about stored overlays."""
    container: AppContainer = request.app.state.container
    return {"success": True, **container.admin_service.overlay_diagnostics()}


@router.get("/templates")
async def list_templates(request: Request) -> dict[str, object]:
    """Public template listing consumed by the booth catalog cache."""
    container: AppContainer = request.app.state.container
    templates = container.admin_service.list_templates()
    return {
        "success": True,
        "templates": [template_to_payload(template) for template in templates],
        "count": len(templates),
    }


@router.post("/templates", dependencies=[Depends(require_admin)])
async def save_template(
    request: Request, payload: dict[str, object] = Body(...)
) -> dict[str, object]:
    """Create or update a template."""
    container: AppContainer = request.app.state.container
    template, created = container.admin_service.upsert_template(payload)
    return {
        "success": True,
        "template": template_to_payload(template),
        "message": (
            "Template added successfully"
            if created
            else "Template updated successfully"
        ),
    }


@router.delete("/templates", dependencies=[Depends(require_admin)])
async def delete_template(
    request: Request, template_id: str | None = Query(default=None, alias="id")
) -> dict[str, object]:
    """Delete a stored template."""
    container: AppContainer = request.app.state.container
    container.admin_service.delete_template(template_id)
    return {
        "success": True,
        "message": "Template deleted successfully",
        "templateId": template_id,
    }


@router.post("/templates/upload", dependencies=[Depends(require_admin)])
async def upload_template(
    request: Request,
    template: UploadFile | None = File(default=None),
    thumbnail: UploadFile | None = File(default=None),
) -> dict[str, object]:
    """Upload template artwork and its thumbnail."""
    container: AppContainer = request.app.state.container
    files = container.admin_service.upload_template_assets(
        await _read_asset(template) if template is not None else None,
        await _read_asset(thumbnail) if thumbnail is not None else None,
    )
    return {"success": True, "files": files, "message": "Files uploaded successfully"}


async def _read_asset(upload: UploadFile) -> UploadedAsset:
    return UploadedAsset(
        filename=upload.filename or "",
        content_type=upload.content_type,
        content=await upload.read(),
    )

