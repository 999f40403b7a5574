"""Pydantic models for booth API payloads."""

from pydantic import BaseModel, ConfigDict, Field

from event_photobooth.services.imaging import Orientation


class CaptureRequest(BaseModel):
    """A captured frame plus the kiosk's overlay and template selection."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: str = Field(alias="imageData", min_length=1)
    overlay_id: str = Field(default="none", alias="overlayId")
    template_id: str | None = Field(default=None, alias="templateId")
    orientation: Orientation | None = None
