"""
API request/response models.
"""

from datetime import datetime
from typing import Optional, Any, List
from pydantic import BaseModel, Field

from overlay_studio.models.gesture import GestureMode, GestureState, GestureTarget
from overlay_studio.models.transform import OverlayTransform


# ============================================================
# Geometry Models
# ============================================================

class SurfaceModel(BaseModel):
    """
    On-screen rectangle of the rendered base image, in device pixels.

    Must be re-sent whenever the container resizes or a new image finishes loading.
    """
    left: float = Field(description="Left edge in device pixels")
    top: float = Field(description="Top edge in device pixels")
    width: float = Field(ge=0, description="Rendered width in device pixels")
    height: float = Field(ge=0, description="Rendered height in device pixels")


class TouchPoint(BaseModel):
    """A single touch contact."""
    client_x: float
    client_y: float


class PointerEvent(BaseModel):
    """
    Pointer or touch event.

    Mouse/pen events set client_x/client_y. Touch events set `touches`, of which
    the first contact is used.
    """
    client_x: Optional[float] = Field(default=None, description="Pointer X in device pixels")
    client_y: Optional[float] = Field(default=None, description="Pointer Y in device pixels")
    touches: Optional[List[TouchPoint]] = Field(
        default=None,
        description="Active touch contacts (touch events only)",
    )


class PointerDownEvent(PointerEvent):
    """Pointer/touch down on the overlay or one of its handles."""
    target: GestureTarget = Field(
        default=GestureTarget.BODY,
        description="Element hit: overlay body, resize handle or rotate handle",
    )


class OpacityRequest(BaseModel):
    """Request body for PUT /api/v1/sessions/{session_id}/opacity."""
    opacity: float = Field(description="Requested opacity; clamped to the configured bounds")


# ============================================================
# Session Models
# ============================================================

class PreviewStyle(BaseModel):
    """CSS-equivalent placement of the overlay element in the live preview."""
    left_pct: float = Field(description="CSS left, percent of the surface width")
    top_pct: float = Field(description="CSS top, percent of the surface height")
    width_px: Optional[float] = Field(
        default=None,
        description="Rendered overlay width in surface pixels (null until the surface is measured)",
    )
    css_transform: str = Field(description="CSS transform for the overlay element")
    opacity: float


class BaseImageInfo(BaseModel):
    """Uploaded base image metadata."""
    filename: str
    content_type: Optional[str] = None
    size_bytes: int
    width_px: int
    height_px: int
    uploaded_at: datetime
    image_url: str


class GestureInfo(BaseModel):
    """Gesture controller status."""
    state: GestureState
    mode: Optional[GestureMode] = None
    tracking: bool = Field(description="True while move events are being applied")


class SessionResponse(BaseModel):
    """Response from GET /api/v1/sessions/{session_id}."""
    session_id: str
    created_at: datetime
    expires_at: datetime
    ttl_seconds: int

    base_image: BaseImageInfo
    surface: Optional[SurfaceModel] = None
    transform: OverlayTransform
    gesture: GestureInfo
    preview: PreviewStyle

    overlay_url: str
    export_url: str


class GestureUpdateResponse(BaseModel):
    """Response from the pointer endpoints."""
    applied: bool = Field(description="Whether the event changed controller state or transform")
    gesture: GestureInfo
    transform: OverlayTransform
    preview: PreviewStyle


# ============================================================
# Error Models
# ============================================================

class ErrorDetail(BaseModel):
    """Detailed error information."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: ErrorDetail
