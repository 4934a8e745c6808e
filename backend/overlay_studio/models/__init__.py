"""
Pydantic models for request/response schemas and the overlay transform.
"""

from overlay_studio.models.gesture import (
    GestureState,
    GestureMode,
    GestureTarget,
    EndReason,
)
from overlay_studio.models.transform import (
    OverlayTransform,
    TransformLimits,
)
from overlay_studio.models.responses import (
    SurfaceModel,
    TouchPoint,
    PointerEvent,
    PointerDownEvent,
    OpacityRequest,
    PreviewStyle,
    BaseImageInfo,
    GestureInfo,
    SessionResponse,
    GestureUpdateResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "GestureState",
    "GestureMode",
    "GestureTarget",
    "EndReason",
    "OverlayTransform",
    "TransformLimits",
    "SurfaceModel",
    "TouchPoint",
    "PointerEvent",
    "PointerDownEvent",
    "OpacityRequest",
    "PreviewStyle",
    "BaseImageInfo",
    "GestureInfo",
    "SessionResponse",
    "GestureUpdateResponse",
    "ErrorDetail",
    "ErrorResponse",
]
