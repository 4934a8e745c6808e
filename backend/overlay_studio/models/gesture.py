"""
Gesture enums shared by the controller and the API schemas.
"""

from enum import Enum


class GestureState(str, Enum):
    """Controller states."""
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    ROTATING = "rotating"


class GestureMode(str, Enum):
    """Kind of an active gesture."""
    DRAG = "drag"
    RESIZE = "resize"
    ROTATE = "rotate"


class GestureTarget(str, Enum):
    """Element the pointer went down on."""
    BODY = "body"
    RESIZE_HANDLE = "resize_handle"
    ROTATE_HANDLE = "rotate_handle"


class EndReason(str, Enum):
    """Why a gesture ended."""
    RELEASE = "release"
    CANCEL = "cancel"
    CONTAINER_LOST = "container_lost"
