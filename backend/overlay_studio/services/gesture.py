"""
Gesture state machine for interactive overlay manipulation.

A gesture runs from pointer/touch-down to release or cancel and is exactly one
of drag, resize or rotate:

    IDLE --down(body)----------> DRAGGING
    IDLE --down(resize_handle)-> RESIZING
    IDLE --down(rotate_handle)-> ROTATING
    <active> --move----------> same state (applies the mode's update rule)
    <active> --up / cancel---> IDLE

Every move recomputes the transform from the absolute pointer position and the
overlay's current center; nothing is accumulated across moves. The current
transform and display surface are passed in on each call.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from overlay_studio.config import settings
from overlay_studio.models.gesture import EndReason, GestureMode, GestureState, GestureTarget
from overlay_studio.models.transform import OverlayTransform, is_finite
from overlay_studio.services.coordinates import (
    InvalidGeometry,
    Point2D,
    Size2D,
    SurfaceRect,
    device_to_local,
    local_to_percent,
    percent_to_local,
)

logger = logging.getLogger(__name__)


TARGET_MODES = {
    GestureTarget.BODY: GestureMode.DRAG,
    GestureTarget.RESIZE_HANDLE: GestureMode.RESIZE,
    GestureTarget.ROTATE_HANDLE: GestureMode.ROTATE,
}

MODE_STATES = {
    GestureMode.DRAG: GestureState.DRAGGING,
    GestureMode.RESIZE: GestureState.RESIZING,
    GestureMode.ROTATE: GestureState.ROTATING,
}


@dataclass(frozen=True)
class GestureSession:
    """An in-progress gesture. Exists only while the pointer is down."""
    mode: GestureMode
    anchor_device_point: Point2D


def resize_scale(distance: float, surface_size: Size2D, calibration_fraction: float, scale_min: float) -> float:
    """
    Scale for a resize handle at `distance` pixels from the overlay center.

    The handle is calibrated so that distance == min(surface) * fraction gives
    scale 1. A zero or degenerate distance maps to scale_min.
    """
    base_distance = surface_size.min_side * calibration_fraction
    if not is_finite(distance) or distance <= 0 or base_distance <= 0:
        return scale_min
    return distance / base_distance


def bearing_degrees(center: Point2D, point: Point2D) -> float:
    """Absolute bearing from center to point (0 = +x, 90 = +y/down on screen)."""
    return math.degrees(math.atan2(point.y - center.y, point.x - center.x))


class GestureController:
    """
    Classifies pointer interactions and turns moves into transform updates.

    The move listener is attached on entering an active state and detached on
    returning to IDLE; `on_start` / `on_end` are invoked at those points.
    """

    def __init__(
        self,
        resize_calibration_fraction: Optional[float] = None,
        on_start: Optional[Callable[[GestureMode], None]] = None,
        on_end: Optional[Callable[[GestureMode, EndReason], None]] = None,
    ):
        self.resize_calibration_fraction = (
            resize_calibration_fraction or settings.resize_calibration_fraction
        )
        self.on_start = on_start
        self.on_end = on_end
        self._session: Optional[GestureSession] = None

    @property
    def session(self) -> Optional[GestureSession]:
        return self._session

    @property
    def state(self) -> GestureState:
        if self._session is None:
            return GestureState.IDLE
        return MODE_STATES[self._session.mode]

    @property
    def is_tracking(self) -> bool:
        """True while the move listener is attached."""
        return self._session is not None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def pointer_down(
        self,
        target: GestureTarget,
        device_point: Point2D,
        surface: Optional[SurfaceRect],
    ) -> bool:
        """
        Start a gesture.

        Returns:
            True if a gesture started. A second down during an active gesture,
            or a down without a usable surface, leaves the state unchanged.
        """
        if self._session is not None:
            logger.warning(
                f"Ignoring pointer down on {target.value}: {self._session.mode.value} already active"
            )
            return False

        if surface is None or not surface.is_valid:
            logger.warning(f"Ignoring pointer down on {target.value}: no valid display surface")
            return False

        self._enter(GestureSession(mode=TARGET_MODES[target], anchor_device_point=device_point))
        return True

    def pointer_move(
        self,
        device_point: Point2D,
        surface: Optional[SurfaceRect],
        transform: OverlayTransform,
    ) -> bool:
        """
        Apply the active mode's update rule for a pointer at device_point.

        Returns:
            True if the transform was updated. Moves while IDLE and moves with an
            unusable surface are no-ops.
        """
        if self._session is None:
            return False

        if surface is None:
            logger.warning("Ignoring pointer move: display surface not measured")
            return False

        if not (is_finite(device_point.x) and is_finite(device_point.y)):
            logger.warning(f"Ignoring pointer move at non-finite point {device_point}")
            return False

        try:
            local = device_to_local(device_point, surface.origin)
            mode = self._session.mode
            if mode == GestureMode.DRAG:
                self._apply_drag(local, surface.size, transform)
            elif mode == GestureMode.RESIZE:
                self._apply_resize(local, surface.size, transform)
            else:
                self._apply_rotate(local, surface.size, transform)
        except InvalidGeometry as e:
            logger.warning(f"Ignoring pointer move: {e.message}")
            return False

        return True

    def pointer_up(self) -> bool:
        return self._exit(EndReason.RELEASE)

    def pointer_cancel(self) -> bool:
        return self._exit(EndReason.CANCEL)

    def container_lost(self) -> bool:
        """The display container went away (unmounted or replaced)."""
        return self._exit(EndReason.CONTAINER_LOST)

    # ------------------------------------------------------------------
    # Update rules
    # ------------------------------------------------------------------

    def _apply_drag(self, local: Point2D, size: Size2D, transform: OverlayTransform) -> None:
        pct = local_to_percent(local, size)
        transform.set_position(pct.x, pct.y)
        logger.debug(f"Drag -> x={transform.x:.2f}%, y={transform.y:.2f}%")

    def _apply_resize(self, local: Point2D, size: Size2D, transform: OverlayTransform) -> None:
        center = percent_to_local(Point2D(transform.x, transform.y), size)
        scale = resize_scale(
            local.distance_to(center),
            size,
            self.resize_calibration_fraction,
            transform.limits.scale_min,
        )
        transform.set_scale(scale)
        logger.debug(f"Resize -> scale={transform.scale:.3f}")

    def _apply_rotate(self, local: Point2D, size: Size2D, transform: OverlayTransform) -> None:
        center = percent_to_local(Point2D(transform.x, transform.y), size)
        transform.set_rotation_degrees(bearing_degrees(center, local))
        logger.debug(f"Rotate -> rotation={transform.rotation:.2f} deg")

    # ------------------------------------------------------------------
    # Enter / exit actions
    # ------------------------------------------------------------------

    def _enter(self, session: GestureSession) -> None:
        self._session = session
        logger.info(
            f"Gesture started: {session.mode.value} at "
            f"({session.anchor_device_point.x:.1f}, {session.anchor_device_point.y:.1f})"
        )
        if self.on_start is not None:
            self.on_start(session.mode)

    def _exit(self, reason: EndReason) -> bool:
        if self._session is None:
            return False
        mode = self._session.mode
        self._session = None
        logger.info(f"Gesture ended: {mode.value} ({reason.value})")
        if self.on_end is not None:
            self.on_end(mode, reason)
        return True
