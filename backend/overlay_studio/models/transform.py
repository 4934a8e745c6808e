"""
Overlay transform model.

Holds the five-field placement of the overlay on the base image:
- x, y: overlay center as a percentage of the base image display area (0-100)
- scale: multiplier applied to the nominal overlay size
- rotation: degrees, stored raw (equivalent modulo 360)
- opacity: overlay alpha

Every setter is total: out-of-range values are clamped, non-finite values are
ignored and the previous value is kept.
"""

import logging
import math

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationInfo, model_validator

from overlay_studio.config import Settings, settings

logger = logging.getLogger(__name__)


POSITION_MIN = 0.0
POSITION_MAX = 100.0
DEFAULT_POSITION = 50.0
DEFAULT_SCALE = 1.0
DEFAULT_ROTATION = 0.0


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def is_finite(value) -> bool:
    """True for real, finite numbers (rejects NaN, +/-inf and non-numbers)."""
    try:
        return math.isfinite(value)
    except TypeError:
        return False


class TransformLimits(BaseModel):
    """Value bounds enforced by OverlayTransform."""
    scale_min: float = 0.2
    scale_max: float = 4.0
    opacity_min: float = 0.1
    opacity_max: float = 1.0
    default_opacity: float = 0.95

    @classmethod
    def from_settings(cls, config: Settings = None) -> "TransformLimits":
        config = config or settings
        return cls(
            scale_min=config.scale_min,
            scale_max=config.scale_max,
            opacity_min=config.opacity_min,
            opacity_max=config.opacity_max,
            default_opacity=config.default_opacity,
        )


class OverlayTransform(BaseModel):
    """Current overlay transform for one editing session."""

    model_config = ConfigDict(validate_assignment=True)

    x: float = Field(
        default=DEFAULT_POSITION, ge=POSITION_MIN, le=POSITION_MAX, allow_inf_nan=False,
        description="Overlay center X as percentage of display width",
    )
    y: float = Field(
        default=DEFAULT_POSITION, ge=POSITION_MIN, le=POSITION_MAX, allow_inf_nan=False,
        description="Overlay center Y as percentage of display height",
    )
    scale: float = Field(
        default=DEFAULT_SCALE, gt=0.0, allow_inf_nan=False,
        description="Multiplier applied to the nominal overlay size",
    )
    rotation: float = Field(
        default=DEFAULT_ROTATION, allow_inf_nan=False,
        description="Rotation in degrees (clockwise on screen, not normalized)",
    )
    opacity: float = Field(
        default=0.95, gt=0.0, le=1.0, allow_inf_nan=False,
        description="Overlay opacity",
    )

    _limits: TransformLimits = PrivateAttr(default_factory=TransformLimits.from_settings)

    @model_validator(mode="after")
    def check_limits(self, info: ValidationInfo) -> "OverlayTransform":
        """Scale and opacity must lie within the bound limits, also on direct assignment."""
        limits = self._bound_limits(info)
        if not limits.scale_min <= self.scale <= limits.scale_max:
            raise ValueError(
                f"scale {self.scale} is outside [{limits.scale_min}, {limits.scale_max}]"
            )
        if not limits.opacity_min <= self.opacity <= limits.opacity_max:
            raise ValueError(
                f"opacity {self.opacity} is outside [{limits.opacity_min}, {limits.opacity_max}]"
            )
        return self

    def _bound_limits(self, info: ValidationInfo) -> TransformLimits:
        # Construction may pass limits in the context; private attrs are not set yet then
        context = info.context or {}
        if "limits" in context:
            return context["limits"]
        private = getattr(self, "__pydantic_private__", None)
        if private and "_limits" in private:
            return private["_limits"]
        return TransformLimits.from_settings()

    @classmethod
    def create(cls, limits: TransformLimits = None) -> "OverlayTransform":
        """Create a transform at its defaults, bound to the given limits."""
        limits = limits or TransformLimits.from_settings()
        transform = cls.model_validate(
            {
                "scale": clamp(DEFAULT_SCALE, limits.scale_min, limits.scale_max),
                "opacity": limits.default_opacity,
            },
            context={"limits": limits},
        )
        transform._limits = limits
        return transform

    @property
    def limits(self) -> TransformLimits:
        return self._limits

    @property
    def normalized_rotation(self) -> float:
        """Rotation mapped into [0, 360)."""
        return self.rotation % 360.0

    def reset(self) -> None:
        """Return every field to its default."""
        self.x = DEFAULT_POSITION
        self.y = DEFAULT_POSITION
        self.scale = clamp(DEFAULT_SCALE, self._limits.scale_min, self._limits.scale_max)
        self.rotation = DEFAULT_ROTATION
        self.opacity = self._limits.default_opacity

    def set_position(self, x_pct: float, y_pct: float) -> None:
        """Move the overlay center; each component is clamped to [0, 100]."""
        if is_finite(x_pct):
            self.x = clamp(float(x_pct), POSITION_MIN, POSITION_MAX)
        else:
            logger.warning(f"Ignoring non-finite x position: {x_pct}")
        if is_finite(y_pct):
            self.y = clamp(float(y_pct), POSITION_MIN, POSITION_MAX)
        else:
            logger.warning(f"Ignoring non-finite y position: {y_pct}")

    def set_scale(self, value: float) -> None:
        if not is_finite(value):
            logger.warning(f"Ignoring non-finite scale: {value}")
            return
        self.scale = clamp(float(value), self._limits.scale_min, self._limits.scale_max)

    def set_rotation_degrees(self, angle: float) -> None:
        """Store the raw angle; callers may normalize for display."""
        if not is_finite(angle):
            logger.warning(f"Ignoring non-finite rotation: {angle}")
            return
        self.rotation = float(angle)

    def set_opacity(self, value: float) -> None:
        if not is_finite(value):
            logger.warning(f"Ignoring non-finite opacity: {value}")
            return
        self.opacity = clamp(float(value), self._limits.opacity_min, self._limits.opacity_max)

    def snapshot(self) -> "OverlayTransform":
        """Independent copy; later edits to self do not affect it."""
        return self.model_copy(deep=True)
