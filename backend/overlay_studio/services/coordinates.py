"""
Coordinate space conversions.

Three spaces are involved:
- device: pointer coordinates in page/client pixels
- local: pixels relative to the display surface's top-left corner
- percent: 0-100 of the surface (or raster) width/height

Percent is the only space stored in the transform, so the same value maps onto
the preview surface and onto the full-resolution export raster.
"""

import math
from dataclasses import dataclass


class InvalidGeometry(Exception):
    """Display surface or raster has no usable area."""
    def __init__(self, code: str, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


@dataclass(frozen=True)
class Point2D:
    """A 2D point."""
    x: float
    y: float

    def distance_to(self, other: "Point2D") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Size2D:
    """Width/height pair in pixels."""
    width: float
    height: float

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.width) and math.isfinite(self.height)
            and self.width > 0 and self.height > 0
        )

    @property
    def min_side(self) -> float:
        return min(self.width, self.height)


@dataclass(frozen=True)
class SurfaceRect:
    """
    On-screen rectangle occupied by the rendered base image.

    Maintained by the client; refreshed on container resize and on image load.
    """
    left: float
    top: float
    width: float
    height: float

    @property
    def origin(self) -> Point2D:
        return Point2D(self.left, self.top)

    @property
    def size(self) -> Size2D:
        return Size2D(self.width, self.height)

    @property
    def is_valid(self) -> bool:
        return math.isfinite(self.left) and math.isfinite(self.top) and self.size.is_valid


def _require_valid(size: Size2D) -> None:
    if not size.is_valid:
        raise InvalidGeometry(
            code="INVALID_GEOMETRY",
            message=f"Surface has no usable area: {size.width}x{size.height}",
            details={"width": size.width, "height": size.height},
        )


def device_to_local(device_point: Point2D, surface_origin: Point2D) -> Point2D:
    """Express a device point relative to the surface's top-left corner."""
    return Point2D(device_point.x - surface_origin.x, device_point.y - surface_origin.y)


def local_to_percent(local_point: Point2D, surface_size: Size2D) -> Point2D:
    """
    Convert surface-local pixels to percentages.

    Points outside the surface saturate at the nearest edge (0 or 100).

    Raises:
        InvalidGeometry: If the surface has zero/negative/non-finite size
    """
    _require_valid(surface_size)
    x_pct = local_point.x / surface_size.width * 100.0
    y_pct = local_point.y / surface_size.height * 100.0
    return Point2D(max(0.0, min(100.0, x_pct)), max(0.0, min(100.0, y_pct)))


def percent_to_local(percent_point: Point2D, surface_size: Size2D) -> Point2D:
    """Inverse of local_to_percent for in-range percentages."""
    _require_valid(surface_size)
    return Point2D(
        percent_point.x / 100.0 * surface_size.width,
        percent_point.y / 100.0 * surface_size.height,
    )


def percent_to_raster_pixels(percent_point: Point2D, raster_size: Size2D) -> Point2D:
    """
    Map percentages onto a destination raster.

    Same formula as percent_to_local, parameterized by the export raster's
    dimensions rather than the preview surface's.
    """
    return percent_to_local(percent_point, raster_size)
