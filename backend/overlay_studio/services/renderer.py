"""
Composite renderer: paints the base image and the transformed overlay into a
destination raster.

Paint order is fixed:
1. clear the destination
2. draw the base image stretched to the destination size
3. size the overlay from the destination's shorter side and the transform scale
4. locate the overlay center from the transform percentages
5. translate to center -> rotate -> draw overlay centered at the origin with alpha

Scale is folded into the overlay's draw size, so rotation always acts on the
already-sized overlay and never shears a non-square asset.
"""

import logging
import math
from typing import Tuple

import cv2
import numpy as np

from overlay_studio.config import settings
from overlay_studio.models.transform import OverlayTransform
from overlay_studio.services.coordinates import (
    InvalidGeometry,
    Point2D,
    Size2D,
    percent_to_raster_pixels,
)
from overlay_studio.services.images import DecodedImage

logger = logging.getLogger(__name__)


class RasterSurface:
    """Destination raster (BGRA, straight alpha) owned by a single render/export."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise InvalidGeometry(
                code="INVALID_GEOMETRY",
                message=f"Cannot allocate a {width}x{height} raster",
                details={"width": width, "height": height},
            )
        self.width = int(width)
        self.height = int(height)
        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    @property
    def size(self) -> Size2D:
        return Size2D(self.width, self.height)

    def clear(self) -> None:
        """Reset every pixel to transparent black."""
        self.pixels[:] = 0


def overlay_draw_size(
    dest_size: Size2D,
    overlay_aspect_ratio: float,
    scale: float,
    base_fraction: float,
) -> Tuple[float, float]:
    """
    Overlay draw width/height on a destination of dest_size.

    width = min(dest) * base_fraction * scale, height follows the overlay's
    aspect ratio (width / height).
    """
    draw_w = dest_size.min_side * base_fraction * scale
    draw_h = draw_w / overlay_aspect_ratio
    return draw_w, draw_h


def overlay_matrix(
    center: Point2D,
    rotation_deg: float,
    draw_size: Tuple[float, float],
    overlay_size: Tuple[int, int],
) -> np.ndarray:
    """
    2x3 affine matrix mapping overlay pixel indices to destination pixel indices.

    In continuous coordinates (pixel i spans [i, i+1)):
        p = center + R(rotation) * (S * q - draw_size / 2)
    with S the overlay-to-draw-size scale. The half-pixel shift converts to the
    pixel-center convention used by cv2.warpAffine.
    """
    draw_w, draw_h = draw_size
    overlay_w, overlay_h = overlay_size
    theta = math.radians(rotation_deg)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)

    rotation = np.array([[cos_t, -sin_t], [sin_t, cos_t]], dtype=np.float64)
    scaling = np.diag([draw_w / overlay_w, draw_h / overlay_h])
    linear = rotation @ scaling

    offset = np.array([center.x, center.y]) - rotation @ np.array([draw_w / 2.0, draw_h / 2.0])
    # Pixel-center correction: p_idx = p - 0.5, q = q_idx + 0.5
    offset = offset + linear @ np.array([0.5, 0.5]) - np.array([0.5, 0.5])

    return np.hstack([linear, offset.reshape(2, 1)])


def transformed_bounds(matrix: np.ndarray, width: int, height: int) -> Tuple[float, float, float, float]:
    """
    Axis-aligned bounds of a width x height image after the affine matrix.

    Returns: (min_x, min_y, max_x, max_y) in destination pixel indices
    """
    corners = np.array([
        [-0.5, -0.5],
        [width - 0.5, -0.5],
        [width - 0.5, height - 0.5],
        [-0.5, height - 0.5],
    ])
    mapped = corners @ matrix[:, :2].T + matrix[:, 2]
    xs = mapped[:, 0]
    ys = mapped[:, 1]
    return float(xs.min()), float(ys.min()), float(xs.max()), float(ys.max())


def composite_over(
    dest: np.ndarray,
    source: np.ndarray,
    matrix: np.ndarray,
    opacity: float,
) -> None:
    """
    Warp a BGRA source with `matrix` and blend it source-over onto dest in place.

    Only the region the warped source can touch is processed. Colors are
    premultiplied before warping so interpolated edges do not darken.
    """
    dest_h, dest_w = dest.shape[:2]
    src_h, src_w = source.shape[:2]

    min_x, min_y, max_x, max_y = transformed_bounds(matrix, src_w, src_h)
    x0 = max(0, int(math.floor(min_x)) - 1)
    y0 = max(0, int(math.floor(min_y)) - 1)
    x1 = min(dest_w, int(math.ceil(max_x)) + 2)
    y1 = min(dest_h, int(math.ceil(max_y)) + 2)

    if x0 >= x1 or y0 >= y1:
        logger.debug("Overlay lies entirely outside the destination")
        return

    # Shift the matrix into the region of interest
    roi_matrix = matrix.copy()
    roi_matrix[0, 2] -= x0
    roi_matrix[1, 2] -= y0

    src = source.astype(np.float32) / 255.0
    src[:, :, :3] *= src[:, :, 3:4]

    warped = cv2.warpAffine(
        src,
        roi_matrix,
        (x1 - x0, y1 - y0),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )

    alpha_src = warped[:, :, 3:4] * opacity
    rgb_src = warped[:, :, :3] * opacity

    region = dest[y0:y1, x0:x1].astype(np.float32) / 255.0
    alpha_dst = region[:, :, 3:4]
    rgb_dst = region[:, :, :3] * alpha_dst

    alpha_out = alpha_src + alpha_dst * (1.0 - alpha_src)
    rgb_out = rgb_src + rgb_dst * (1.0 - alpha_src)
    safe_alpha = np.where(alpha_out > 0, alpha_out, 1.0)
    rgb_out = np.where(alpha_out > 0, rgb_out / safe_alpha, 0.0)

    result = np.concatenate([rgb_out, alpha_out], axis=2)
    dest[y0:y1, x0:x1] = np.rint(np.clip(result, 0.0, 1.0) * 255.0).astype(np.uint8)


class CompositeRenderer:
    """Paints base + overlay into a RasterSurface using a fixed transform order."""

    def __init__(self, overlay_base_fraction: float = None):
        self.overlay_base_fraction = overlay_base_fraction or settings.overlay_base_fraction

    def draw_base(self, dest: RasterSurface, base_image: DecodedImage) -> None:
        """Draw the base image at (0, 0) stretched to fill the destination."""
        if (base_image.width, base_image.height) == (dest.width, dest.height):
            dest.pixels[:] = base_image.pixels
            return

        shrinking = dest.width < base_image.width or dest.height < base_image.height
        resized = cv2.resize(
            base_image.pixels,
            (dest.width, dest.height),
            interpolation=cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR,
        )
        dest.pixels[:] = resized

    def render(
        self,
        dest: RasterSurface,
        base_image: DecodedImage,
        overlay_image: DecodedImage,
        transform: OverlayTransform,
    ) -> None:
        """Paint base_image and the transformed overlay_image into dest."""
        dest.clear()
        self.draw_base(dest, base_image)

        draw_w, draw_h = overlay_draw_size(
            dest.size, overlay_image.aspect_ratio, transform.scale, self.overlay_base_fraction
        )
        center = percent_to_raster_pixels(Point2D(transform.x, transform.y), dest.size)

        matrix = overlay_matrix(
            center,
            transform.rotation,
            (draw_w, draw_h),
            (overlay_image.width, overlay_image.height),
        )

        logger.debug(
            f"Rendering overlay {draw_w:.1f}x{draw_h:.1f} at ({center.x:.1f}, {center.y:.1f}) "
            f"rotation={transform.rotation:.2f} opacity={transform.opacity:.2f} "
            f"on {dest.width}x{dest.height}"
        )

        composite_over(dest.pixels, overlay_image.pixels, matrix, transform.opacity)


# Global renderer instance
composite_renderer = CompositeRenderer()
