"""
Tests for the composite renderer: overlay sizing, placement, rotation and alpha
blending on synthetic rasters.
"""

import numpy as np
import pytest

from conftest import BLUE_BGRA, RED_BGRA, red_bbox, solid_bgra
from overlay_studio.models.transform import OverlayTransform
from overlay_studio.services.coordinates import InvalidGeometry, Point2D, Size2D
from overlay_studio.services.images import DecodedImage
from overlay_studio.services.renderer import (
    CompositeRenderer,
    RasterSurface,
    overlay_draw_size,
    overlay_matrix,
    transformed_bounds,
)


@pytest.fixture
def renderer():
    return CompositeRenderer(overlay_base_fraction=0.32)


def make_transform(x=50.0, y=50.0, scale=1.0, rotation=0.0, opacity=1.0):
    transform = OverlayTransform.create()
    transform.set_position(x, y)
    transform.set_scale(scale)
    transform.set_rotation_degrees(rotation)
    transform.set_opacity(opacity)
    return transform


def render(renderer, base, overlay, transform, size=None):
    width, height = size or (base.width, base.height)
    dest = RasterSurface(width, height)
    renderer.render(dest, base, overlay, transform)
    return dest.pixels


class TestOverlayDrawSize:
    """Tests for overlay_draw_size."""

    def test_square_overlay(self):
        assert overlay_draw_size(Size2D(200, 100), 1.0, 1.0, 0.32) == pytest.approx((32.0, 32.0))

    def test_wide_overlay_keeps_aspect(self):
        assert overlay_draw_size(Size2D(200, 100), 2.0, 1.0, 0.32) == pytest.approx((32.0, 16.0))

    def test_scale_multiplies_width(self):
        w, _ = overlay_draw_size(Size2D(1000, 800), 1.0, 2.5, 0.32)
        assert w == pytest.approx(640.0)


class TestOverlayMatrix:
    """The affine matrix places the overlay centered on the target point."""

    def test_unrotated_bounds(self):
        matrix = overlay_matrix(Point2D(100, 50), 0.0, (32.0, 32.0), (64, 64))
        min_x, min_y, max_x, max_y = transformed_bounds(matrix, 64, 64)

        # Pixel-index space: continuous [84, 116) becomes [83.5, 115.5]
        assert (min_x, min_y) == pytest.approx((83.5, 33.5))
        assert (max_x, max_y) == pytest.approx((115.5, 65.5))

    def test_quarter_turn_swaps_extents(self):
        matrix = overlay_matrix(Point2D(100, 50), 90.0, (32.0, 16.0), (64, 32))
        min_x, min_y, max_x, max_y = transformed_bounds(matrix, 64, 32)

        assert max_x - min_x == pytest.approx(16.0)
        assert max_y - min_y == pytest.approx(32.0)


class TestRasterSurface:
    """Tests for RasterSurface allocation."""

    def test_allocates_transparent(self):
        surface = RasterSurface(20, 10)
        assert surface.pixels.shape == (10, 20, 4)
        assert not surface.pixels.any()

    @pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-5, 5)])
    def test_rejects_empty(self, width, height):
        with pytest.raises(InvalidGeometry):
            RasterSurface(width, height)


class TestRender:
    """End-to-end rendering of base + overlay."""

    def test_centered_overlay(self, renderer, base_image, overlay_image):
        """200x100 base, default transform: 32x32 overlay centered at (100, 50)."""
        pixels = render(renderer, base_image, overlay_image, make_transform())

        x0, y0, x1, y1 = red_bbox(pixels)
        assert (x0, y0, x1, y1) == (84, 34, 115, 65)
        assert (x0 + x1 + 1) / 2 == 100
        assert (y0 + y1 + 1) / 2 == 50

    def test_base_visible_outside_overlay(self, renderer, base_image, overlay_image):
        pixels = render(renderer, base_image, overlay_image, make_transform())

        assert tuple(pixels[5, 5]) == BLUE_BGRA
        assert tuple(pixels[95, 195]) == BLUE_BGRA
        assert tuple(pixels[50, 100]) == RED_BGRA

    def test_position_uses_percentages(self, renderer, base_image, overlay_image):
        pixels = render(renderer, base_image, overlay_image, make_transform(x=25, y=25))

        x0, y0, x1, y1 = red_bbox(pixels)
        assert (x0 + x1 + 1) / 2 == 50
        assert (y0 + y1 + 1) / 2 == 25

    def test_scale_doubles_size(self, renderer, base_image, overlay_image):
        pixels = render(renderer, base_image, overlay_image, make_transform(scale=2.0))

        x0, y0, x1, y1 = red_bbox(pixels)
        assert x1 - x0 + 1 == 64
        assert y1 - y0 + 1 == 64

    def test_rotation_applies_after_sizing(self, renderer, base_image):
        """A wide overlay turned 90 degrees becomes tall without shearing."""
        wide = DecodedImage.from_array(solid_bgra(64, 32, RED_BGRA))

        pixels = render(renderer, base_image, wide, make_transform(rotation=90))

        x0, y0, x1, y1 = red_bbox(pixels)
        assert x1 - x0 + 1 == pytest.approx(16, abs=1)
        assert y1 - y0 + 1 == pytest.approx(32, abs=1)

    def test_full_turn_is_identity(self, renderer, base_image, overlay_image):
        a = render(renderer, base_image, overlay_image, make_transform(rotation=30))
        b = render(renderer, base_image, overlay_image, make_transform(rotation=390))
        c = render(renderer, base_image, overlay_image, make_transform(rotation=-330))

        for other in (b, c):
            diff = np.abs(a.astype(int) - other.astype(int))
            assert diff.mean() < 0.01

    def test_opacity_blends_with_base(self, renderer, base_image, overlay_image):
        pixels = render(renderer, base_image, overlay_image, make_transform(opacity=0.5))

        blue, green, red, alpha = (int(v) for v in pixels[50, 100])
        assert red == pytest.approx(128, abs=2)
        assert blue == pytest.approx(128, abs=2)
        assert green == 0
        assert alpha == 255

    def test_transparent_overlay_pixels_leave_base(self, renderer, base_image):
        overlay = solid_bgra(64, 64, RED_BGRA)
        overlay[:, :32, 3] = 0  # left half fully transparent
        pixels = render(renderer, base_image, DecodedImage.from_array(overlay), make_transform())

        assert tuple(pixels[50, 90]) == BLUE_BGRA
        assert tuple(pixels[50, 110]) == RED_BGRA

    def test_base_stretched_to_destination(self, renderer, overlay_image):
        """The base fills the destination even when sizes differ."""
        base = solid_bgra(200, 100, BLUE_BGRA)
        base[:, 100:] = (0, 255, 0, 255)  # right half green
        pixels = render(
            renderer, DecodedImage.from_array(base), overlay_image,
            make_transform(x=0, y=0, scale=0.2), size=(100, 50),
        )

        assert pixels.shape == (50, 100, 4)
        assert tuple(pixels[25, 10]) == BLUE_BGRA
        assert tuple(pixels[25, 90]) == (0, 255, 0, 255)

    def test_overlay_partly_outside_is_clipped(self, renderer, base_image, overlay_image):
        pixels = render(renderer, base_image, overlay_image, make_transform(x=0, y=0))

        x0, y0, x1, y1 = red_bbox(pixels)
        assert (x0, y0) == (0, 0)
        assert (x1, y1) == (15, 15)

    def test_render_clears_previous_contents(self, renderer, base_image, overlay_image):
        dest = RasterSurface(200, 100)
        renderer.render(dest, base_image, overlay_image, make_transform(x=10, y=10))
        renderer.render(dest, base_image, overlay_image, make_transform(x=90, y=90))

        x0, y0, _, _ = red_bbox(dest.pixels)
        assert x0 > 100
        assert y0 > 50
