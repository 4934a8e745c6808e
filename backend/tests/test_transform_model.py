"""
Unit tests for the overlay transform model - setters clamp, ignore non-finite
values and keep the invariants.
"""

import math

import pytest
from pydantic import ValidationError

from overlay_studio.models.transform import OverlayTransform, TransformLimits


@pytest.fixture
def transform():
    return OverlayTransform.create()


class TestDefaults:
    """Tests for initial and reset values."""

    def test_created_at_defaults(self, transform):
        """New transform is centered, unscaled, unrotated, at default opacity."""
        assert transform.x == 50.0
        assert transform.y == 50.0
        assert transform.scale == 1.0
        assert transform.rotation == 0.0
        assert transform.opacity == 0.95

    def test_reset_restores_defaults(self, transform):
        transform.set_position(10, 90)
        transform.set_scale(3.0)
        transform.set_rotation_degrees(123)
        transform.set_opacity(0.3)

        transform.reset()

        assert (transform.x, transform.y) == (50.0, 50.0)
        assert transform.scale == 1.0
        assert transform.rotation == 0.0
        assert transform.opacity == 0.95

    def test_custom_limits(self):
        """Limits come from the supplied TransformLimits."""
        limits = TransformLimits(scale_min=0.5, scale_max=2.0, default_opacity=0.5)
        transform = OverlayTransform.create(limits)

        assert transform.opacity == 0.5
        transform.set_scale(10)
        assert transform.scale == 2.0
        transform.set_scale(0.01)
        assert transform.scale == 0.5


class TestPosition:
    """Tests for set_position."""

    @pytest.mark.parametrize("x, y", [(0, 0), (100, 100), (12.5, 87.25), (50, 0)])
    def test_in_range_values_read_back_exactly(self, transform, x, y):
        transform.set_position(x, y)
        assert transform.x == x
        assert transform.y == y

    def test_out_of_range_components_clamp_independently(self, transform):
        transform.set_position(-20, 150)
        assert transform.x == 0.0
        assert transform.y == 100.0

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_component_keeps_previous_value(self, transform, bad):
        transform.set_position(30, 40)

        transform.set_position(bad, 60)

        assert transform.x == 30.0
        assert transform.y == 60.0


class TestScale:
    """Tests for set_scale."""

    def test_clamps_to_bounds(self, transform):
        transform.set_scale(0.01)
        assert transform.scale == 0.2

        transform.set_scale(25)
        assert transform.scale == 4.0

    def test_in_range(self, transform):
        transform.set_scale(1.75)
        assert transform.scale == 1.75

    def test_nan_ignored(self, transform):
        transform.set_scale(2.0)
        transform.set_scale(math.nan)
        assert transform.scale == 2.0


class TestRotation:
    """Tests for set_rotation_degrees."""

    def test_stored_raw(self, transform):
        """Rotation is not normalized on store."""
        transform.set_rotation_degrees(450)
        assert transform.rotation == 450.0
        assert transform.normalized_rotation == pytest.approx(90.0)

    def test_negative_normalizes_into_range(self, transform):
        transform.set_rotation_degrees(-90)
        assert transform.rotation == -90.0
        assert transform.normalized_rotation == pytest.approx(270.0)

    def test_infinite_ignored(self, transform):
        transform.set_rotation_degrees(15)
        transform.set_rotation_degrees(math.inf)
        assert transform.rotation == 15.0


class TestOpacity:
    """Tests for set_opacity."""

    def test_clamps_to_bounds(self, transform):
        transform.set_opacity(0.0)
        assert transform.opacity == 0.1

        transform.set_opacity(2.0)
        assert transform.opacity == 1.0

    def test_nan_ignored(self, transform):
        transform.set_opacity(math.nan)
        assert transform.opacity == 0.95


class TestInvariants:
    """Direct assignment is validated; snapshots are independent."""

    def test_direct_assignment_out_of_range_rejected(self, transform):
        with pytest.raises(ValidationError):
            transform.x = 150

    def test_direct_assignment_nan_rejected(self, transform):
        with pytest.raises(ValidationError):
            transform.rotation = math.nan

    def test_direct_scale_above_max_rejected(self, transform):
        with pytest.raises(ValidationError):
            transform.scale = 50.0
        assert transform.scale == 1.0

    def test_direct_opacity_below_min_rejected(self, transform):
        with pytest.raises(ValidationError):
            transform.opacity = 0.01
        assert transform.opacity == 0.95

    @pytest.mark.parametrize("values", [{"scale": 100.0}, {"scale": 0.05}, {"opacity": 0.001}])
    def test_construction_out_of_bounds_rejected(self, values):
        with pytest.raises(ValidationError):
            OverlayTransform(**values)

    def test_direct_assignment_uses_bound_limits(self):
        """Custom limits apply to direct writes, including ones wider than the settings."""
        transform = OverlayTransform.create(TransformLimits(scale_max=10.0))

        transform.scale = 8.0
        assert transform.scale == 8.0

        with pytest.raises(ValidationError):
            transform.scale = 12.0

    def test_custom_limits_bind_at_creation(self):
        limits = TransformLimits(scale_min=2.0, scale_max=3.0, opacity_min=0.5, default_opacity=0.6)
        transform = OverlayTransform.create(limits)

        assert transform.scale == 2.0
        assert transform.opacity == 0.6
        with pytest.raises(ValidationError):
            transform.opacity = 0.3

    def test_snapshot_is_independent(self, transform):
        transform.set_position(20, 30)
        snapshot = transform.snapshot()

        transform.set_position(80, 90)
        transform.set_scale(3.0)

        assert (snapshot.x, snapshot.y) == (20.0, 30.0)
        assert snapshot.scale == 1.0

    def test_snapshot_keeps_limits(self):
        limits = TransformLimits(scale_max=2.0)
        snapshot = OverlayTransform.create(limits).snapshot()

        snapshot.set_scale(10)

        assert snapshot.scale == 2.0
