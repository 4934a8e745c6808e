"""
CSS-equivalent placement of the overlay for the live preview.

The preview element is positioned by percentages and sized with the same
formula the renderer uses, so the preview matches the exported raster at any
surface size.
"""

from typing import Optional

from overlay_studio.config import settings
from overlay_studio.models.responses import PreviewStyle
from overlay_studio.models.transform import OverlayTransform
from overlay_studio.services.coordinates import SurfaceRect


def preview_style(
    transform: OverlayTransform,
    surface: Optional[SurfaceRect],
    base_fraction: float = None,
) -> PreviewStyle:
    """
    Build the preview placement for the overlay element.

    Width is in surface pixels; height is left to the overlay's aspect ratio.
    Without a usable surface the width is unknown and reported as None.
    """
    base_fraction = base_fraction or settings.overlay_base_fraction

    width_px = None
    if surface is not None and surface.is_valid:
        width_px = surface.size.min_side * base_fraction * transform.scale

    return PreviewStyle(
        left_pct=transform.x,
        top_pct=transform.y,
        width_px=width_px,
        css_transform=f"translate(-50%, -50%) rotate({transform.rotation:g}deg)",
        opacity=transform.opacity,
    )
