"""
Business logic services.
"""

from overlay_studio.services.coordinates import (
    Point2D,
    Size2D,
    SurfaceRect,
    InvalidGeometry,
    device_to_local,
    local_to_percent,
    percent_to_local,
    percent_to_raster_pixels,
)
from overlay_studio.services.gesture import GestureController, GestureSession
from overlay_studio.services.images import DecodedImage, DecodeError, ImageLoader
from overlay_studio.services.renderer import CompositeRenderer, RasterSurface
from overlay_studio.services.export import ExportPipeline, ExportResult
from overlay_studio.services.preview import preview_style
from overlay_studio.services.editor import EditorSession, EditorSessionStore

__all__ = [
    "Point2D",
    "Size2D",
    "SurfaceRect",
    "InvalidGeometry",
    "device_to_local",
    "local_to_percent",
    "percent_to_local",
    "percent_to_raster_pixels",
    "GestureController",
    "GestureSession",
    "DecodedImage",
    "DecodeError",
    "ImageLoader",
    "CompositeRenderer",
    "RasterSurface",
    "ExportPipeline",
    "ExportResult",
    "preview_style",
    "EditorSession",
    "EditorSessionStore",
]
