"""
Shared fixtures for Overlay Studio tests.

Images are generated on the fly with numpy/cv2 so no binary assets are needed.
"""

import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

# Ensure backend/ is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from overlay_studio.config import settings
from overlay_studio.services.images import DecodedImage


BLUE_BGRA = (255, 0, 0, 255)
RED_BGRA = (0, 0, 255, 255)


def solid_bgra(width: int, height: int, color=BLUE_BGRA) -> np.ndarray:
    """Solid-color BGRA array."""
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :] = color
    return image


def png_bytes(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok, "PNG encoding failed"
    return buffer.tobytes()


def decode_png(content: bytes) -> np.ndarray:
    """Decode PNG bytes to a BGRA array."""
    image = cv2.imdecode(np.frombuffer(content, np.uint8), cv2.IMREAD_UNCHANGED)
    assert image is not None, "Not a decodable image"
    return image


def red_bbox(image: np.ndarray):
    """(min_x, min_y, max_x, max_y) of pixels that are mostly red, or None."""
    mask = (image[:, :, 2] > 128) & (image[:, :, 0] < 128)
    ys, xs = np.nonzero(mask)
    if len(xs) == 0:
        return None
    return int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max())


@pytest.fixture
def base_png():
    """200x100 solid blue base photo (PNG bytes)."""
    return png_bytes(solid_bgra(200, 100, BLUE_BGRA))


@pytest.fixture
def base_image():
    """200x100 solid blue base photo (decoded)."""
    return DecodedImage.from_array(solid_bgra(200, 100, BLUE_BGRA))


@pytest.fixture
def overlay_image():
    """64x64 opaque red square overlay (decoded)."""
    return DecodedImage.from_array(solid_bgra(64, 64, RED_BGRA))


@pytest.fixture
def overlay_png():
    """64x64 opaque red square overlay (PNG bytes)."""
    return png_bytes(solid_bgra(64, 64, RED_BGRA))


@pytest.fixture
def overlay_asset(tmp_path, overlay_png, monkeypatch):
    """Write the overlay to disk and point the settings at it."""
    path = tmp_path / "overlay.png"
    path.write_bytes(overlay_png)
    monkeypatch.setattr(settings, "overlay_asset", str(path))
    return path
