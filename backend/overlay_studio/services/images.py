"""
Image resource loading and PNG encoding.

An image resource is raw bytes, a local path, an http(s) URL or a data: URL.
Every resource is decoded to an 8-bit BGRA array so the renderer only deals
with one pixel layout.
"""

import asyncio
import base64
import binascii
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import cv2
import httpx
import numpy as np
from PIL import Image

from overlay_studio.config import settings

logger = logging.getLogger(__name__)


class DecodeError(Exception):
    """Image resource is unreachable, unreadable or corrupt."""
    def __init__(self, code: str, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


@dataclass
class DecodedImage:
    """Decoded image: dimensions plus BGRA pixels."""
    width: int
    height: int
    pixels: np.ndarray  # (height, width, 4) uint8 BGRA

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "DecodedImage":
        bgra = to_bgra(pixels)
        h, w = bgra.shape[:2]
        return cls(width=w, height=h, pixels=bgra)


ImageSource = Union[bytes, bytearray, str, Path, DecodedImage]


def to_bgra(image: np.ndarray) -> np.ndarray:
    """Normalize a grayscale/BGR/BGRA array of any common depth to uint8 BGRA."""
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)
    elif image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if channels == 4:
        return np.ascontiguousarray(image)
    raise ValueError(f"Unsupported channel count: {channels}")


def decode_image_bytes(content: bytes, label: str = "image") -> DecodedImage:
    """
    Decode encoded image bytes (PNG, JPEG, WebP, BMP, ...).

    Raises:
        DecodeError: If the bytes are empty or not a decodable image
    """
    if not content:
        raise DecodeError(
            code="DECODE_FAILED",
            message=f"Image '{label}' is empty",
            details={"source": label},
        )

    nparr = np.frombuffer(content, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)

    if image is None:
        raise DecodeError(
            code="DECODE_FAILED",
            message=f"Image '{label}' is not a readable image",
            details={"source": label, "size_bytes": len(content)},
        )

    try:
        decoded = DecodedImage.from_array(image)
    except ValueError as e:
        raise DecodeError(
            code="DECODE_FAILED",
            message=f"Image '{label}' has an unsupported pixel layout: {e}",
            details={"source": label},
        )

    if decoded.width == 0 or decoded.height == 0:
        raise DecodeError(
            code="DECODE_FAILED",
            message=f"Image '{label}' has no pixels",
            details={"source": label},
        )

    return decoded


def decode_data_url(url: str) -> bytes:
    """Extract the payload of a base64 data: URL."""
    header, _, payload = url.partition(",")
    if not payload or ";base64" not in header:
        raise DecodeError(
            code="DECODE_FAILED",
            message="Only base64-encoded data URLs are supported",
            details={"source": header[:64]},
        )
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(
            code="DECODE_FAILED",
            message=f"Data URL payload is not valid base64: {e}",
            details={"source": header[:64]},
        )


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode a BGRA (or BGR) array as PNG bytes."""
    if pixels.shape[2] == 4:
        rgba = cv2.cvtColor(pixels, cv2.COLOR_BGRA2RGBA)
    else:
        rgba = cv2.cvtColor(pixels, cv2.COLOR_BGR2RGB)

    pil_image = Image.fromarray(rgba)

    buffer = io.BytesIO()
    pil_image.save(buffer, format="PNG")
    return buffer.getvalue()


def describe_source(source: ImageSource) -> str:
    """Short human-readable label for log and error messages."""
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if isinstance(source, DecodedImage):
        return f"<decoded {source.width}x{source.height}>"
    text = str(source)
    if text.startswith("data:"):
        return text[:32] + "..."
    return text


class ImageLoader:
    """Resolves image resources and decodes them off the event loop."""

    def __init__(self, timeout_s: float = None):
        self.timeout_s = timeout_s or settings.fetch_timeout_s

    async def fetch(self, url: str) -> bytes:
        """Download an http(s) resource."""
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(url, follow_redirects=True, timeout=self.timeout_s)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise DecodeError(
                    code="FETCH_FAILED",
                    message=f"Image server returned {e.response.status_code} for {url}",
                    details={"source": url, "status_code": e.response.status_code},
                )
            except httpx.RequestError as e:
                raise DecodeError(
                    code="FETCH_FAILED",
                    message=f"Failed to fetch image {url}: {e}",
                    details={"source": url},
                )
        return response.content

    async def read_bytes(self, source: ImageSource) -> bytes:
        """Resolve a non-decoded resource to its encoded bytes."""
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)

        text = str(source)
        if isinstance(source, str):
            if text.startswith("data:"):
                return decode_data_url(text)
            if text.startswith(("http://", "https://")):
                return await self.fetch(text)

        path = Path(source)
        if not path.is_file():
            raise DecodeError(
                code="SOURCE_NOT_FOUND",
                message=f"Image file not found: {path}",
                details={"source": str(path)},
            )
        return await asyncio.to_thread(path.read_bytes)

    async def load(self, source: ImageSource) -> DecodedImage:
        """
        Decode an image resource.

        Raises:
            DecodeError: If the resource cannot be reached or decoded
        """
        if isinstance(source, DecodedImage):
            return source

        label = describe_source(source)
        content = await self.read_bytes(source)
        decoded = await asyncio.to_thread(decode_image_bytes, content, label)
        logger.debug(f"Decoded {label}: {decoded.width}x{decoded.height}")
        return decoded


# Global loader instance
image_loader = ImageLoader()
