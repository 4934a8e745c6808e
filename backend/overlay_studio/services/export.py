"""
Export pipeline: decode base and overlay, composite at the base image's native
resolution and serialize to PNG.

Each export takes its own transform snapshot and allocates its own raster, so
concurrent exports never share mutable state.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from overlay_studio.config import settings
from overlay_studio.models.transform import OverlayTransform
from overlay_studio.services.images import (
    DecodedImage,
    DecodeError,
    ImageLoader,
    ImageSource,
    describe_source,
    encode_png,
    image_loader,
)
from overlay_studio.services.renderer import (
    CompositeRenderer,
    RasterSurface,
    composite_renderer,
)

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Encoded composite ready for download."""
    content: bytes
    width: int
    height: int
    filename: str
    processing_time_ms: int
    media_type: str = "image/png"


class ExportPipeline:
    """Orchestrates decode -> composite -> encode."""

    def __init__(
        self,
        loader: ImageLoader = None,
        renderer: CompositeRenderer = None,
        filename: str = None,
    ):
        self.loader = loader or image_loader
        self.renderer = renderer or composite_renderer
        self.filename = filename or settings.export_filename

    async def _load(self, role: str, source: ImageSource) -> DecodedImage:
        try:
            return await self.loader.load(source)
        except DecodeError as e:
            e.details.setdefault("role", role)
            logger.error(f"Export failed decoding {role} image {describe_source(source)}: {e.message}")
            raise

    def _compose(
        self,
        dest: RasterSurface,
        base: DecodedImage,
        overlay: DecodedImage,
        snapshot: OverlayTransform,
    ) -> bytes:
        """Render into dest and encode it. Runs in a worker thread."""
        self.renderer.render(dest, base, overlay, snapshot)
        return encode_png(dest.pixels)

    async def export_composite(
        self,
        base_source: ImageSource,
        overlay_source: ImageSource,
        transform: OverlayTransform,
    ) -> ExportResult:
        """
        Produce the flattened composite as PNG bytes.

        Raises:
            DecodeError: If either image cannot be decoded; details["role"] is
                "base" or "overlay"
        """
        # Snapshot before the first await: later edits must not leak in
        snapshot = transform.snapshot()
        start_time = time.time()

        base = await self._load("base", base_source)
        dest = RasterSurface(base.width, base.height)

        overlay = await self._load("overlay", overlay_source)

        content = await asyncio.to_thread(self._compose, dest, base, overlay, snapshot)

        processing_time = int((time.time() - start_time) * 1000)
        logger.info(
            f"Exported {dest.width}x{dest.height} composite "
            f"({len(content)} bytes) in {processing_time}ms"
        )

        return ExportResult(
            content=content,
            width=dest.width,
            height=dest.height,
            filename=self.filename,
            processing_time_ms=processing_time,
        )


# Global pipeline instance
export_pipeline = ExportPipeline()
