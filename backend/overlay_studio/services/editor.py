"""
Editing sessions.

An EditorSession owns exactly one base image, one overlay transform, one
gesture controller and the latest display surface rectangle. Sessions live in
memory only and expire after `settings.session_ttl_hours`.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from overlay_studio.config import settings
from overlay_studio.models.gesture import EndReason, GestureMode, GestureTarget
from overlay_studio.models.transform import OverlayTransform, TransformLimits
from overlay_studio.services.coordinates import Point2D, SurfaceRect
from overlay_studio.services.export import ExportPipeline, ExportResult, export_pipeline
from overlay_studio.services.gesture import GestureController
from overlay_studio.services.images import DecodedImage, ImageLoader, ImageSource, image_loader

logger = logging.getLogger(__name__)


class EditorSession:
    """State of one user's editing session."""

    def __init__(
        self,
        session_id: str,
        created_at: datetime,
        expires_at: datetime,
        limits: Optional[TransformLimits] = None,
        loader: Optional[ImageLoader] = None,
        pipeline: Optional[ExportPipeline] = None,
    ):
        self.session_id = session_id
        self.created_at = created_at
        self.expires_at = expires_at
        self.loader = loader or image_loader
        self.pipeline = pipeline or export_pipeline

        self.transform = OverlayTransform.create(limits)
        self.controller = GestureController(
            on_start=self._on_gesture_start,
            on_end=self._on_gesture_end,
        )
        self.gestures_completed = 0

        self.surface: Optional[SurfaceRect] = None

        self.base_content: Optional[bytes] = None
        self.base_image: Optional[DecodedImage] = None
        self.base_filename: Optional[str] = None
        self.base_content_type: Optional[str] = None
        self.base_uploaded_at: Optional[datetime] = None

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) > self.expires_at

    # ------------------------------------------------------------------
    # Base image & surface
    # ------------------------------------------------------------------

    async def load_base_image(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        surface: Optional[SurfaceRect] = None,
    ) -> DecodedImage:
        """
        Replace the base image.

        On success the transform is recreated at its defaults, any active gesture
        ends (its container is gone) and the display surface is re-measured: the
        rectangle reported with the load is stored, otherwise the old one is
        discarded so no gesture can use stale geometry.

        Raises:
            DecodeError: If the content is not a readable image. The session is
                left unchanged.
        """
        decoded = await self.loader.load(content)

        self.controller.container_lost()

        self.base_content = bytes(content)
        self.base_image = decoded
        self.base_filename = filename
        self.base_content_type = content_type
        self.base_uploaded_at = datetime.now(timezone.utc)

        self.transform = OverlayTransform.create(self.transform.limits)
        self.surface = surface if surface is not None and surface.is_valid else None

        logger.info(
            f"Session {self.session_id}: loaded base image {filename} "
            f"({decoded.width}x{decoded.height}, {len(content)} bytes)"
        )
        return decoded

    def update_surface(self, surface: SurfaceRect) -> None:
        """Store the latest on-screen rectangle of the base image."""
        self.surface = surface
        if not surface.is_valid:
            logger.warning(
                f"Session {self.session_id}: surface {surface.width}x{surface.height} "
                "has no area; gestures are paused until it is re-measured"
            )
        else:
            logger.debug(f"Session {self.session_id}: surface -> {surface}")

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    def pointer_down(self, target: GestureTarget, device_point: Point2D) -> bool:
        return self.controller.pointer_down(target, device_point, self.surface)

    def pointer_move(self, device_point: Point2D) -> bool:
        return self.controller.pointer_move(device_point, self.surface, self.transform)

    def pointer_up(self) -> bool:
        return self.controller.pointer_up()

    def pointer_cancel(self) -> bool:
        return self.controller.pointer_cancel()

    def _on_gesture_start(self, mode: GestureMode) -> None:
        logger.debug(f"Session {self.session_id}: tracking moves for {mode.value}")

    def _on_gesture_end(self, mode: GestureMode, reason: EndReason) -> None:
        self.gestures_completed += 1
        logger.debug(
            f"Session {self.session_id}: stopped tracking {mode.value} ({reason.value}), "
            f"transform={self.transform.model_dump()}"
        )

    # ------------------------------------------------------------------
    # Direct controls
    # ------------------------------------------------------------------

    def set_opacity(self, value: float) -> None:
        self.transform.set_opacity(value)

    def reset(self) -> None:
        self.transform.reset()
        logger.info(f"Session {self.session_id}: transform reset")

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export(self, overlay_source: Optional[ImageSource] = None) -> ExportResult:
        """
        Export the composite of the current base image and transform.

        Raises:
            DecodeError: If the base image or the overlay asset cannot be decoded
        """
        overlay_source = overlay_source or settings.overlay_asset
        return await self.pipeline.export_composite(self.base_content, overlay_source, self.transform)


class EditorSessionStore:
    """In-memory registry of editing sessions."""

    def __init__(self, ttl_hours: Optional[int] = None):
        self.ttl_hours = ttl_hours or settings.session_ttl_hours
        self._sessions: Dict[str, EditorSession] = {}

    async def create_session(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        surface: Optional[SurfaceRect] = None,
    ) -> EditorSession:
        """
        Create a session around an uploaded base image.

        Raises:
            DecodeError: If the upload is not a readable image (nothing is stored)
        """
        self.purge_expired()

        session_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        session = EditorSession(
            session_id=session_id,
            created_at=now,
            expires_at=now + timedelta(hours=self.ttl_hours),
        )
        await session.load_base_image(content, filename, content_type, surface)

        self._sessions[session_id] = session
        logger.info(f"Created session {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[EditorSession]:
        """Look up a session. Expired sessions are evicted and reported as missing."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.is_expired:
            logger.warning(f"Session {session_id} has expired")
            self._sessions.pop(session_id, None)
            return None
        return session

    def delete_session(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.controller.container_lost()
        logger.info(f"Deleted session {session_id}")
        return True

    def purge_expired(self) -> int:
        """Drop every expired session; returns how many were removed."""
        expired = [sid for sid, s in self._sessions.items() if s.is_expired]
        for sid in expired:
            self._sessions.pop(sid, None)
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


# Global store instance
session_store = EditorSessionStore()
