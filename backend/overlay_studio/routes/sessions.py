"""
Session management endpoints: upload, state, surface geometry and direct controls.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from overlay_studio.config import settings
from overlay_studio.models.responses import (
    BaseImageInfo,
    ErrorResponse,
    GestureInfo,
    OpacityRequest,
    SessionResponse,
    SurfaceModel,
)
from overlay_studio.services.coordinates import SurfaceRect
from overlay_studio.services.editor import EditorSession, session_store
from overlay_studio.services.images import DecodeError
from overlay_studio.services.preview import preview_style

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_or_404(session_id: str) -> EditorSession:
    """Load session or raise 404."""
    session = session_store.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "SESSION_NOT_FOUND",
                "message": f"Session '{session_id}' does not exist or has expired",
            },
        )
    return session


def to_surface_rect(surface: SurfaceModel) -> SurfaceRect:
    return SurfaceRect(
        left=surface.left,
        top=surface.top,
        width=surface.width,
        height=surface.height,
    )


def surface_from_form(
    left: Optional[float],
    top: Optional[float],
    width: Optional[float],
    height: Optional[float],
) -> Optional[SurfaceRect]:
    """Surface measured by the client on image load, if all four fields were sent."""
    if None in (left, top, width, height):
        return None
    return SurfaceRect(left=left, top=top, width=width, height=height)


def gesture_info(session: EditorSession) -> GestureInfo:
    controller = session.controller
    return GestureInfo(
        state=controller.state,
        mode=controller.session.mode if controller.session else None,
        tracking=controller.is_tracking,
    )


def build_session_response(session: EditorSession) -> SessionResponse:
    """Assemble the API view of a session."""
    now = datetime.now(timezone.utc)
    ttl_seconds = max(0, int((session.expires_at - now).total_seconds()))

    surface = None
    if session.surface is not None:
        surface = SurfaceModel(
            left=session.surface.left,
            top=session.surface.top,
            width=session.surface.width,
            height=session.surface.height,
        )

    prefix = settings.api_v1_prefix
    return SessionResponse(
        session_id=session.session_id,
        created_at=session.created_at,
        expires_at=session.expires_at,
        ttl_seconds=ttl_seconds,
        base_image=BaseImageInfo(
            filename=session.base_filename,
            content_type=session.base_content_type,
            size_bytes=len(session.base_content),
            width_px=session.base_image.width,
            height_px=session.base_image.height,
            uploaded_at=session.base_uploaded_at,
            image_url=f"{prefix}/images/base/{session.session_id}",
        ),
        surface=surface,
        transform=session.transform,
        gesture=gesture_info(session),
        preview=preview_style(session.transform, session.surface),
        overlay_url=f"{prefix}/images/overlay",
        export_url=f"{prefix}/sessions/{session.session_id}/export",
    )


async def read_image_upload(file: UploadFile) -> bytes:
    """
    Read an uploaded image after checking its content type and size.

    Raises:
        HTTPException: 400 for a disallowed type, 413 when over the size limit
    """
    if file.content_type not in settings.allowed_content_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "INVALID_FILE_TYPE",
                "message": f"File '{file.filename}' must be one of {', '.join(settings.allowed_content_types)}",
                "details": {
                    "received_type": file.content_type,
                    "expected_types": settings.allowed_content_types,
                },
            },
        )

    content = await file.read()

    if len(content) > settings.max_file_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "code": "FILE_TOO_LARGE",
                "message": f"File '{file.filename}' exceeds the {settings.max_file_size_mb}MB limit",
                "details": {
                    "size_bytes": len(content),
                    "max_bytes": settings.max_file_size_bytes,
                },
            },
        )

    return content


def invalid_image(e: DecodeError, filename: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "code": "INVALID_IMAGE",
            "message": f"File '{filename}' could not be decoded: {e.message}",
            "details": e.details,
        },
    )


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid file type"},
        413: {"model": ErrorResponse, "description": "File too large"},
        422: {"model": ErrorResponse, "description": "File is not a readable image"},
    },
)
async def create_session(
    file: UploadFile = File(..., description="Base photo"),
    surface_left: Optional[float] = Form(default=None),
    surface_top: Optional[float] = Form(default=None),
    surface_width: Optional[float] = Form(default=None),
    surface_height: Optional[float] = Form(default=None),
) -> SessionResponse:
    """
    Upload a base photo to start an editing session.

    The overlay starts centered at its default scale and opacity. If the client
    already knows where the image is rendered it may send the surface rectangle
    with the upload; otherwise it must PUT /surface before gestures take effect.
    """
    logger.info(f"Upload request: file={file.filename} ({file.content_type})")

    content = await read_image_upload(file)
    surface = surface_from_form(surface_left, surface_top, surface_width, surface_height)

    try:
        session = await session_store.create_session(
            content=content,
            filename=file.filename or "upload",
            content_type=file.content_type,
            surface=surface,
        )
    except DecodeError as e:
        logger.warning(f"Rejected upload {file.filename}: {e.message}")
        raise invalid_image(e, file.filename)

    return build_session_response(session)


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def get_session(session_id: str) -> SessionResponse:
    """Get the current transform, surface and gesture state of a session."""
    session = get_session_or_404(session_id)
    return build_session_response(session)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def delete_session(session_id: str) -> Response:
    get_session_or_404(session_id)
    session_store.delete_session(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{session_id}/image",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid file type"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        413: {"model": ErrorResponse, "description": "File too large"},
        422: {"model": ErrorResponse, "description": "File is not a readable image"},
    },
)
async def replace_image(
    session_id: str,
    file: UploadFile = File(..., description="New base photo"),
    surface_left: Optional[float] = Form(default=None),
    surface_top: Optional[float] = Form(default=None),
    surface_width: Optional[float] = Form(default=None),
    surface_height: Optional[float] = Form(default=None),
) -> SessionResponse:
    """
    Replace the base photo.

    The overlay transform is reset to its defaults and any gesture in progress
    ends. The previous surface rectangle is discarded unless a new one is sent.
    """
    session = get_session_or_404(session_id)
    content = await read_image_upload(file)
    surface = surface_from_form(surface_left, surface_top, surface_width, surface_height)

    try:
        await session.load_base_image(
            content=content,
            filename=file.filename or "upload",
            content_type=file.content_type,
            surface=surface,
        )
    except DecodeError as e:
        logger.warning(f"Rejected replacement image {file.filename}: {e.message}")
        raise invalid_image(e, file.filename)

    return build_session_response(session)


@router.put(
    "/{session_id}/surface",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def update_surface(session_id: str, surface: SurfaceModel) -> SessionResponse:
    """
    Report where the base image is rendered on screen.

    Send after every container resize and whenever a new image finishes loading.
    A zero-sized surface is accepted; gestures are ignored until it has area.
    """
    session = get_session_or_404(session_id)
    session.update_surface(to_surface_rect(surface))
    return build_session_response(session)


@router.put(
    "/{session_id}/opacity",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def set_opacity(session_id: str, request: OpacityRequest) -> SessionResponse:
    """Set overlay opacity (clamped to the configured bounds)."""
    session = get_session_or_404(session_id)
    session.set_opacity(request.opacity)
    return build_session_response(session)


@router.post(
    "/{session_id}/reset",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def reset_transform(session_id: str) -> SessionResponse:
    """Return the overlay to its default placement."""
    session = get_session_or_404(session_id)
    session.reset()
    return build_session_response(session)
