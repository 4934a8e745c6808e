"""
Image serving endpoints for the preview: the uploaded base photo and the overlay asset.
"""

import logging

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import FileResponse, RedirectResponse

from overlay_studio.config import settings
from overlay_studio.models.responses import ErrorResponse
from overlay_studio.services.editor import session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["images"])


def image_not_found(image_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "code": "IMAGE_NOT_FOUND",
            "message": f"Image '{image_id}' does not exist or has expired",
        },
    )


@router.get(
    "/overlay",
    responses={
        200: {"content": {"image/png": {}}, "description": "Overlay asset"},
        307: {"description": "Redirect to a remote overlay asset"},
        404: {"model": ErrorResponse, "description": "Overlay asset missing"},
    },
)
async def get_overlay():
    """
    Serve the fixed overlay asset so the preview uses the same image as the export.
    """
    source = settings.overlay_asset
    if source.startswith(("http://", "https://")):
        return RedirectResponse(source)

    path = settings.overlay_asset_path
    if not path.is_file():
        logger.error(f"Overlay asset not found at {path.absolute()}")
        raise image_not_found("overlay")

    # Served inline for the preview image
    return FileResponse(path=path)


@router.get(
    "/base/{session_id}",
    responses={
        200: {"content": {"image/*": {}}, "description": "Uploaded base photo"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_base_image(session_id: str) -> Response:
    """Serve the session's uploaded base photo as it was received."""
    logger.debug(f"Base image request: {session_id}")

    session = session_store.get_session(session_id)
    if session is None or session.base_content is None:
        raise image_not_found(f"base/{session_id}")

    return Response(
        content=session.base_content,
        media_type=session.base_content_type or "application/octet-stream",
    )
