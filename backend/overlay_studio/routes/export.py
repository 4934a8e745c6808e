"""
Composite export endpoint.
"""

import logging

from fastapi import APIRouter, HTTPException, Response, status

from overlay_studio.models.responses import ErrorResponse
from overlay_studio.routes.sessions import get_session_or_404
from overlay_studio.services.images import DecodeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["export"])


@router.get(
    "/{session_id}/export",
    responses={
        200: {"content": {"image/png": {}}, "description": "Flattened PNG composite"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        502: {"model": ErrorResponse, "description": "Base image or overlay could not be decoded"},
    },
)
async def export_composite(session_id: str) -> Response:
    """
    Export the base photo with the overlay flattened on top.

    The composite is rendered at the base photo's native resolution from a
    snapshot of the transform taken when the request arrives.
    """
    session = get_session_or_404(session_id)

    logger.info(f"Export request for session {session_id}")

    try:
        result = await session.export()
    except DecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "code": "EXPORT_FAILED",
                "message": f"Export failed: {e.message}",
                "details": {"reason": e.code, **e.details},
            },
        )

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Image-Width": str(result.width),
            "X-Image-Height": str(result.height),
            "X-Processing-Time-Ms": str(result.processing_time_ms),
        },
    )
