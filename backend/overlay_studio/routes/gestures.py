"""
Pointer/touch gesture endpoints.

The client forwards pointer-down on the overlay (or a handle), every move while
a gesture is active, and the final up/cancel. Moves outside a gesture are
accepted and ignored.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from overlay_studio.models.responses import (
    ErrorResponse,
    GestureUpdateResponse,
    PointerDownEvent,
    PointerEvent,
)
from overlay_studio.routes.sessions import gesture_info, get_session_or_404
from overlay_studio.services.coordinates import Point2D
from overlay_studio.services.editor import EditorSession
from overlay_studio.services.preview import preview_style

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["gestures"])


def event_point(event: PointerEvent) -> Optional[Point2D]:
    """Device point of an event: first touch contact, else the pointer position."""
    if event.touches:
        touch = event.touches[0]
        return Point2D(touch.client_x, touch.client_y)
    if event.client_x is not None and event.client_y is not None:
        return Point2D(event.client_x, event.client_y)
    return None


def gesture_update(session: EditorSession, applied: bool) -> GestureUpdateResponse:
    return GestureUpdateResponse(
        applied=applied,
        gesture=gesture_info(session),
        transform=session.transform,
        preview=preview_style(session.transform, session.surface),
    )


@router.post(
    "/{session_id}/pointer/down",
    response_model=GestureUpdateResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
        422: {"model": ErrorResponse, "description": "Event has no position"},
    },
)
async def pointer_down(session_id: str, event: PointerDownEvent) -> GestureUpdateResponse:
    """
    Start a drag (overlay body), resize (resize handle) or rotate (rotate handle).

    Ignored (applied=false) while another gesture is active or before the
    display surface has been measured.
    """
    session = get_session_or_404(session_id)
    point = event_point(event)
    if point is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "POINTER_POSITION_REQUIRED",
                "message": "Pointer down needs client_x/client_y or at least one touch",
            },
        )

    applied = session.pointer_down(event.target, point)
    return gesture_update(session, applied)


@router.post(
    "/{session_id}/pointer/move",
    response_model=GestureUpdateResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def pointer_move(session_id: str, event: PointerEvent) -> GestureUpdateResponse:
    """Apply one move to the active gesture. Events are applied in arrival order."""
    session = get_session_or_404(session_id)
    point = event_point(event)
    if point is None:
        logger.debug(f"Session {session_id}: move without position ignored")
        return gesture_update(session, False)

    applied = session.pointer_move(point)
    return gesture_update(session, applied)


@router.post(
    "/{session_id}/pointer/up",
    response_model=GestureUpdateResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def pointer_up(session_id: str) -> GestureUpdateResponse:
    """End the active gesture, keeping the last applied transform."""
    session = get_session_or_404(session_id)
    applied = session.pointer_up()
    return gesture_update(session, applied)


@router.post(
    "/{session_id}/pointer/cancel",
    response_model=GestureUpdateResponse,
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def pointer_cancel(session_id: str) -> GestureUpdateResponse:
    """Cancel the active gesture. Nothing is rolled back."""
    session = get_session_or_404(session_id)
    applied = session.pointer_cancel()
    return gesture_update(session, applied)
