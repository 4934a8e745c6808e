"""
API route modules.
"""

from overlay_studio.routes.sessions import router as sessions_router
from overlay_studio.routes.gestures import router as gestures_router
from overlay_studio.routes.export import router as export_router
from overlay_studio.routes.images import router as images_router

__all__ = [
    "sessions_router",
    "gestures_router",
    "export_router",
    "images_router",
]
