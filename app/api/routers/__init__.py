"""
app/api/routers package marker.
"""

from app.api.routers.stream_analytics import router as stream_analytics_router
from app.api.routers.stream_import import router as stream_import_router
from app.api.routers.watchlist import router as watchlist_router
from app.api.routers.workspace_router import router as workspace_router

__all__ = [
    "stream_analytics_router",
    "stream_import_router",
    "watchlist_router",
    "workspace_router",
]
