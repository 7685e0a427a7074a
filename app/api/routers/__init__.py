"""
app/api/routers package marker.
"""

from app.api.routers.watchlist import router as watchlist_router
from app.api.routers.watchlist_import import router as watchlist_import_router

__all__ = [
    "watchlist_import_router",
    "watchlist_router",
]
