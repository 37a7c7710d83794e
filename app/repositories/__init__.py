"""
app/repositories package marker.
"""

from app.repositories.watchlist_repository import DEFAULT_WATCHLIST_LIMIT, WatchlistRepository

__all__ = [
    "DEFAULT_WATCHLIST_LIMIT",
    "WatchlistRepository",
]
