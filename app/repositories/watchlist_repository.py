"""
Repository for Watchlist database operations
"""

from db import db, safe_commit
from models.watchlist import WatchlistItem
from repositories.watchlog_repository import friends_clause


class WatchlistRepository:
    """Repository for Watchlist database operations"""

    @staticmethod
    def get_by_id(id):
        """Get WatchlistItem by ID"""
        return db.session.get(WatchlistItem, id)

    @staticmethod
    def get_by_user_and_title(user_id, tmdb_id, media_type):
        """Get Watchlist item for a specific user and TMDB title"""
        return WatchlistItem.query.filter_by(user_id=user_id, tmdb_id=tmdb_id, media_type=media_type).first()

    @staticmethod
    def get_all_by_user(user_id):
        """Get all Watchlist records for a user"""
        return WatchlistItem.query.filter_by(user_id=user_id).order_by(WatchlistItem.added_at.desc()).all()

    @staticmethod
    def get_visible_to(viewer_id, owner_id):
        return (
            WatchlistItem.query.filter(WatchlistItem.user_id == owner_id)
            .filter(friends_clause(viewer_id, WatchlistItem.user_id))
            .order_by(WatchlistItem.added_at.desc())
            .all()
        )

    @staticmethod
    def create(**kwargs):
        """Create new Watchlist record, DuplicateEntryException if already present"""
        item = WatchlistItem(**kwargs)
        db.session.add(item)
        safe_commit()
        db.session.refresh(item)
        return item

    @staticmethod
    def delete(id):
        """Delete Watchlist record"""
        item = db.session.get(WatchlistItem, id)
        if not item:
            return False

        db.session.delete(item)
        safe_commit()
        return True
