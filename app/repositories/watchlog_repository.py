"""
Repository for WatchLog database operations
"""

from sqlalchemy import and_, or_, exists
from db import db, safe_commit
from models.watchlog import WatchLog
from models.friendship import Friendship
from constants import FRIENDSHIP_ACCEPTED


def friends_clause(viewer_id, owner_column):
    """SQL condition: viewer owns the row or has an accepted edge with its owner"""
    accepted_edge = exists().where(
        and_(
            Friendship.status == FRIENDSHIP_ACCEPTED,
            or_(
                and_(Friendship.requester_id == viewer_id, Friendship.addressee_id == owner_column),
                and_(Friendship.addressee_id == viewer_id, Friendship.requester_id == owner_column),
            ),
        )
    )
    return or_(owner_column == viewer_id, accepted_edge)


class WatchLogRepository:
    """Repository for WatchLog database operations"""

    @staticmethod
    def get_by_id(id):
        """Get WatchLog by ID"""
        return db.session.get(WatchLog, id)

    @staticmethod
    def get_all_by_user(user_id):
        """Get all WatchLog records for a user, newest first"""
        return WatchLog.query.filter_by(user_id=user_id).order_by(WatchLog.created_at.desc()).all()

    @staticmethod
    def get_visible_to(viewer_id, owner_id):
        """Owner's logs, filtered by the friends-only read policy"""
        return (
            WatchLog.query.filter(WatchLog.user_id == owner_id)
            .filter(friends_clause(viewer_id, WatchLog.user_id))
            .order_by(WatchLog.created_at.desc())
            .all()
        )

    @staticmethod
    def create(**kwargs):
        """Create new WatchLog record"""
        item = WatchLog(**kwargs)
        db.session.add(item)
        safe_commit()
        db.session.refresh(item)
        return item

    @staticmethod
    def update(id, **kwargs):
        """Update WatchLog record"""
        item = db.session.get(WatchLog, id)
        if not item:
            return None

        for key, value in kwargs.items():
            if hasattr(item, key):
                setattr(item, key, value)

        safe_commit()
        return item

    @staticmethod
    def delete(id):
        """Delete WatchLog record"""
        item = db.session.get(WatchLog, id)
        if not item:
            return False

        db.session.delete(item)
        safe_commit()
        return True

    @staticmethod
    def count_by_user(user_id):
        return WatchLog.query.filter_by(user_id=user_id).count()
