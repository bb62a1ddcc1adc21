"""
Repository for List and ListItem database operations
"""

from sqlalchemy import func

from db import db, safe_commit
from models.lists import List, ListItem
from repositories.watchlog_repository import friends_clause
from utils import now_utc


class ListRepository:
    """Repository for List and ListItem database operations"""

    @staticmethod
    def get_by_id(id):
        return db.session.get(List, id)

    @staticmethod
    def get_all_by_user(user_id):
        return List.query.filter_by(user_id=user_id).order_by(List.updated_at.desc()).all()

    @staticmethod
    def get_visible_to(viewer_id, owner_id):
        return (
            List.query.filter(List.user_id == owner_id)
            .filter(friends_clause(viewer_id, List.user_id))
            .order_by(List.updated_at.desc())
            .all()
        )

    @staticmethod
    def create(**kwargs):
        item = List(**kwargs)
        db.session.add(item)
        safe_commit()
        db.session.refresh(item)
        return item

    @staticmethod
    def update(id, **kwargs):
        item = db.session.get(List, id)
        if not item:
            return None

        for key, value in kwargs.items():
            if hasattr(item, key):
                setattr(item, key, value)
        item.updated_at = now_utc()

        safe_commit()
        return item

    @staticmethod
    def delete(id):
        item = db.session.get(List, id)
        if not item:
            return False

        db.session.delete(item)
        safe_commit()
        return True

    @staticmethod
    def get_item_by_title(list_id, tmdb_id, media_type):
        return ListItem.query.filter_by(list_id=list_id, tmdb_id=tmdb_id, media_type=media_type).first()

    @staticmethod
    def add_item(list_id, **kwargs):
        """Append an item at the end of the list and bump the list's updated_at"""
        last = db.session.query(func.max(ListItem.position)).filter(ListItem.list_id == list_id).scalar()
        position = 0 if last is None else last + 1
        item = ListItem(list_id=list_id, position=position, **kwargs)
        db.session.add(item)
        parent = db.session.get(List, list_id)
        if parent:
            parent.updated_at = now_utc()
        safe_commit()
        db.session.refresh(item)
        return item

    @staticmethod
    def delete_item(list_id, item_id):
        item = ListItem.query.filter_by(list_id=list_id, id=item_id).first()
        if not item:
            return False

        db.session.delete(item)
        parent = db.session.get(List, list_id)
        if parent:
            parent.updated_at = now_utc()
        safe_commit()
        return True
