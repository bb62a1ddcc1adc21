"""
Repository for User database operations
"""

from db import db, safe_commit
from models.user import User


class UserRepository:
    """Repository for User database operations"""

    @staticmethod
    def get_by_id(id):
        """Get User by ID"""
        return db.session.get(User, id)

    @staticmethod
    def get_by_email(email):
        """Get User by login email"""
        return User.query.filter_by(email=(email or "").strip().lower()).first()

    @staticmethod
    def create(**kwargs):
        """Create new User record"""
        item = User(**kwargs)
        db.session.add(item)
        safe_commit()
        db.session.refresh(item)
        return item

    @staticmethod
    def update(id, **kwargs):
        """Update User record"""
        item = db.session.get(User, id)
        if not item:
            return None

        for key, value in kwargs.items():
            if hasattr(item, key):
                setattr(item, key, value)

        safe_commit()
        return item
