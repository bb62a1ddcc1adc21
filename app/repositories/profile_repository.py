"""
Repository for Profile database operations
"""

from sqlalchemy import or_
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from db import db, safe_commit
from models.profile import Profile
from utils import now_utc


class ProfileRepository:
    """Repository for Profile database operations"""

    @staticmethod
    def get_by_id(id):
        return db.session.get(Profile, id)

    @staticmethod
    def get_by_username(username):
        return Profile.query.filter_by(username=(username or "").strip().lower()).first()

    @staticmethod
    def get_many(ids):
        """Profiles keyed by id for a batch of user ids"""
        ids = list(ids)
        if not ids:
            return {}
        return {p.id: p for p in Profile.query.filter(Profile.id.in_(ids)).all()}

    @staticmethod
    def search(query, exclude_id=None, limit=20):
        """Case-insensitive substring search over username and full name"""
        term = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{term}%"
        q = Profile.query.filter(or_(
            Profile.username.ilike(pattern, escape="\\"),
            Profile.full_name.ilike(pattern, escape="\\"),
        ))
        if exclude_id is not None:
            q = q.filter(Profile.id != exclude_id)
        return q.order_by(Profile.username.asc()).limit(limit).all()

    @staticmethod
    def upsert(user_id, **fields):
        """Insert or update the profile row for a user (conflict on id)"""
        values = dict(fields, id=user_id, updated_at=now_utc())
        dialect = db.engine.dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = insert(Profile).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={key: getattr(stmt.excluded, key) for key in values if key != "id"},
        )
        db.session.execute(stmt)
        safe_commit()
        return db.session.get(Profile, user_id, populate_existing=True)
