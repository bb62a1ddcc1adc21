"""
Models: List, ListItem
User-curated ordered collections of titles
"""

from db import db, now_utc
from utils import format_datetime


class List(db.Model):
    __tablename__ = "lists"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=now_utc, nullable=False)
    updated_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    items = db.relationship(
        "ListItem",
        backref="list",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="[ListItem.position.asc(), ListItem.id.asc()]",
    )

    def to_dict(self, include_items=False):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
            "item_count": len(self.items),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ListItem(db.Model):
    __tablename__ = "list_items"

    id = db.Column(db.Integer, primary_key=True)
    list_id = db.Column(db.Integer, db.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_id = db.Column(db.Integer, nullable=False)
    media_type = db.Column(db.String(10), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    poster_url = db.Column(db.String(512))
    position = db.Column(db.Integer, default=0, nullable=False)
    added_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("list_id", "tmdb_id", "media_type", name="uq_list_items_title"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "list_id": self.list_id,
            "tmdb_id": self.tmdb_id,
            "media_type": self.media_type,
            "title": self.title,
            "poster_url": self.poster_url,
            "position": self.position,
            "added_at": format_datetime(self.added_at),
        }
