"""
Model: WatchlistItem
"""

from db import db, now_utc
from utils import format_datetime


class WatchlistItem(db.Model):
    __tablename__ = "watchlist"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_id = db.Column(db.Integer, nullable=False)
    media_type = db.Column(db.String(10), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    poster_url = db.Column(db.String(512))
    added_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_id", "tmdb_id", "media_type", name="uq_watchlist_user_title"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tmdb_id": self.tmdb_id,
            "media_type": self.media_type,
            "title": self.title,
            "poster_url": self.poster_url,
            "added_at": format_datetime(self.added_at),
        }
