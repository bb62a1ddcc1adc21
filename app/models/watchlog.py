"""
Model: WatchLog
One user's record of having watched a title
"""

from db import db, now_utc
from utils import format_datetime


class WatchLog(db.Model):
    __tablename__ = "watch_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_id = db.Column(db.Integer, nullable=True)  # None for titles without a TMDB match
    title = db.Column(db.String(255), nullable=False)
    media_type = db.Column(db.String(10), nullable=False)  # movie / series
    poster_url = db.Column(db.String(512))  # snapshot taken at log time

    rating = db.Column(db.Float, nullable=False)  # 0.5-5.0
    review = db.Column(db.Text)
    watched_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    # === CATEGORY RATINGS (1-5, NULL = not rated) ===
    plot_rating = db.Column(db.Integer)
    cinematography_rating = db.Column(db.Integer)
    acting_rating = db.Column(db.Integer)
    soundtrack_rating = db.Column(db.Integer)
    pacing_rating = db.Column(db.Integer)
    casting_rating = db.Column(db.Integer)

    # === CONTEXT ===
    watched_on = db.Column(db.String(50))
    watch_duration = db.Column(db.String(50))
    discovered_via = db.Column(db.String(50))
    rewatchability = db.Column(db.String(20))
    watched_with = db.Column(db.String(20))
    times_watched = db.Column(db.String(5))  # "1".."5" or "6+"

    __table_args__ = (
        db.Index("idx_watch_logs_user_created", "user_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tmdb_id": self.tmdb_id,
            "title": self.title,
            "media_type": self.media_type,
            "poster_url": self.poster_url,
            "rating": self.rating,
            "review": self.review,
            "watched_date": self.watched_date.isoformat() if self.watched_date else None,
            "created_at": format_datetime(self.created_at),
            "plot_rating": self.plot_rating,
            "cinematography_rating": self.cinematography_rating,
            "acting_rating": self.acting_rating,
            "soundtrack_rating": self.soundtrack_rating,
            "pacing_rating": self.pacing_rating,
            "casting_rating": self.casting_rating,
            "watched_on": self.watched_on,
            "watch_duration": self.watch_duration,
            "discovered_via": self.discovered_via,
            "rewatchability": self.rewatchability,
            "watched_with": self.watched_with,
            "times_watched": self.times_watched,
        }
