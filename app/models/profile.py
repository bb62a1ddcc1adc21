"""
Model: Profile
Denormalized public identity, searchable without touching the users table
"""

from db import db, now_utc


class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    username = db.Column(db.String(50), unique=True, index=True)
    full_name = db.Column(db.String(120))
    avatar_url = db.Column(db.String(512))
    profile_color = db.Column(db.String(20))
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "profile_color": self.profile_color,
        }
