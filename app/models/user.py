"""
Model: User
Authentication account. Public identity fields live here as account metadata
and are mirrored into the profiles table by sync_profile.
"""

from db import db, now_utc
from flask_login import UserMixin


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    # Account metadata
    username = db.Column(db.String(50))
    full_name = db.Column(db.String(120))
    avatar_url = db.Column(db.String(512))
    profile_color = db.Column(db.String(20))

    def metadata_dict(self):
        return {
            "username": self.username or "",
            "full_name": self.full_name or "",
            "avatar_url": self.avatar_url,
            "profile_color": self.profile_color,
        }
