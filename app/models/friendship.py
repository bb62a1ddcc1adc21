"""
Model: Friendship
Directed edge between two users. pair_key is the same for both directions,
so the UNIQUE constraint allows one edge per unordered pair.
"""

from db import db, now_utc
from constants import FRIENDSHIP_PENDING
from utils import format_datetime


def make_pair_key(user_a, user_b):
    low, high = sorted((int(user_a), int(user_b)))
    return f"{low}:{high}"


class Friendship(db.Model):
    __tablename__ = "friendships"

    id = db.Column(db.Integer, primary_key=True)
    requester_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    addressee_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=FRIENDSHIP_PENDING)
    pair_key = db.Column(db.String(50), nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("pair_key", name="uq_friendships_pair"),
        db.Index("idx_friendships_addressee_status", "addressee_id", "status"),
    )

    def other_user_id(self, user_id):
        return self.addressee_id if self.requester_id == user_id else self.requester_id

    def to_dict(self):
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "addressee_id": self.addressee_id,
            "status": self.status,
            "created_at": format_datetime(self.created_at),
        }
