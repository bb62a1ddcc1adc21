"""
Repository for Friendship database operations
"""

from sqlalchemy import and_, or_
from db import db, safe_commit
from models.friendship import Friendship, make_pair_key
from constants import FRIENDSHIP_PENDING


class FriendshipRepository:
    """Repository for Friendship database operations"""

    @staticmethod
    def get_by_id(id):
        """Get Friendship by ID"""
        return db.session.get(Friendship, id)

    @staticmethod
    def get_between(user_a, user_b):
        """The single edge between two users, in either direction"""
        return Friendship.query.filter_by(pair_key=make_pair_key(user_a, user_b)).first()

    @staticmethod
    def get_edges_for_user(user_id, status=None):
        """All edges touching a user, optionally filtered by status"""
        q = Friendship.query.filter(or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id))
        if status:
            q = q.filter(Friendship.status == status)
        return q.order_by(Friendship.created_at.desc()).all()

    @staticmethod
    def get_incoming(user_id, status=FRIENDSHIP_PENDING):
        return (
            Friendship.query.filter_by(addressee_id=user_id, status=status)
            .order_by(Friendship.created_at.desc())
            .all()
        )

    @staticmethod
    def get_outgoing(user_id, status=FRIENDSHIP_PENDING):
        return (
            Friendship.query.filter_by(requester_id=user_id, status=status)
            .order_by(Friendship.created_at.desc())
            .all()
        )

    @staticmethod
    def get_edges_between(user_id, candidate_ids):
        """Edges between one user and a batch of candidates, in a single query"""
        candidate_ids = list(candidate_ids)
        if not candidate_ids:
            return []
        return Friendship.query.filter(
            or_(
                and_(Friendship.requester_id == user_id, Friendship.addressee_id.in_(candidate_ids)),
                and_(Friendship.addressee_id == user_id, Friendship.requester_id.in_(candidate_ids)),
            )
        ).all()

    @staticmethod
    def create(requester_id, addressee_id, status=FRIENDSHIP_PENDING):
        """Create new Friendship record

        Raises DuplicateEntryException when an edge already exists for the pair.
        """
        item = Friendship(
            requester_id=requester_id,
            addressee_id=addressee_id,
            status=status,
            pair_key=make_pair_key(requester_id, addressee_id),
        )
        db.session.add(item)
        safe_commit()
        db.session.refresh(item)
        return item

    @staticmethod
    def update_status(id, status):
        """Update Friendship status"""
        item = db.session.get(Friendship, id)
        if not item:
            return None

        item.status = status
        safe_commit()
        return item

    @staticmethod
    def delete(id):
        """Delete Friendship record"""
        item = db.session.get(Friendship, id)
        if not item:
            return False

        db.session.delete(item)
        safe_commit()
        return True
