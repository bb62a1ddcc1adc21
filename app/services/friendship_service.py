"""Friendship state machine.

The pure half (derive_relationship, can_view_friend_data,
annotate_search_results) works on plain edge objects and decides what a viewer
may see. FriendshipService applies transitions against the friendships table,
with the acting user passed explicitly on every call.

    none --send_request--> pending --accept--> accepted
                           pending --cancel/decline--> (deleted)
                           accepted --unfriend--> (deleted)
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from constants import FRIENDSHIP_ACCEPTED, FRIENDSHIP_PENDING
from exceptions import (
    AuthorizationException,
    ConflictException,
    DuplicateEntryException,
    NotFoundException,
    ValidationException,
)
from metrics import friendship_transitions_total
from repositories.friendship_repository import FriendshipRepository
from repositories.profile_repository import ProfileRepository
from utils import format_datetime

logger = logging.getLogger("main")

DEFAULT_SEARCH_LIMIT = 20


class RelationshipState:
    SELF = "self"
    FRIENDS = "friends"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    NONE = "none"

    ALL = (SELF, FRIENDS, PENDING_SENT, PENDING_RECEIVED, NONE)


def _touches(edge, user_a, user_b) -> bool:
    return {edge.requester_id, edge.addressee_id} == {user_a, user_b}


def find_edge(edges: Iterable, viewer_id, target_id):
    for edge in edges or []:
        if _touches(edge, viewer_id, target_id):
            return edge
    return None


def derive_relationship(viewer_id, edges: Iterable, target_id) -> str:
    """Relationship of target_id as seen by viewer_id, given the edges touching them"""
    if viewer_id == target_id:
        return RelationshipState.SELF
    edge = find_edge(edges, viewer_id, target_id)
    if edge is None:
        return RelationshipState.NONE
    if edge.status == FRIENDSHIP_ACCEPTED:
        return RelationshipState.FRIENDS
    if edge.requester_id == viewer_id:
        return RelationshipState.PENDING_SENT
    return RelationshipState.PENDING_RECEIVED


def can_view_friend_data(state: str) -> bool:
    return state == RelationshipState.FRIENDS


def annotate_search_results(viewer_id, profiles: Iterable, edges: Iterable) -> List[Dict[str, Any]]:
    """Attach relationship and friendship_id to each candidate profile"""
    edges = list(edges or [])
    results = []
    for profile in profiles:
        data = profile.to_dict() if hasattr(profile, "to_dict") else dict(profile)
        edge = find_edge(edges, viewer_id, data["id"])
        data["relationship"] = derive_relationship(viewer_id, [edge] if edge else [], data["id"])
        data["friendship_id"] = edge.id if edge else None
        results.append(data)
    return results


class FriendshipService:
    """Datastore-backed friendship transitions and queries"""

    def __init__(self, search_limit: int = DEFAULT_SEARCH_LIMIT):
        self.search_limit = search_limit or DEFAULT_SEARCH_LIMIT

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "FriendshipService":
        return cls(search_limit=settings.get("social", {}).get("search_limit", DEFAULT_SEARCH_LIMIT))

    # ---------- TRANSITIONS ----------

    def send_request(self, actor_id, target_id):
        """Create a pending edge from actor to target.

        When an edge already exists for the pair, in either direction, nothing
        changes and the existing edge is returned.
        """
        if actor_id == target_id:
            raise ValidationException("You cannot send a friend request to yourself", field="addressee_id")
        if ProfileRepository.get_by_id(target_id) is None:
            raise NotFoundException("User", target_id)

        try:
            edge = FriendshipRepository.create(actor_id, target_id, FRIENDSHIP_PENDING)
        except DuplicateEntryException:
            existing = FriendshipRepository.get_between(actor_id, target_id)
            logger.info(f"Friend request {actor_id} -> {target_id} already exists (status={existing.status})")
            return existing

        friendship_transitions_total.labels(action="request").inc()
        logger.info(f"Friend request sent: {actor_id} -> {target_id} (id={edge.id})")
        return edge

    def _get_edge(self, friendship_id, actor_id):
        edge = FriendshipRepository.get_by_id(friendship_id)
        if edge is None:
            raise NotFoundException("Friendship", friendship_id)
        if actor_id not in (edge.requester_id, edge.addressee_id):
            raise AuthorizationException("You are not part of this friendship")
        return edge

    def _get_pending(self, friendship_id, actor_id, role):
        edge = self._get_edge(friendship_id, actor_id)
        if edge.status != FRIENDSHIP_PENDING:
            raise ConflictException("Friend request is no longer pending")
        if getattr(edge, role) != actor_id:
            who = "sender" if role == "requester_id" else "recipient"
            raise AuthorizationException(f"Only the {who} of this request can do that")
        return edge

    def cancel(self, actor_id, friendship_id):
        edge = self._get_pending(friendship_id, actor_id, "requester_id")
        FriendshipRepository.delete(edge.id)
        friendship_transitions_total.labels(action="cancel").inc()
        logger.info(f"Friend request {friendship_id} cancelled by {actor_id}")

    def accept(self, actor_id, friendship_id):
        edge = self._get_pending(friendship_id, actor_id, "addressee_id")
        edge = FriendshipRepository.update_status(edge.id, FRIENDSHIP_ACCEPTED)
        friendship_transitions_total.labels(action="accept").inc()
        logger.info(f"Friend request {friendship_id} accepted by {actor_id}")
        return edge

    def decline(self, actor_id, friendship_id):
        edge = self._get_pending(friendship_id, actor_id, "addressee_id")
        FriendshipRepository.delete(edge.id)
        friendship_transitions_total.labels(action="decline").inc()
        logger.info(f"Friend request {friendship_id} declined by {actor_id}")

    def unfriend(self, actor_id, friendship_id):
        edge = self._get_edge(friendship_id, actor_id)
        if edge.status != FRIENDSHIP_ACCEPTED:
            raise ConflictException("You are not friends with this user")
        FriendshipRepository.delete(edge.id)
        friendship_transitions_total.labels(action="unfriend").inc()
        logger.info(f"Friendship {friendship_id} removed by {actor_id}")

    # ---------- QUERIES ----------

    def relationship(self, viewer_id, target_id) -> str:
        if viewer_id == target_id:
            return RelationshipState.SELF
        edge = FriendshipRepository.get_between(viewer_id, target_id)
        return derive_relationship(viewer_id, [edge] if edge else [], target_id)

    def ensure_can_view(self, viewer_id, target_id) -> str:
        """Raise AuthorizationException unless viewer is target or a friend"""
        state = self.relationship(viewer_id, target_id)
        if state not in (RelationshipState.SELF, RelationshipState.FRIENDS):
            raise AuthorizationException("Only friends can see this user's activity")
        return state

    def _with_profiles(self, user_id, edges) -> List[Dict[str, Any]]:
        profiles = ProfileRepository.get_many(edge.other_user_id(user_id) for edge in edges)
        rows = []
        for edge in edges:
            profile = profiles.get(edge.other_user_id(user_id))
            rows.append({
                "friendship_id": edge.id,
                "status": edge.status,
                "created_at": format_datetime(edge.created_at),
                "user": profile.to_dict() if profile else {"id": edge.other_user_id(user_id)},
            })
        return rows

    def list_friends(self, user_id) -> List[Dict[str, Any]]:
        return self._with_profiles(user_id, FriendshipRepository.get_edges_for_user(user_id, FRIENDSHIP_ACCEPTED))

    def list_incoming(self, user_id) -> List[Dict[str, Any]]:
        return self._with_profiles(user_id, FriendshipRepository.get_incoming(user_id))

    def list_outgoing(self, user_id) -> List[Dict[str, Any]]:
        return self._with_profiles(user_id, FriendshipRepository.get_outgoing(user_id))

    def search_users(self, viewer_id, query: Optional[str]) -> List[Dict[str, Any]]:
        """Profiles matching query, annotated with the viewer's relationship to each"""
        if not query or not query.strip():
            return []
        candidates = ProfileRepository.search(query, exclude_id=viewer_id, limit=self.search_limit)
        edges = FriendshipRepository.get_edges_between(viewer_id, [p.id for p in candidates])
        return annotate_search_results(viewer_id, candidates, edges)
