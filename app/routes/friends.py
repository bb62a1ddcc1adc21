"""
Friends routes - requests, friendships, user search and user pages
"""

from flask import Blueprint, request
from flask_login import current_user, login_required
import logging

from api_responses import success_response, handle_api_errors
from exceptions import NotFoundException, ValidationException
from repositories.list_repository import ListRepository
from repositories.profile_repository import ProfileRepository
from repositories.watchlist_repository import WatchlistRepository
from repositories.watchlog_repository import WatchLogRepository
from services.analytics import WatchLogEntry, summarize_totals
from services.friendship_service import FriendshipService, RelationshipState
from settings import load_settings
from utils import now_utc

logger = logging.getLogger("main")

friends_bp = Blueprint("friends", __name__, url_prefix="/api")


def get_friendship_service():
    return FriendshipService.from_settings(load_settings())


@friends_bp.route("/friends")
@login_required
@handle_api_errors
def list_friends():
    return success_response(get_friendship_service().list_friends(current_user.id))


@friends_bp.route("/friends/requests")
@login_required
@handle_api_errors
def list_requests():
    service = get_friendship_service()
    return success_response({
        "incoming": service.list_incoming(current_user.id),
        "outgoing": service.list_outgoing(current_user.id),
    })


@friends_bp.route("/friends/requests", methods=["POST"])
@login_required
@handle_api_errors
def send_request():
    """Send a friend request by user id or username"""
    data = request.get_json(silent=True) or {}
    target_id = data.get("user_id")
    if target_id is None and data.get("username"):
        profile = ProfileRepository.get_by_username(data["username"])
        if profile is None:
            raise NotFoundException("User", data["username"])
        target_id = profile.id
    if target_id is None:
        raise ValidationException("user_id or username is required", field="user_id")
    try:
        target_id = int(target_id)
    except (TypeError, ValueError):
        raise ValidationException("user_id must be an integer", field="user_id")

    service = get_friendship_service()
    edge = service.send_request(current_user.id, target_id)
    result = edge.to_dict()
    result["relationship"] = service.relationship(current_user.id, target_id)
    return success_response(result, status_code=201)


@friends_bp.route("/friends/<int:friendship_id>/accept", methods=["POST"])
@login_required
@handle_api_errors
def accept_request(friendship_id):
    edge = get_friendship_service().accept(current_user.id, friendship_id)
    return success_response(edge.to_dict(), message="Friend request accepted")


@friends_bp.route("/friends/<int:friendship_id>/decline", methods=["POST"])
@login_required
@handle_api_errors
def decline_request(friendship_id):
    get_friendship_service().decline(current_user.id, friendship_id)
    return success_response(message="Friend request declined")


@friends_bp.route("/friends/<int:friendship_id>/cancel", methods=["POST"])
@login_required
@handle_api_errors
def cancel_request(friendship_id):
    get_friendship_service().cancel(current_user.id, friendship_id)
    return success_response(message="Friend request cancelled")


@friends_bp.route("/friends/<int:friendship_id>", methods=["DELETE"])
@login_required
@handle_api_errors
def unfriend(friendship_id):
    get_friendship_service().unfriend(current_user.id, friendship_id)
    return success_response(message="Friend removed")


@friends_bp.route("/users/search")
@login_required
@handle_api_errors
def search_users():
    query = request.args.get("q", "")
    return success_response(get_friendship_service().search_users(current_user.id, query))


@friends_bp.route("/users/<username>")
@login_required
@handle_api_errors
def user_page(username):
    """Public profile; diary, watchlist and lists only for friends"""
    profile = ProfileRepository.get_by_username(username)
    if profile is None:
        raise NotFoundException("User", username)

    state = get_friendship_service().relationship(current_user.id, profile.id)
    result = {"profile": profile.to_dict(), "relationship": state}

    if state not in (RelationshipState.SELF, RelationshipState.FRIENDS):
        result["locked"] = True
        return success_response(result)

    logs = WatchLogRepository.get_visible_to(current_user.id, profile.id)
    result.update({
        "locked": False,
        "stats": summarize_totals([WatchLogEntry.from_model(log) for log in logs], now_utc().date()),
        "logs": [log.to_dict() for log in logs],
        "watchlist": [item.to_dict() for item in WatchlistRepository.get_visible_to(current_user.id, profile.id)],
        "lists": [lst.to_dict() for lst in ListRepository.get_visible_to(current_user.id, profile.id)],
    })
    return success_response(result)
