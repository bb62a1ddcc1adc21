"""
Watchlist routes - titles the logged in user wants to watch
"""

from flask import Blueprint, request
from flask_login import current_user, login_required
import logging

from api_responses import success_response, handle_api_errors
from exceptions import AuthorizationException, DuplicateEntryException, NotFoundException, ValidationException
from repositories.watchlist_repository import WatchlistRepository
from services.watchlog_service import normalize_media_type, validate_title, validate_tmdb_id

logger = logging.getLogger("main")

watchlist_bp = Blueprint("watchlist", __name__, url_prefix="/api")


def title_fields(data):
    """tmdb_id / media_type / title / poster_url from a JSON body"""
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    tmdb_id = validate_tmdb_id(data.get("tmdb_id"))
    if tmdb_id is None:
        raise ValidationException("tmdb_id is required", field="tmdb_id")
    return {
        "tmdb_id": tmdb_id,
        "media_type": normalize_media_type(data.get("media_type")),
        "title": validate_title(data.get("title")),
        "poster_url": data.get("poster_url") or None,
    }


@watchlist_bp.route("/watchlist")
@login_required
@handle_api_errors
def get_watchlist():
    items = WatchlistRepository.get_all_by_user(current_user.id)
    return success_response([item.to_dict() for item in items])


@watchlist_bp.route("/watchlist", methods=["POST"])
@login_required
@handle_api_errors
def add_to_watchlist():
    fields = title_fields(request.get_json(silent=True))
    try:
        item = WatchlistRepository.create(user_id=current_user.id, **fields)
    except DuplicateEntryException:
        item = WatchlistRepository.get_by_user_and_title(current_user.id, fields["tmdb_id"], fields["media_type"])
        return success_response(item.to_dict(), message="Already on your watchlist")

    logger.info(f"Watchlist: user {current_user.id} added {item.title}")
    return success_response(item.to_dict(), message="Added to watchlist", status_code=201)


@watchlist_bp.route("/watchlist/<int:item_id>", methods=["DELETE"])
@login_required
@handle_api_errors
def remove_from_watchlist(item_id):
    item = WatchlistRepository.get_by_id(item_id)
    if item is None:
        raise NotFoundException("Watchlist item", item_id)
    if item.user_id != current_user.id:
        raise AuthorizationException("You can only change your own watchlist")

    WatchlistRepository.delete(item_id)
    return success_response(message="Removed from watchlist")
