"""
List routes - user curated collections of titles
"""

from flask import Blueprint, request
from flask_login import current_user, login_required
import logging

from api_responses import success_response, handle_api_errors
from exceptions import AuthorizationException, DuplicateEntryException, NotFoundException, ValidationException
from repositories.list_repository import ListRepository
from routes.watchlist import title_fields
from services.friendship_service import FriendshipService

logger = logging.getLogger("main")

lists_bp = Blueprint("lists", __name__, url_prefix="/api")


def _list_fields(data, partial=False):
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    fields = {}
    if not partial or "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationException("List name is required", field="name")
        fields["name"] = name
    if "description" in data:
        fields["description"] = (data.get("description") or "").strip() or None
    return fields


def _owned_list(list_id):
    lst = ListRepository.get_by_id(list_id)
    if lst is None:
        raise NotFoundException("List", list_id)
    if lst.user_id != current_user.id:
        raise AuthorizationException("You can only change your own lists")
    return lst


@lists_bp.route("/lists")
@login_required
@handle_api_errors
def get_lists():
    return success_response([lst.to_dict() for lst in ListRepository.get_all_by_user(current_user.id)])


@lists_bp.route("/lists", methods=["POST"])
@login_required
@handle_api_errors
def create_list():
    lst = ListRepository.create(user_id=current_user.id, **_list_fields(request.get_json(silent=True)))
    logger.info(f"List {lst.id} created by user {current_user.id}")
    return success_response(lst.to_dict(include_items=True), status_code=201)


@lists_bp.route("/lists/<int:list_id>")
@login_required
@handle_api_errors
def get_list(list_id):
    lst = ListRepository.get_by_id(list_id)
    if lst is None:
        raise NotFoundException("List", list_id)
    FriendshipService().ensure_can_view(current_user.id, lst.user_id)
    return success_response(lst.to_dict(include_items=True))


@lists_bp.route("/lists/<int:list_id>", methods=["PUT"])
@login_required
@handle_api_errors
def update_list(list_id):
    _owned_list(list_id)
    lst = ListRepository.update(list_id, **_list_fields(request.get_json(silent=True), partial=True))
    return success_response(lst.to_dict(include_items=True))


@lists_bp.route("/lists/<int:list_id>", methods=["DELETE"])
@login_required
@handle_api_errors
def delete_list(list_id):
    _owned_list(list_id)
    ListRepository.delete(list_id)
    logger.info(f"List {list_id} deleted by user {current_user.id}")
    return success_response(message="List deleted")


@lists_bp.route("/lists/<int:list_id>/items", methods=["POST"])
@login_required
@handle_api_errors
def add_list_item(list_id):
    _owned_list(list_id)
    fields = title_fields(request.get_json(silent=True))
    try:
        item = ListRepository.add_item(list_id, **fields)
    except DuplicateEntryException:
        item = ListRepository.get_item_by_title(list_id, fields["tmdb_id"], fields["media_type"])
        return success_response(item.to_dict(), message="Already in this list")
    return success_response(item.to_dict(), message="Added to list", status_code=201)


@lists_bp.route("/lists/<int:list_id>/items/<int:item_id>", methods=["DELETE"])
@login_required
@handle_api_errors
def remove_list_item(list_id, item_id):
    _owned_list(list_id)
    if not ListRepository.delete_item(list_id, item_id):
        raise NotFoundException("List item", item_id)
    return success_response(message="Removed from list")
