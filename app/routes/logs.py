"""
Watch log routes - diary entries for the logged in user
"""

from flask import Blueprint, request
from flask_login import current_user, login_required
import logging

from api_responses import success_response, handle_api_errors
from exceptions import ValidationException
from repositories.watchlog_repository import WatchLogRepository
from services.watchlog_service import WatchLogService

logger = logging.getLogger("main")

logs_bp = Blueprint("logs", __name__, url_prefix="/api")

watchlog_service = WatchLogService()


def _form():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    return data


@logs_bp.route("/logs")
@login_required
@handle_api_errors
def list_logs():
    """Logged in user's diary, newest first"""
    logs = WatchLogRepository.get_all_by_user(current_user.id)
    return success_response([log.to_dict() for log in logs])


@logs_bp.route("/logs", methods=["POST"])
@login_required
@handle_api_errors
def create_log():
    log = watchlog_service.create(current_user.id, _form())
    return success_response(log.to_dict(), message="Watch logged", status_code=201)


@logs_bp.route("/logs/<int:log_id>")
@login_required
@handle_api_errors
def get_log(log_id):
    log = watchlog_service.get_visible(current_user.id, log_id)
    return success_response(log.to_dict())


@logs_bp.route("/logs/<int:log_id>", methods=["PUT"])
@login_required
@handle_api_errors
def update_log(log_id):
    log = watchlog_service.update(current_user.id, log_id, _form())
    return success_response(log.to_dict(), message="Watch log updated")


@logs_bp.route("/logs/<int:log_id>", methods=["DELETE"])
@login_required
@handle_api_errors
def delete_log(log_id):
    watchlog_service.delete(current_user.id, log_id)
    return success_response(message="Watch log deleted")
