"""
Analytics routes - aggregated view of the logged in user's watch history
"""

from flask import Blueprint
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError
import logging

from api_responses import success_response, handle_api_errors
from repositories.watchlog_repository import WatchLogRepository
from services.analytics import WatchLogEntry, compute_analytics
from services.enrichment import make_enrichment_lookup
from services.tmdb_client import TMDBClient
from settings import load_settings

logger = logging.getLogger("main")

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api")


def build_enrichment_lookup(settings):
    client = TMDBClient.from_settings(settings)
    if not client.is_configured:
        logger.warning("TMDB credentials missing, analytics will skip enrichment")
        return None
    return make_enrichment_lookup(client)


@analytics_bp.route("/analytics")
@login_required
@handle_api_errors
def get_analytics():
    try:
        entries = [WatchLogEntry.from_model(log) for log in WatchLogRepository.get_all_by_user(current_user.id)]
    except SQLAlchemyError as e:
        logger.error(f"Error loading watch logs for analytics (user {current_user.id}): {e}")
        return success_response({"has_data": False})

    settings = load_settings()
    analytics_settings = settings.get("analytics", {})
    view = compute_analytics(
        entries,
        build_enrichment_lookup(settings) if entries else None,
        batch_size=analytics_settings.get("batch_size", 10),
        max_enriched_titles=analytics_settings.get("max_enriched_titles", 20),
    )
    return success_response(view)
