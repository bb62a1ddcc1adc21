"""
System Routes - health probes
"""

from flask import Blueprint
from sqlalchemy import text
import socket

from api_responses import success_response, handle_api_errors
from constants import BUILD_VERSION
from db import db, logger
from services.tmdb_client import TMDBClient
from settings import load_settings
from utils import now_utc

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.route("/health", methods=["GET"])
@handle_api_errors
def health_check_api():
    """
    Health check endpoint for monitoring.
    """
    overall_status = "healthy"
    checks = {
        "timestamp": now_utc().isoformat(),
        "version": BUILD_VERSION,
        "hostname": socket.gethostname(),
        "database": "unknown",
        "tmdb": "unknown",
    }

    # Check Database connection
    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        checks["database"] = f"error: {str(e)}"
        overall_status = "unhealthy"

    # TMDB is optional, analytics degrade without it
    checks["tmdb"] = "configured" if TMDBClient.from_settings(load_settings()).is_configured else "not_configured"

    status_code = 200 if overall_status == "healthy" else 503
    return success_response(data={"status": overall_status, "checks": checks}, status_code=status_code)


@system_bp.route("/health/ready", methods=["GET"])
@handle_api_errors
def health_ready_api():
    """
    Readiness probe - checks if the application is ready to serve requests.
    """
    db.session.execute(text("SELECT 1"))
    return success_response(data={"status": "ready", "timestamp": now_utc().isoformat()})


@system_bp.route("/health/live", methods=["GET"])
@handle_api_errors
def health_live_api():
    """
    Liveness probe - checks if the application is alive.
    """
    return success_response(data={"status": "alive", "timestamp": now_utc().isoformat()})
