"""
Media routes - TMDB search and title details
"""

from flask import Blueprint, request
from flask_login import login_required
import logging

from api_responses import success_response, handle_api_errors
from constants import MEDIA_MOVIE, MEDIA_SERIES
from exceptions import ValidationException
from services.enrichment import TmdbDetailSnapshot
from services.tmdb_client import TMDBClient
from services.watchlog_service import normalize_media_type
from settings import load_settings

logger = logging.getLogger("main")

media_bp = Blueprint("media", __name__, url_prefix="/api/media")


def get_tmdb_client():
    return TMDBClient.from_settings(load_settings())


@media_bp.route("/search")
@login_required
@handle_api_errors
def search():
    """Search TMDB; type is movie, series (tv) or all"""
    query = request.args.get("q", "")
    kind = request.args.get("type", "all").lower()
    try:
        page = int(request.args.get("page", 1))
    except ValueError:
        raise ValidationException("page must be an integer", field="page")

    client = get_tmdb_client()
    if kind == "all":
        results = client.search(query, MEDIA_MOVIE, page) + client.search(query, MEDIA_SERIES, page)
    else:
        results = client.search(query, normalize_media_type(kind), page)
    return success_response(results)


@media_bp.route("/<media_type>/<int:tmdb_id>")
@login_required
@handle_api_errors
def details(media_type, tmdb_id):
    kind = normalize_media_type(media_type)
    client = get_tmdb_client()
    payload = client.get_details(tmdb_id, kind)
    snapshot = TmdbDetailSnapshot.from_tmdb(payload, kind, image_base_url=client.image_base_url)
    return success_response({
        "id": snapshot.tmdb_id,
        "media_type": kind,
        "title": payload.get("title") or payload.get("name"),
        "overview": payload.get("overview"),
        "tagline": payload.get("tagline"),
        "release_date": payload.get("release_date") or payload.get("first_air_date"),
        "release_year": snapshot.release_year,
        "runtime": snapshot.runtime,
        "number_of_seasons": snapshot.number_of_seasons,
        "number_of_episodes": snapshot.number_of_episodes,
        "genres": list(snapshot.genres),
        "directors": list(snapshot.directors),
        "cast": list(snapshot.cast),
        "vote_average": snapshot.vote_average,
        "poster_url": snapshot.poster_url,
        "backdrop_url": client.poster_url(payload.get("backdrop_path"), "w1280"),
    })


@media_bp.route("/<media_type>/<int:tmdb_id>/providers")
@login_required
@handle_api_errors
def providers(media_type, tmdb_id):
    region = request.args.get("region")
    return success_response(get_tmdb_client().get_watch_providers(tmdb_id, normalize_media_type(media_type), region))


@media_bp.route("/<media_type>/<int:tmdb_id>/similar")
@login_required
@handle_api_errors
def similar(media_type, tmdb_id):
    return success_response(get_tmdb_client().get_similar(tmdb_id, normalize_media_type(media_type)))


@media_bp.route("/person/<int:person_id>/credits")
@login_required
@handle_api_errors
def person_credits(person_id):
    return success_response(get_tmdb_client().get_person_credits(person_id))
