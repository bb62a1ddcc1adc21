"""Watch-log validation and owner-only writes.

Every submission is fully validated before anything touches the datastore, so
a rejected form never leaves a partial row behind.
"""
import logging
from typing import Any, Dict, Optional

from constants import (
    CATEGORY_RATING_FIELDS,
    CONTEXT_FIELDS,
    MEDIA_TYPE_ALIASES,
    RATING_BUCKETS,
    TIMES_WATCHED_VALUES,
)
from exceptions import AuthorizationException, NotFoundException, ValidationException
from repositories.watchlog_repository import WatchLogRepository
from utils import parse_date

logger = logging.getLogger("main")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_title(value) -> str:
    if _blank(value):
        raise ValidationException("Title is required", field="title")
    return str(value).strip()


def normalize_media_type(value) -> str:
    kind = MEDIA_TYPE_ALIASES.get(str(value or "").strip().lower())
    if not kind:
        raise ValidationException(f"Unknown media type: {value}", field="media_type")
    return kind


def validate_rating(value) -> float:
    """Overall rating, 0.5..5.0 in half steps; zero means "not rated" and is rejected"""
    if _blank(value):
        raise ValidationException("Please select a rating", field="rating")
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise ValidationException("Rating must be a number", field="rating")
    if rating == 0:
        raise ValidationException("Please select a rating", field="rating")
    if rating not in RATING_BUCKETS:
        raise ValidationException("Rating must be between 0.5 and 5 in steps of 0.5", field="rating")
    return rating


def validate_category_rating(field: str, value) -> Optional[int]:
    if _blank(value):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationException(f"{field} must be a whole number", field=field)
    if number == 0:
        return None
    if number != float(value) or not 1 <= number <= 5:
        raise ValidationException(f"{field} must be between 1 and 5", field=field)
    return number


def validate_context(field: str, value) -> Optional[str]:
    """Closed vocabularies reject unknown values; open ones fall back to Other"""
    if _blank(value):
        return None
    value = str(value).strip()
    vocabulary, fallback = CONTEXT_FIELDS[field]
    if value in vocabulary:
        return value
    if fallback is not None:
        return fallback
    raise ValidationException(f"Invalid value for {field}: {value}", field=field)


def validate_times_watched(value) -> Optional[str]:
    if _blank(value):
        return None
    value = str(value).strip()
    if value not in TIMES_WATCHED_VALUES:
        raise ValidationException(f"Invalid value for times_watched: {value}", field="times_watched")
    return value


def validate_tmdb_id(value) -> Optional[int]:
    if _blank(value):
        return None
    try:
        tmdb_id = int(value)
    except (TypeError, ValueError):
        raise ValidationException("tmdb_id must be an integer", field="tmdb_id")
    if tmdb_id <= 0:
        raise ValidationException("tmdb_id must be positive", field="tmdb_id")
    return tmdb_id


def validate_watch_log(data: Dict[str, Any]) -> Dict[str, Any]:
    """Clean a submitted watch-log form into column values.

    Raises:
        ValidationException: first invalid field, with its name in `field`
    """
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")

    try:
        watched_date = parse_date(data.get("watched_date"))
    except ValueError:
        raise ValidationException("watched_date must be an ISO date (YYYY-MM-DD)", field="watched_date")

    review = data.get("review")
    clean = {
        "title": validate_title(data.get("title")),
        "media_type": normalize_media_type(data.get("media_type")),
        "rating": validate_rating(data.get("rating")),
        "tmdb_id": validate_tmdb_id(data.get("tmdb_id")),
        "poster_url": data.get("poster_url") or None,
        "review": review.strip() if isinstance(review, str) and review.strip() else None,
        "watched_date": watched_date,
        "times_watched": validate_times_watched(data.get("times_watched")),
    }
    for field in CATEGORY_RATING_FIELDS:
        clean[field] = validate_category_rating(field, data.get(field))
    for field in CONTEXT_FIELDS:
        if field != "times_watched":
            clean[field] = validate_context(field, data.get(field))
    return clean


class WatchLogService:
    """Create / update / delete restricted to the log's owner"""

    def _owned(self, user_id, log_id):
        log = WatchLogRepository.get_by_id(log_id)
        if log is None:
            raise NotFoundException("Watch log", log_id)
        if log.user_id != user_id:
            raise AuthorizationException("You can only change your own watch logs")
        return log

    def create(self, user_id, data: Dict[str, Any]):
        fields = validate_watch_log(data)
        log = WatchLogRepository.create(user_id=user_id, **fields)
        logger.info(f"Watch log {log.id} created for user {user_id}: {log.title}")
        return log

    def update(self, user_id, log_id, data: Dict[str, Any]):
        """Replace every editable field with the re-submitted form"""
        self._owned(user_id, log_id)
        fields = validate_watch_log(data)
        log = WatchLogRepository.update(log_id, **fields)
        logger.info(f"Watch log {log_id} updated by user {user_id}")
        return log

    def delete(self, user_id, log_id):
        self._owned(user_id, log_id)
        WatchLogRepository.delete(log_id)
        logger.info(f"Watch log {log_id} deleted by user {user_id}")

    def get_visible(self, viewer_id, log_id):
        """A single log, if its owner is the viewer or a friend of the viewer"""
        log = WatchLogRepository.get_by_id(log_id)
        if log is None:
            raise NotFoundException("Watch log", log_id)
        if log.user_id != viewer_id and not WatchLogRepository.get_visible_to(viewer_id, log.user_id):
            raise AuthorizationException("Only friends can see this user's activity")
        return log
