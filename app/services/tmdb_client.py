"""
Client for the TMDB metadata API (search, details, providers, similar, people)
"""
import requests
import time
import logging
from typing import Optional, Dict, Any, List

from constants import TMDB_MEDIA_PATHS, MEDIA_TYPE_ALIASES, TMDB_BASE_URL, TMDB_IMAGE_BASE_URL
from exceptions import MetadataProviderException
from metrics import tmdb_requests_total, tmdb_request_duration_seconds
from utils import sanitize_sensitive_data

logger = logging.getLogger("main")


def poster_url(path: Optional[str], size: str = "w500", base_url: str = TMDB_IMAGE_BASE_URL) -> Optional[str]:
    """Compose a full image URL from a TMDB relative path"""
    if not path:
        return None
    return f"{base_url.rstrip('/')}/{size}{path}"


def tmdb_media_path(media_type: str) -> str:
    """TMDB path segment ('movie' / 'tv') for a media kind or alias"""
    kind = MEDIA_TYPE_ALIASES.get((media_type or "").lower())
    if not kind:
        raise ValueError(f"Unknown media type: {media_type}")
    return TMDB_MEDIA_PATHS[kind]


class TMDBClient:
    """Client for TMDB API v3"""

    def __init__(self, api_key: str = "", access_token: str = "", base_url: str = TMDB_BASE_URL,
                 image_base_url: str = TMDB_IMAGE_BASE_URL, timeout: float = 10, language: str = "en-US"):
        self.api_key = api_key
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url
        self.timeout = timeout
        self.language = language
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "CineLog Watch Tracker",
            "Accept": "application/json",
        })
        if access_token:
            self.session.headers["Authorization"] = f"Bearer {access_token}"

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "TMDBClient":
        tmdb = settings.get("tmdb", {})
        return cls(
            api_key=tmdb.get("api_key", ""),
            access_token=tmdb.get("access_token", ""),
            base_url=tmdb.get("base_url") or TMDB_BASE_URL,
            image_base_url=tmdb.get("image_base_url") or TMDB_IMAGE_BASE_URL,
            timeout=tmdb.get("timeout", 10),
            language=tmdb.get("language", "en-US"),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key or self.access_token)

    def _get(self, path: str, endpoint: str, **params) -> Dict[str, Any]:
        """GET a TMDB path and return the decoded JSON object"""
        if not self.is_configured:
            raise MetadataProviderException("TMDB credentials are not configured")

        if self.api_key:
            params["api_key"] = self.api_key
        params.setdefault("language", self.language)

        start = time.time()
        try:
            response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            status = getattr(getattr(e, "response", None), "status_code", None) or "network"
            tmdb_requests_total.labels(endpoint=endpoint, status=str(status)).inc()
            logger.error(f"TMDB {endpoint} error for {path} {sanitize_sensitive_data(params)}: {e}")
            raise MetadataProviderException(f"TMDB {endpoint} failed: {e}") from e
        except ValueError as e:
            tmdb_requests_total.labels(endpoint=endpoint, status="malformed").inc()
            logger.error(f"TMDB {endpoint} returned malformed JSON for {path}: {e}")
            raise MetadataProviderException(f"TMDB {endpoint} returned malformed JSON") from e
        finally:
            tmdb_request_duration_seconds.labels(endpoint=endpoint).observe(time.time() - start)

        if not isinstance(data, dict):
            tmdb_requests_total.labels(endpoint=endpoint, status="malformed").inc()
            raise MetadataProviderException(f"TMDB {endpoint} returned an unexpected body")

        tmdb_requests_total.labels(endpoint=endpoint, status=str(response.status_code)).inc()
        return data

    def _normalize_result(self, result: Dict[str, Any], media_type: Optional[str] = None) -> Dict[str, Any]:
        kind = media_type or result.get("media_type")
        return {
            "id": result.get("id"),
            "media_type": MEDIA_TYPE_ALIASES.get(kind, kind),
            "title": result.get("title") or result.get("name") or "Untitled",
            "release_date": result.get("release_date") or result.get("first_air_date") or None,
            "overview": result.get("overview"),
            "poster_path": result.get("poster_path"),
            "poster_url": poster_url(result.get("poster_path"), "w92", self.image_base_url),
            "vote_average": result.get("vote_average"),
        }

    def search(self, query: str, media_type: str = "movie", page: int = 1) -> List[Dict[str, Any]]:
        """Search titles by name, ranked as TMDB returns them"""
        if not query or not query.strip():
            return []
        path = tmdb_media_path(media_type)
        data = self._get(f"/search/{path}", "search", query=query.strip(), page=page)
        return [self._normalize_result(r, media_type) for r in data.get("results", [])]

    def get_details(self, tmdb_id: int, media_type: str) -> Dict[str, Any]:
        """Full detail payload with credits appended"""
        path = tmdb_media_path(media_type)
        return self._get(f"/{path}/{int(tmdb_id)}", "details", append_to_response="credits")

    def get_watch_providers(self, tmdb_id: int, media_type: str, region: Optional[str] = None) -> Dict[str, Any]:
        """Watch providers keyed by region, or a single region's entry"""
        path = tmdb_media_path(media_type)
        results = self._get(f"/{path}/{int(tmdb_id)}/watch/providers", "providers").get("results", {})
        if region:
            return results.get(region.upper(), {})
        return results

    def get_similar(self, tmdb_id: int, media_type: str) -> List[Dict[str, Any]]:
        path = tmdb_media_path(media_type)
        data = self._get(f"/{path}/{int(tmdb_id)}/similar", "similar")
        return [self._normalize_result(r, media_type) for r in data.get("results", [])]

    def get_person_credits(self, person_id: int) -> Dict[str, Any]:
        """Combined movie and TV credits for a person"""
        data = self._get(f"/person/{int(person_id)}/combined_credits", "person_credits")
        return {
            "id": data.get("id", person_id),
            "cast": [self._normalize_result(c) for c in data.get("cast", [])],
            "crew": [dict(self._normalize_result(c), job=c.get("job")) for c in data.get("crew", [])],
        }

    def poster_url(self, path: Optional[str], size: str = "w500") -> Optional[str]:
        return poster_url(path, size, self.image_base_url)
