"""Per-title enrichment fetched from TMDB for one analytics computation.

Snapshots are built once at the fetch boundary with strict coercion, so the
analytics reducers never have to second-guess the provider's payload shape.
Lookups run in sequential batches; titles inside a batch are fetched
concurrently, which caps outbound requests at the batch size.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from constants import MEDIA_MOVIE, MEDIA_SERIES, MEDIA_TYPE_ALIASES, TOP_CAST_SIZE
from metrics import enrichment_lookups_total
from services.tmdb_client import poster_url
from utils import parse_year

logger = logging.getLogger("main")

EnrichmentKey = Tuple[int, str]
EnrichmentLookup = Callable[[int, str], Optional["TmdbDetailSnapshot"]]

DEFAULT_BATCH_SIZE = 10


def _positive_int(value) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _names(items, limit=None) -> Tuple[str, ...]:
    names = []
    for item in items or []:
        name = item.get("name") if isinstance(item, dict) else None
        if isinstance(name, str) and name.strip() and name not in names:
            names.append(name.strip())
        if limit and len(names) >= limit:
            break
    return tuple(names)


@dataclass(frozen=True)
class TmdbDetailSnapshot:
    tmdb_id: int
    media_type: str
    runtime: Optional[int] = None
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None
    genres: Tuple[str, ...] = ()
    directors: Tuple[str, ...] = ()
    cast: Tuple[str, ...] = ()
    vote_average: Optional[float] = None
    release_year: Optional[int] = None
    poster_url: Optional[str] = None

    @classmethod
    def from_tmdb(cls, payload: Dict[str, Any], media_type: str, image_base_url: str = None) -> "TmdbDetailSnapshot":
        """Coerce a TMDB detail payload (credits appended) into a snapshot."""
        if not isinstance(payload, dict) or payload.get("id") is None:
            raise ValueError("TMDB detail payload has no id")

        kind = MEDIA_TYPE_ALIASES.get(media_type, MEDIA_MOVIE)
        credits = payload.get("credits") if isinstance(payload.get("credits"), dict) else {}

        if kind == MEDIA_SERIES:
            run_times = payload.get("episode_run_time") or []
            runtime = _positive_int(run_times[0]) if run_times else None
            directors = _names(payload.get("created_by"))
            release = payload.get("first_air_date")
        else:
            runtime = _positive_int(payload.get("runtime"))
            directors = _names(c for c in credits.get("crew") or [] if isinstance(c, dict) and c.get("job") == "Director")
            release = payload.get("release_date")

        cast_members = [c for c in credits.get("cast") or [] if isinstance(c, dict)]
        cast_members.sort(key=lambda c: c.get("order") if isinstance(c.get("order"), int) else 10**6)

        vote_average = payload.get("vote_average")
        try:
            vote_average = float(vote_average) if vote_average is not None else None
        except (TypeError, ValueError):
            vote_average = None
        if payload.get("vote_count") == 0:
            # TMDB reports 0.0 for titles nobody has rated
            vote_average = None

        kwargs = {}
        if image_base_url:
            kwargs["base_url"] = image_base_url

        return cls(
            tmdb_id=int(payload["id"]),
            media_type=kind,
            runtime=runtime,
            number_of_seasons=_positive_int(payload.get("number_of_seasons")),
            number_of_episodes=_positive_int(payload.get("number_of_episodes")),
            genres=_names(payload.get("genres")),
            directors=directors,
            cast=_names(cast_members, limit=TOP_CAST_SIZE),
            vote_average=vote_average,
            release_year=parse_year(release),
            poster_url=poster_url(payload.get("poster_path"), **kwargs),
        )


def collect_enrichment_keys(entries: Iterable, limit: int = 0) -> List[EnrichmentKey]:
    """Distinct (tmdb_id, media_type) pairs in first-seen order.

    Entries without a TMDB id are skipped. A positive limit keeps only the
    first N distinct titles.
    """
    keys = []
    seen = set()
    for entry in entries:
        if entry.tmdb_id is None:
            continue
        key = (int(entry.tmdb_id), entry.media_type)
        if key in seen:
            continue
        seen.add(key)
        keys.append(key)
        if limit and len(keys) >= limit:
            break
    return keys


def _safe_lookup(lookup: EnrichmentLookup, key: EnrichmentKey) -> Optional[TmdbDetailSnapshot]:
    tmdb_id, media_type = key
    try:
        snapshot = lookup(tmdb_id, media_type)
    except Exception as e:
        enrichment_lookups_total.labels(outcome="failed").inc()
        logger.warning(f"Enrichment lookup failed for {media_type} {tmdb_id}: {e}")
        return None
    if snapshot is None:
        enrichment_lookups_total.labels(outcome="missing").inc()
        return None
    enrichment_lookups_total.labels(outcome="success").inc()
    return snapshot


def fetch_enrichment(keys: Iterable[EnrichmentKey], lookup: EnrichmentLookup,
                     batch_size: int = DEFAULT_BATCH_SIZE) -> Dict[EnrichmentKey, TmdbDetailSnapshot]:
    """Fetch snapshots for the given keys.

    Batch k+1 starts only after every lookup in batch k has settled. A failing
    or empty lookup drops that title and never aborts the batch.
    """
    keys = list(dict.fromkeys(keys))
    batch_size = max(1, int(batch_size or DEFAULT_BATCH_SIZE))
    snapshots = {}

    for start in range(0, len(keys), batch_size):
        batch = keys[start:start + batch_size]
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            results = list(executor.map(lambda key: _safe_lookup(lookup, key), batch))
        for key, snapshot in zip(batch, results):
            if snapshot is not None:
                snapshots[key] = snapshot
        logger.debug(f"Enrichment batch {start // batch_size + 1}: {len(batch)} titles, "
                     f"{sum(1 for r in results if r is not None)} enriched")

    return snapshots


def make_enrichment_lookup(client) -> EnrichmentLookup:
    """Adapt a TMDBClient to the (tmdb_id, media_type) -> snapshot signature"""

    def lookup(tmdb_id: int, media_type: str) -> Optional[TmdbDetailSnapshot]:
        payload = client.get_details(tmdb_id, media_type)
        return TmdbDetailSnapshot.from_tmdb(payload, media_type, image_base_url=client.image_base_url)

    return lookup
