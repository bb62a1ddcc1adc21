"""Watch-history analytics.

Every derivation is a small pure reducer over an immutable tuple of
WatchLogEntry (and, for the enrichment-backed ones, the (entry, snapshot)
pairs of titles TMDB could describe). compute_analytics fetches enrichment,
runs each reducer and assembles the view; a reducer that blows up only blanks
its own section.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from constants import (
    CATEGORY_LABELS,
    CATEGORY_RATING_FIELDS,
    MEDIA_MOVIE,
    MEDIA_SERIES,
    MEDIA_TYPE_ALIASES,
    MONTHLY_WINDOW,
    RATING_BUCKETS,
    RUNTIME_BUCKETS,
    TIMES_WATCHED_CAPPED,
    TIMES_WATCHED_CAPPED_VIEWS,
    TOP_GENRES_LIMIT,
    TOP_PEOPLE_LIMIT,
)
from metrics import analytics_duration_seconds
from services.enrichment import (
    DEFAULT_BATCH_SIZE,
    EnrichmentLookup,
    TmdbDetailSnapshot,
    collect_enrichment_keys,
    fetch_enrichment,
)
from utils import ensure_utc, now_utc, parse_date

logger = logging.getLogger("main")

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

EnrichedPair = Tuple["WatchLogEntry", TmdbDetailSnapshot]


@dataclass(frozen=True)
class WatchLogEntry:
    id: Any
    user_id: Any
    title: str
    media_type: str
    rating: float
    created_at: datetime
    tmdb_id: Optional[int] = None
    review: Optional[str] = None
    watched_date: Optional[date] = None
    poster_url: Optional[str] = None
    plot_rating: Optional[int] = None
    cinematography_rating: Optional[int] = None
    acting_rating: Optional[int] = None
    soundtrack_rating: Optional[int] = None
    pacing_rating: Optional[int] = None
    casting_rating: Optional[int] = None
    watched_on: Optional[str] = None
    watch_duration: Optional[str] = None
    discovered_via: Optional[str] = None
    rewatchability: Optional[str] = None
    watched_with: Optional[str] = None
    times_watched: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatchLogEntry":
        fields = {name: data.get(name) for name in cls.__dataclass_fields__}
        fields["media_type"] = MEDIA_TYPE_ALIASES.get(data.get("media_type"), data.get("media_type"))
        fields["rating"] = float(data["rating"])
        fields["watched_date"] = parse_date(data.get("watched_date"))
        fields["created_at"] = ensure_utc(data.get("created_at")) or now_utc()
        return cls(**fields)

    @classmethod
    def from_model(cls, log) -> "WatchLogEntry":
        return cls.from_dict({name: getattr(log, name, None) for name in cls.__dataclass_fields__})

    @property
    def watched_at(self) -> datetime:
        """Watch moment: watched_date (midnight UTC) when set, else created_at"""
        if self.watched_date:
            return datetime.combine(self.watched_date, time.min, tzinfo=timezone.utc)
        return ensure_utc(self.created_at)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "media_type": self.media_type,
            "rating": self.rating,
            "poster_url": self.poster_url,
            "watched_date": self.watched_date.isoformat() if self.watched_date else None,
            "watched_at": self.watched_at.date().isoformat(),
        }


def round_half_up(value: float, places: int = 1):
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def chronological(entries: Sequence[WatchLogEntry]) -> List[WatchLogEntry]:
    # sorted() is stable, so entries sharing a moment keep their input order
    return sorted(entries, key=lambda e: e.watched_at)


# ---------- ENRICHMENT-INDEPENDENT REDUCERS ----------

def summarize_totals(entries: Sequence[WatchLogEntry], today: date) -> Dict[str, Any]:
    total = len(entries)
    ratings = [e.rating for e in entries]
    return {
        "total": total,
        "movies": sum(1 for e in entries if e.media_type == MEDIA_MOVIE),
        "series": sum(1 for e in entries if e.media_type == MEDIA_SERIES),
        "mean_rating": round_half_up(sum(ratings) / total, 1) if total else None,
        "reviews": sum(1 for e in entries if e.review and e.review.strip()),
        "this_month": sum(
            1 for e in entries if (e.watched_at.year, e.watched_at.month) == (today.year, today.month)
        ),
    }


def views_for(entry: WatchLogEntry) -> int:
    """Viewings recorded on one entry; "6+" counts as exactly 6"""
    if not entry.times_watched:
        return 1
    if entry.times_watched == TIMES_WATCHED_CAPPED:
        return TIMES_WATCHED_CAPPED_VIEWS
    try:
        return max(1, int(entry.times_watched))
    except (TypeError, ValueError):
        return 1


def count_total_views(entries: Sequence[WatchLogEntry]) -> Dict[str, Any]:
    total_views = sum(views_for(e) for e in entries)
    return {
        "total_views": total_views,
        "entry_count": len(entries),
        "has_rewatches": total_views > len(entries),
    }


def rating_distribution(entries: Sequence[WatchLogEntry]) -> List[Dict[str, Any]]:
    buckets = {value: 0 for value in RATING_BUCKETS}
    for entry in entries:
        if entry.rating in buckets:
            buckets[entry.rating] += 1
    return [{"rating": value, "count": buckets[value]} for value in sorted(buckets, reverse=True)]


def _month_window(today: date, size: int = MONTHLY_WINDOW) -> List[Tuple[int, int]]:
    months = []
    year, month = today.year, today.month
    for _ in range(size):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def monthly_activity(entries: Sequence[WatchLogEntry], today: date) -> List[Dict[str, Any]]:
    window = _month_window(today)
    buckets = {ym: {"movies": 0, "series": 0} for ym in window}
    for entry in entries:
        moment = entry.watched_at
        bucket = buckets.get((moment.year, moment.month))
        if bucket is None:
            continue
        if entry.media_type == MEDIA_SERIES:
            bucket["series"] += 1
        else:
            bucket["movies"] += 1
    return [
        {
            "key": f"{year}-{month:02d}",
            "label": MONTH_LABELS[month - 1],
            "year": year,
            "movies": buckets[(year, month)]["movies"],
            "series": buckets[(year, month)]["series"],
        }
        for year, month in window
    ]


def media_type_split(entries: Sequence[WatchLogEntry]) -> List[Dict[str, Any]]:
    movies = sum(1 for e in entries if e.media_type == MEDIA_MOVIE)
    series = sum(1 for e in entries if e.media_type == MEDIA_SERIES)
    split = [{"name": "Movies", "value": movies}, {"name": "Series", "value": series}]
    return [item for item in split if item["value"] > 0]


def group_count(entries: Sequence[WatchLogEntry], field: str) -> List[Dict[str, Any]]:
    """Count entries per value of a field, skipping unset values, most common first"""
    counts = Counter(getattr(e, field) for e in entries if getattr(e, field))
    # Counter keeps first-seen order, so ties stay in encounter order
    return [{"name": name, "count": count} for name, count in sorted(counts.items(), key=lambda kv: -kv[1])]


def category_averages(entries: Sequence[WatchLogEntry]) -> List[Dict[str, Any]]:
    result = []
    for field in CATEGORY_RATING_FIELDS:
        values = [getattr(e, field) for e in entries if getattr(e, field)]
        result.append({
            "category": field,
            "label": CATEGORY_LABELS[field],
            "average": round_half_up(sum(values) / len(values), 1) if values else None,
            "count": len(values),
        })
    return result


def rating_extremes(entries: Sequence[WatchLogEntry]) -> Dict[str, Any]:
    ordered = chronological(entries)
    if not ordered:
        return {"highest": None, "lowest": None}
    highest = lowest = ordered[0]
    for entry in ordered[1:]:
        if entry.rating > highest.rating:
            highest = entry
        if entry.rating < lowest.rating:
            lowest = entry
    return {"highest": highest.summary(), "lowest": lowest.summary()}


# ---------- ENRICHMENT-BACKED REDUCERS ----------

def genre_distribution(pairs: Sequence[EnrichedPair]) -> List[Dict[str, Any]]:
    counts = Counter(genre for _, snapshot in pairs for genre in snapshot.genres)
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])[:TOP_GENRES_LIMIT]
    return [{"name": name, "count": count} for name, count in ranked]


def decade_distribution(pairs: Sequence[EnrichedPair]) -> List[Dict[str, Any]]:
    counts = Counter((s.release_year // 10) * 10 for _, s in pairs if s.release_year)
    return [{"decade": f"{decade}s", "count": counts[decade]} for decade in sorted(counts)]


def runtime_stats(pairs: Sequence[EnrichedPair]) -> Dict[str, Any]:
    runtimes = [s.runtime for e, s in pairs if e.media_type == MEDIA_MOVIE and s.runtime]
    buckets = []
    for label, low, high in RUNTIME_BUCKETS:
        count = sum(1 for r in runtimes if r >= low and (high is None or r < high))
        buckets.append({"range": label, "count": count})
    return {
        "count": len(runtimes),
        "average": round_half_up(sum(runtimes) / len(runtimes), 0) if runtimes else None,
        "total_hours": round_half_up(sum(runtimes) / 60, 1) if runtimes else 0.0,
        "buckets": buckets,
    }


def release_scatter(pairs: Sequence[EnrichedPair]) -> List[Dict[str, Any]]:
    return [
        {
            "watched_at": int(entry.watched_at.timestamp() * 1000),
            "release_year": snapshot.release_year,
            "title": entry.title,
        }
        for entry, snapshot in pairs
        if snapshot.release_year
    ]


def top_people(pairs: Sequence[EnrichedPair]) -> Dict[str, List[Dict[str, Any]]]:
    directors = Counter(name for _, s in pairs for name in s.directors)
    actors = Counter(name for _, s in pairs for name in s.cast)

    def top(counter):
        ranked = sorted(counter.items(), key=lambda kv: -kv[1])[:TOP_PEOPLE_LIMIT]
        return [{"name": name, "count": count} for name, count in ranked]

    return {"directors": top(directors), "actors": top(actors)}


def divergence(pairs: Sequence[EnrichedPair]) -> Dict[str, Any]:
    """Biggest gaps between the user's rating (x2) and the TMDB vote average"""
    hidden_gem = unpopular = None
    best = worst = None
    ordered = sorted(pairs, key=lambda pair: pair[0].watched_at)
    for entry, snapshot in ordered:
        if snapshot.vote_average is None:
            continue
        delta = entry.rating * 2 - snapshot.vote_average
        if delta > 0 and (best is None or delta > best):
            best, hidden_gem = delta, (entry, snapshot)
        if delta < 0 and (worst is None or delta < worst):
            worst, unpopular = delta, (entry, snapshot)

    def describe(pair, delta):
        if pair is None:
            return None
        entry, snapshot = pair
        return dict(
            entry.summary(),
            user_rating=entry.rating,
            tmdb_rating=snapshot.vote_average,
            delta=round_half_up(delta, 1),
        )

    return {"hidden_gem": describe(hidden_gem, best), "unpopular_opinion": describe(unpopular, worst)}


# ---------- ASSEMBLY ----------

def _derive(name: str, reducer: Callable, *args):
    try:
        return reducer(*args)
    except Exception as e:
        logger.error(f"Analytics derivation '{name}' failed: {e}", exc_info=True)
        return None


def enrich_entries(entries: Iterable[WatchLogEntry],
                   snapshots: Dict[Tuple[int, str], TmdbDetailSnapshot]) -> Tuple[EnrichedPair, ...]:
    pairs = []
    for entry in entries:
        if entry.tmdb_id is None:
            continue
        snapshot = snapshots.get((int(entry.tmdb_id), entry.media_type))
        if snapshot is not None:
            pairs.append((entry, snapshot))
    return tuple(pairs)


def compute_analytics(watch_logs: Iterable, enrichment_lookup: Optional[EnrichmentLookup],
                      today: Optional[date] = None, batch_size: int = DEFAULT_BATCH_SIZE,
                      max_enriched_titles: int = 0) -> Dict[str, Any]:
    """Build the analytics view for one user's watch history.

    Args:
        watch_logs: WatchLogEntry items (ORM rows and dicts are converted)
        enrichment_lookup: (tmdb_id, media_type) -> TmdbDetailSnapshot or None;
            may raise. None skips enrichment entirely.
        today: Reference date for month windows, defaults to the current UTC date
        batch_size: Concurrent lookups per enrichment batch
        max_enriched_titles: Enrich only the first N distinct titles (0 = all)

    Returns:
        {"has_data": False} for an empty history, otherwise the full view
    """
    entries = tuple(_as_entry(log) for log in watch_logs)
    if not entries:
        return {"has_data": False}

    today = today or now_utc().date()

    with analytics_duration_seconds.time():
        snapshots = {}
        keys = collect_enrichment_keys(entries, limit=max_enriched_titles)
        if enrichment_lookup is not None and keys:
            snapshots = fetch_enrichment(keys, enrichment_lookup, batch_size=batch_size)
        pairs = enrich_entries(entries, snapshots)

        view = {
            "has_data": True,
            "totals": _derive("totals", summarize_totals, entries, today),
            "views": _derive("views", count_total_views, entries),
            "rating_distribution": _derive("rating_distribution", rating_distribution, entries),
            "monthly_activity": _derive("monthly_activity", monthly_activity, entries, today),
            "media_types": _derive("media_types", media_type_split, entries),
            "platforms": _derive("platforms", group_count, entries, "watched_on"),
            "category_averages": _derive("category_averages", category_averages, entries),
            "rewatchability": _derive("rewatchability", group_count, entries, "rewatchability"),
            "discovery_sources": _derive("discovery_sources", group_count, entries, "discovered_via"),
            "companions": _derive("companions", group_count, entries, "watched_with"),
            "extremes": _derive("extremes", rating_extremes, entries),
            "genres": _derive("genres", genre_distribution, pairs),
            "decades": _derive("decades", decade_distribution, pairs),
            "runtime": _derive("runtime", runtime_stats, pairs),
            "release_scatter": _derive("release_scatter", release_scatter, pairs),
            "top_people": _derive("top_people", top_people, pairs),
            "divergence": _derive("divergence", divergence, pairs),
            "enrichment": {
                "titles": len(keys),
                "enriched": len(snapshots),
                "entries_enriched": len(pairs),
            },
        }

    logger.info(f"Analytics computed: {len(entries)} entries, {len(snapshots)}/{len(keys)} titles enriched")
    return view


def _as_entry(log) -> WatchLogEntry:
    if isinstance(log, WatchLogEntry):
        return log
    if isinstance(log, dict):
        return WatchLogEntry.from_dict(log)
    return WatchLogEntry.from_model(log)
