from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from .config import PoolConfig
from .policy import RemoteCall, SourceResult, TolerancePolicy, attempt
from .seeds import SeedSet

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class CandidateTrack:
    id: str
    uri: str


@dataclass(frozen=True)
class SectionPool:
    candidates: List[CandidateTrack]
    stats: Dict[str, Any] = field(default_factory=dict)


def fan_out(executor: Optional[Executor], fn: Callable[[T], R], items: Sequence[T]) -> List[R]:
    """
    Apply fn to every item, concurrently when an executor is given.

    Results come back in input order. fn is expected to capture its own
    catalog failures (see `attempt`), so one item never cancels its siblings.
    """
    if executor is None or len(items) <= 1:
        return [fn(item) for item in items]
    futures = [executor.submit(fn, item) for item in items]
    return [f.result() for f in futures]


def dedupe_candidates(tracks: Iterable[Any]) -> List[CandidateTrack]:
    """
    Drop repeated track ids, keeping the first occurrence and its uri.

    Accepts CandidateTrack instances or dicts with id/uri keys.
    """
    seen = set()
    unique: List[CandidateTrack] = []
    for t in tracks:
        if isinstance(t, CandidateTrack):
            track = t
        else:
            if not t.get("id") or not t.get("uri"):
                continue
            track = CandidateTrack(id=t["id"], uri=t["uri"])
        if track.id in seen:
            continue
        seen.add(track.id)
        unique.append(track)
    return unique


def expand_artist_pool(
    client,
    seeds: SeedSet,
    *,
    policy: TolerancePolicy,
    cfg: PoolConfig = PoolConfig(),
    executor: Optional[Executor] = None,
) -> List[str]:
    """
    Seed artists plus the first few related artists of the leading seeds.

    Computed once per run and reused by every section. A failed related-artist
    lookup only loses that artist's relatives.
    """
    sources = list(seeds.artists[:cfg.related_seed_artists])

    def _related(artist_id: str) -> SourceResult:
        return attempt(RemoteCall.RELATED_ARTISTS, client.get_related_artists, artist_id)

    related: List[str] = []
    for artist_id, result in zip(sources, fan_out(executor, _related, sources)):
        artists = policy.resolve(result, [], context=f"artist {artist_id}")
        related.extend(a["id"] for a in artists[:cfg.related_per_artist] if a.get("id"))

    if sources:
        logger.info(f"Found {len(related)} related artists")

    expanded = list(dict.fromkeys([*seeds.artists, *related]))
    return expanded[:cfg.max_expanded_artists]


def build_section_pool(
    client,
    artist_ids: Sequence[str],
    seeds: SeedSet,
    fetch_target: int,
    *,
    policy: TolerancePolicy,
    cfg: PoolConfig = PoolConfig(),
    executor: Optional[Executor] = None,
    section_name: str = "",
) -> SectionPool:
    """
    Gather and deduplicate one section's candidate tracks.

    Top tracks of the first `cfg.top_track_artists` artists are unioned; if
    that yields fewer than `cfg.genre_search_factor * fetch_target` tracks
    and a genre seed exists, one genre keyword search tops the pool up.
    """
    artists = list(artist_ids[:cfg.top_track_artists])

    def _top_tracks(artist_id: str) -> SourceResult:
        return attempt(RemoteCall.ARTIST_TOP_TRACKS, client.get_artist_top_tracks, artist_id, cfg.market)

    raw: List[Dict[str, Any]] = []
    failed_artists = 0
    for artist_id, result in zip(artists, fan_out(executor, _top_tracks, artists)):
        if not result.ok:
            failed_artists += 1
        raw.extend(policy.resolve(result, [], context=f"artist {artist_id}"))
    artist_tracks = len(raw)

    genre_tracks = 0
    searched = False
    if seeds.genres and len(raw) < fetch_target * cfg.genre_search_factor:
        searched = True
        genre = seeds.genres[0]
        result = attempt(
            RemoteCall.GENRE_SEARCH, client.search_tracks,
            f"genre:{genre}", cfg.genre_search_limit, cfg.market,
        )
        found = policy.resolve(result, [], context=f"genre {genre}")
        genre_tracks = len(found)
        raw.extend(found)

    candidates = dedupe_candidates(raw)
    stats = {
        "artists_queried": len(artists),
        "artists_failed": failed_artists,
        "artist_tracks": artist_tracks,
        "genre_search": searched,
        "genre_tracks": genre_tracks,
        "unique_candidates": len(candidates),
    }
    logger.debug(f"Pool for section {section_name!r}: {stats}")
    return SectionPool(candidates=candidates, stats=stats)
