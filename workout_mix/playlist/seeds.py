"""
Taste seed selection from the user's listening-history snapshot.

Seed priority is artists (2) > tracks (2) > genres (1), with a hard ceiling
of five seeds in total and at least one seed always present.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Any, Dict, List, Sequence, Tuple

from workout_mix.genre import DEFAULT_GENRE_KEYWORDS, extract_genre_keywords
from workout_mix.logging_utils import truncate_list

from .config import SeedConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedSet:
    artists: Tuple[str, ...] = ()
    tracks: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.artists) + len(self.tracks) + len(self.genres)

    def as_dict(self) -> Dict[str, List[str]]:
        return {"artists": list(self.artists), "tracks": list(self.tracks), "genres": list(self.genres)}


def select_seeds(
    top_artists: Sequence[Dict[str, Any]],
    top_tracks: Sequence[Dict[str, Any]],
    *,
    genre_keywords: AbstractSet[str] = DEFAULT_GENRE_KEYWORDS,
    cfg: SeedConfig = SeedConfig(),
) -> SeedSet:
    """
    Build the run's seed set.

    Args:
        top_artists: [{id, genres: [...]}, ...]; may be empty
        top_tracks: [{id, ...}, ...]; may be empty
        genre_keywords: Catalog genre keyword set
        cfg: Seed budget settings

    Returns:
        SeedSet with 1 <= total <= cfg.max_total
    """
    artists = [a["id"] for a in top_artists if a.get("id")][:cfg.max_artists]
    tracks = [t["id"] for t in top_tracks if t.get("id")][:cfg.max_tracks]

    raw_genres: List[str] = []
    for artist in top_artists:
        raw_genres.extend(artist.get("genres") or [])
    extracted = extract_genre_keywords(raw_genres, genre_keywords)
    logger.debug(
        f"Genre tags {truncate_list(raw_genres, 5)} -> keywords {truncate_list(extracted, 5)}"
    )

    remaining = cfg.max_total - len(artists) - len(tracks)
    genres = extracted[:max(0, min(remaining, cfg.max_genres))]

    if not genres and remaining > 0:
        genres = [cfg.fallback_genre]
        logger.info(f"No usable genre seeds, using default genre: {cfg.fallback_genre}")

    if len(artists) + len(tracks) + len(genres) == 0:
        genres = [cfg.fallback_genre]

    seeds = SeedSet(artists=tuple(artists), tracks=tuple(tracks), genres=tuple(genres))
    logger.info(
        f"Final seeds: artists={len(seeds.artists)} tracks={len(seeds.tracks)} "
        f"genres={len(seeds.genres)} total={seeds.total}"
    )
    return seeds
