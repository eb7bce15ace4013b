from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from workout_mix.config_loader import Config


@dataclass(frozen=True)
class SizingConfig:
    avg_seconds_per_track: int = 210
    default_section_seconds: int = 180
    min_tracks_per_section: int = 5
    max_tracks_per_section: int = 20


@dataclass(frozen=True)
class SeedConfig:
    max_artists: int = 2
    max_tracks: int = 2
    max_genres: int = 1
    max_total: int = 5
    fallback_genre: str = "electronic"
    top_items_limit: int = 5


@dataclass(frozen=True)
class PoolConfig:
    related_seed_artists: int = 2
    related_per_artist: int = 3
    max_expanded_artists: int = 10
    top_track_artists: int = 5
    genre_search_factor: int = 2
    genre_search_limit: int = 50
    market: str = "US"


@dataclass(frozen=True)
class MatchConfig:
    max_feature_batch: int = 100
    energy_tolerance: float = 0.2


@dataclass(frozen=True)
class PublishConfig:
    name_template: str = "{name} • Auto-generated"
    description_template: str = "Generated for {type} workout via Workout Mix"
    public: bool = False
    add_batch_size: int = 100


@dataclass(frozen=True)
class ConcurrencyConfig:
    section_workers: int = 3
    fetch_workers: int = 5


@dataclass(frozen=True)
class PipelineConfig:
    sizing: SizingConfig
    seeds: SeedConfig
    pool: PoolConfig
    match: MatchConfig
    publish: PublishConfig
    concurrency: ConcurrencyConfig


def _apply(section: Any, updates: Optional[Dict[str, Any]]) -> Any:
    if not updates:
        return section
    known = {f.name for f in fields(section)}
    unknown = set(updates) - known
    if unknown:
        raise ValueError(f"Unknown {type(section).__name__} keys: {sorted(unknown)}")
    return replace(section, **updates)


def default_pipeline_config(overrides: Optional[dict] = None) -> PipelineConfig:
    """
    Return pipeline defaults, optionally patched per section.

    Args:
        overrides: Mapping like {"sizing": {"avg_seconds_per_track": 180},
            "pool": {"market": "GB"}}; unknown keys raise ValueError.
    """
    overrides = overrides or {}
    return PipelineConfig(
        sizing=_apply(SizingConfig(), overrides.get("sizing")),
        seeds=_apply(SeedConfig(), overrides.get("seeds")),
        pool=_apply(PoolConfig(), overrides.get("pool")),
        match=_apply(MatchConfig(), overrides.get("match")),
        publish=_apply(PublishConfig(), overrides.get("publish")),
        concurrency=_apply(ConcurrencyConfig(), overrides.get("concurrency")),
    )


def pipeline_config_from(config: Config) -> PipelineConfig:
    """Materialize the YAML-backed settings into the frozen pipeline config."""
    return default_pipeline_config({
        "sizing": {
            "avg_seconds_per_track": config.avg_seconds_per_track,
            "min_tracks_per_section": config.min_tracks_per_section,
            "max_tracks_per_section": config.max_tracks_per_section,
        },
        "seeds": {
            "fallback_genre": config.fallback_genre,
            "top_items_limit": config.top_items_limit,
        },
        "pool": {"market": config.catalog_market},
        "publish": {
            "description_template": config.playlist_description_template,
            "public": config.playlist_public,
            "add_batch_size": config.add_batch_size,
        },
        "concurrency": {
            "section_workers": config.section_workers,
            "fetch_workers": config.fetch_workers,
        },
    })
