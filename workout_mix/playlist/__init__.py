from .config import (
    ConcurrencyConfig,
    MatchConfig,
    PipelineConfig,
    PoolConfig,
    PublishConfig,
    SeedConfig,
    SizingConfig,
    default_pipeline_config,
    pipeline_config_from,
)
from .intensity import (
    INTENSITY_PROFILES,
    FeatureWindow,
    clamp_fetch_target,
    effective_seconds,
    estimate_track_count,
    feature_window,
)
from .seeds import SeedSet, select_seeds
from .candidate_pool import CandidateTrack, SectionPool, build_section_pool, dedupe_candidates, expand_artist_pool
from .matching import AudioFeatureRecord, MatchMode, MatchResult, match_section
from .assembler import PlaylistDraft, PublishedPlaylist, concat_section_uris, publish_playlist
from .policy import PolicyAction, RemoteCall, SourceError, SourceResult, TolerancePolicy, attempt
from .pipeline import GenerationResult, SectionReport, WorkoutPlaylistGenerator, catalog_client_factory

__all__ = [
    "ConcurrencyConfig",
    "MatchConfig",
    "PipelineConfig",
    "PoolConfig",
    "PublishConfig",
    "SeedConfig",
    "SizingConfig",
    "default_pipeline_config",
    "pipeline_config_from",
    "INTENSITY_PROFILES",
    "FeatureWindow",
    "clamp_fetch_target",
    "effective_seconds",
    "estimate_track_count",
    "feature_window",
    "SeedSet",
    "select_seeds",
    "CandidateTrack",
    "SectionPool",
    "build_section_pool",
    "dedupe_candidates",
    "expand_artist_pool",
    "AudioFeatureRecord",
    "MatchMode",
    "MatchResult",
    "match_section",
    "PlaylistDraft",
    "PublishedPlaylist",
    "concat_section_uris",
    "publish_playlist",
    "PolicyAction",
    "RemoteCall",
    "SourceError",
    "SourceResult",
    "TolerancePolicy",
    "attempt",
    "GenerationResult",
    "SectionReport",
    "WorkoutPlaylistGenerator",
    "catalog_client_factory",
]
