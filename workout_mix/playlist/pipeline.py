from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Callable, Dict, List, Optional, Sequence, Tuple

from workout_mix.catalog_client import CatalogClient
from workout_mix.config_loader import Config
from workout_mix.credentials import Credential
from workout_mix.errors import PreconditionError, RunCancelled
from workout_mix.genre import DEFAULT_GENRE_KEYWORDS, load_genre_keywords
from workout_mix.logging_utils import RunSummary, format_count, set_run_id, stage_timer
from workout_mix.rate_limiter import RateLimiter
from workout_mix.workout.models import Section, Workout

from .assembler import concat_section_uris, publish_playlist
from .candidate_pool import build_section_pool, expand_artist_pool, fan_out
from .config import PipelineConfig, default_pipeline_config, pipeline_config_from
from .intensity import clamp_fetch_target, estimate_track_count, feature_window
from .matching import MatchMode, MatchResult, match_section
from .policy import RemoteCall, TolerancePolicy, attempt
from .seeds import SeedSet, select_seeds

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, threading.Event], Any]


@dataclass(frozen=True)
class SectionReport:
    index: int
    name: str
    intensity: str
    desired_count: int
    fetch_target: int
    candidate_count: int
    matched_count: int
    mode: str
    pool_stats: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GenerationResult:
    run_id: str
    seeds: SeedSet
    track_uris: List[str]
    sections: List[SectionReport]
    playlist_id: Optional[str] = None
    playlist_url: Optional[str] = None
    dry_run: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {"playlistId": self.playlist_id, "playlistUrl": self.playlist_url}


def catalog_client_factory(config: Config) -> ClientFactory:
    """One client (and one rate limiter) per run, shared by all its workers."""
    def _factory(token: str, cancel_event: threading.Event) -> CatalogClient:
        return CatalogClient(
            token,
            base_url=config.catalog_base_url,
            timeout=config.catalog_timeout_seconds,
            max_retries=config.catalog_max_retries,
            rate_limiter=RateLimiter(calls_per_second=config.catalog_calls_per_second),
            cancel_event=cancel_event,
        )
    return _factory


class WorkoutPlaylistGenerator:
    """
    Turns a stored workout into a catalog playlist.

    Seeds and the expanded artist list are computed once per run; sections
    are then pooled and matched concurrently and reassembled in section order.
    """

    poll_interval = 0.1

    def __init__(
        self,
        workout_store,
        client_factory: ClientFactory,
        cfg: Optional[PipelineConfig] = None,
        *,
        genre_keywords: AbstractSet[str] = DEFAULT_GENRE_KEYWORDS,
        policy: Optional[TolerancePolicy] = None,
    ):
        """
        Args:
            workout_store: Anything with get_workout(id) -> Optional[Workout]
            client_factory: (bearer_token, cancel_event) -> catalog client
            cfg: Pipeline tunables (defaults when omitted)
            genre_keywords: Catalog genre keyword set used for seed genres
            policy: Failure tolerance table (defaults when omitted)
        """
        self.workout_store = workout_store
        self.client_factory = client_factory
        self.cfg = cfg or default_pipeline_config()
        self.genre_keywords = genre_keywords
        self.policy = policy or TolerancePolicy()

    @classmethod
    def from_config(cls, config: Config, workout_store) -> "WorkoutPlaylistGenerator":
        return cls(
            workout_store,
            catalog_client_factory(config),
            pipeline_config_from(config),
            genre_keywords=load_genre_keywords(config.genre_keywords_path),
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def generate(
        self,
        workout_id: str,
        credential: Credential,
        *,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
    ) -> GenerationResult:
        """
        Generate the playlist for a stored workout.

        Raises:
            PreconditionError: bad credential, unknown workout, no sections
            TerminalError: profile lookup, playlist creation or track append failed
            RunCancelled: cancel_event was set during the run

        cancel_event is set once the run ends, whether it returned or raised.
        """
        if not workout_id:
            raise PreconditionError("workoutId required", reason="invalid")
        token = credential.bearer_token()
        workout = self.workout_store.get_workout(workout_id)
        if workout is None:
            raise PreconditionError(f"Workout not found: {workout_id}", reason="not_found")
        return self.generate_for_workout(workout, token, cancel_event=cancel_event, dry_run=dry_run)

    def generate_for_workout(
        self,
        workout: Workout,
        token: str,
        *,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
    ) -> GenerationResult:
        if not workout.sections:
            raise PreconditionError(
                "Workout has no sections. Please add sections before generating a playlist.",
                reason="no_sections",
            )
        if not token:
            raise PreconditionError("Missing catalog access token", reason="unauthenticated")

        run_id = uuid.uuid4().hex[:8]
        set_run_id(run_id)
        cancel_event = cancel_event or threading.Event()
        summary = RunSummary("Playlist generation", logger)
        summary.add("workout", workout.name)
        summary.add("sections", len(workout.sections))

        client = self.client_factory(token, cancel_event)
        section_pool = ThreadPoolExecutor(
            max_workers=self.cfg.concurrency.section_workers, thread_name_prefix="wm-section"
        )
        fetch_pool = ThreadPoolExecutor(
            max_workers=self.cfg.concurrency.fetch_workers, thread_name_prefix="wm-fetch"
        )
        try:
            self._checkpoint(cancel_event)
            with stage_timer("Seed selection", logger):
                profile, seeds = self._select_seeds(client, fetch_pool, cancel_event)

            self._checkpoint(cancel_event)
            with stage_timer("Artist expansion", logger):
                artist_ids = expand_artist_pool(
                    client, seeds, policy=self.policy, cfg=self.cfg.pool, executor=fetch_pool
                )

            with stage_timer("Section matching", logger):
                futures = [
                    section_pool.submit(
                        self._process_section, i, section, seeds, artist_ids, client, fetch_pool
                    )
                    for i, section in enumerate(workout.sections)
                ]
                outcomes = self._join(futures, cancel_event)

            matches = [match for match, _ in outcomes]
            reports = [report for _, report in outcomes]
            uris = concat_section_uris(matches)
            for report in reports:
                summary.increment(f"sections_{report.mode}")
            summary.add("tracks", len(uris))

            if dry_run:
                logger.info(f"Dry run: {len(uris)} tracks matched, playlist not created")
                summary.log()
                return GenerationResult(run_id, seeds, uris, reports, dry_run=True)

            self._checkpoint(cancel_event)
            with stage_timer("Playlist publication", logger):
                published = publish_playlist(
                    client, profile, workout, uris, policy=self.policy, cfg=self.cfg.publish
                )
            summary.add("playlist_id", published.id)
            summary.log()
            return GenerationResult(
                run_id, seeds, uris, reports,
                playlist_id=published.id, playlist_url=published.url,
            )
        except RunCancelled:
            logger.warning("Playlist generation cancelled")
            raise
        finally:
            # Workers still running stop at their next request; their results are discarded.
            cancel_event.set()
            section_pool.shutdown(wait=False, cancel_futures=True)
            fetch_pool.shutdown(wait=False, cancel_futures=True)
            close = getattr(client, "close", None)
            if callable(close):
                close()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    def _checkpoint(cancel_event: threading.Event) -> None:
        if cancel_event.is_set():
            raise RunCancelled("Playlist generation was cancelled")

    def _join(self, futures: Sequence[Future], cancel_event: threading.Event) -> List[Any]:
        """Wait for all futures, bailing out early on cancellation or the first error."""
        pending = set(futures)
        while pending:
            done, pending = wait(pending, timeout=self.poll_interval, return_when=FIRST_EXCEPTION)
            for f in done:
                exc = f.exception()
                if exc is not None:
                    raise exc
            self._checkpoint(cancel_event)
        return [f.result() for f in futures]

    def _select_seeds(
        self, client, fetch_pool: ThreadPoolExecutor, cancel_event: threading.Event
    ) -> Tuple[Dict[str, Any], SeedSet]:
        profile = self.policy.resolve(attempt(RemoteCall.CURRENT_USER, client.get_current_user), None)
        logger.info(f"User profile: id={profile.get('id')} display_name={profile.get('display_name')}")
        self._checkpoint(cancel_event)

        limit = self.cfg.seeds.top_items_limit
        calls = [(RemoteCall.TOP_ARTISTS, "artists"), (RemoteCall.TOP_TRACKS, "tracks")]
        results = fan_out(
            fetch_pool,
            lambda call: attempt(call[0], client.get_top_items, call[1], limit),
            calls,
        )
        top_artists = self.policy.resolve(results[0], [])
        top_tracks = self.policy.resolve(results[1], [])
        logger.info(
            f"Found {format_count(len(top_artists), 'top artist')} and "
            f"{format_count(len(top_tracks), 'top track')}"
        )

        seeds = select_seeds(
            top_artists, top_tracks, genre_keywords=self.genre_keywords, cfg=self.cfg.seeds
        )
        return profile, seeds

    def _process_section(
        self,
        index: int,
        section: Section,
        seeds: SeedSet,
        artist_ids: List[str],
        client,
        fetch_pool: ThreadPoolExecutor,
    ) -> Tuple[MatchResult, SectionReport]:
        sizing = self.cfg.sizing
        window = feature_window(section.intensity)
        desired = estimate_track_count(
            section, sizing.avg_seconds_per_track, sizing.default_section_seconds
        )
        target = clamp_fetch_target(
            desired, sizing.min_tracks_per_section, sizing.max_tracks_per_section
        )
        logger.info(f"Finding {target} tracks for section {section.name!r} ({section.intensity.value})")

        pool = build_section_pool(
            client, artist_ids, seeds, target,
            policy=self.policy, cfg=self.cfg.pool, executor=fetch_pool, section_name=section.name,
        )

        if not pool.candidates:
            logger.warning(f"No candidate tracks found for section {section.name!r}, skipping")
            match = MatchResult(tracks=[], mode=MatchMode.SKIPPED, desired_count=target)
        else:
            logger.info(
                f"Found {len(pool.candidates)} candidate tracks for section {section.name!r}, "
                f"filtering by audio features"
            )
            match = match_section(
                client, pool.candidates, window, target,
                policy=self.policy, cfg=self.cfg.match, section_name=section.name,
            )
            logger.info(f"Added {len(match.tracks)} tracks for section {section.name!r} ({match.mode.value})")

        report = SectionReport(
            index=index,
            name=section.name,
            intensity=section.intensity.value,
            desired_count=desired,
            fetch_target=target,
            candidate_count=len(pool.candidates),
            matched_count=len(match.tracks),
            mode=match.mode.value,
            pool_stats=pool.stats,
        )
        return match, report
