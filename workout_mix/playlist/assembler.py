from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from workout_mix.errors import TerminalError
from workout_mix.workout.models import Workout

from .config import PublishConfig
from .matching import MatchResult
from .policy import RemoteCall, SourceError, SourceResult, TolerancePolicy, attempt

logger = logging.getLogger(__name__)

# Creation failures that point at a bad owner identifier rather than at the
# request itself; only these are retried with the fallback identifier.
OWNER_RETRY_STATUSES = frozenset({400, 403, 404})


@dataclass(frozen=True)
class PlaylistDraft:
    name: str
    description: str
    public: bool = False


@dataclass(frozen=True)
class PublishedPlaylist:
    id: str
    url: str
    track_count: int


def concat_section_uris(results: Sequence[MatchResult]) -> List[str]:
    """Flatten per-section matches; section order is the playback order."""
    uris: List[str] = []
    for result in results:
        uris.extend(result.uris)
    return uris


def build_draft(workout: Workout, cfg: PublishConfig = PublishConfig()) -> PlaylistDraft:
    return PlaylistDraft(
        name=cfg.name_template.format(name=workout.name, type=workout.type),
        description=cfg.description_template.format(name=workout.name, type=workout.type),
        public=cfg.public,
    )


def resolve_owner_ids(profile: Dict[str, Any]) -> Tuple[str, Optional[str]]:
    """
    Owner identifier for playlist creation: display name first, raw id as fallback.

    Returns:
        (primary, fallback) where fallback is None unless it differs from primary
    """
    user_id = profile.get("id") or ""
    primary = profile.get("display_name") or user_id
    fallback = user_id if user_id and user_id != primary else None
    return primary, fallback


def should_retry_with_fallback(error: Optional[SourceError]) -> bool:
    return error is not None and error.status in OWNER_RETRY_STATUSES


def chunked(items: Sequence[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def create_playlist(
    client,
    profile: Dict[str, Any],
    draft: PlaylistDraft,
    *,
    policy: TolerancePolicy,
) -> Dict[str, Any]:
    """
    Create the destination playlist, retrying once with the fallback owner id.

    Raises:
        TerminalError: creation failed (after the fallback retry, if any)
    """
    primary, fallback = resolve_owner_ids(profile)
    if not primary:
        raise TerminalError(
            "Current user profile has no usable identifier", call=RemoteCall.CURRENT_USER.value
        )

    logger.info(f"Creating playlist {draft.name!r} for user {primary}")
    result: SourceResult = attempt(
        RemoteCall.CREATE_PLAYLIST, client.create_playlist,
        primary, draft.name, draft.description, draft.public,
    )

    owner = primary
    if not result.ok and fallback and should_retry_with_fallback(result.error):
        logger.warning(
            f"Playlist creation as {primary!r} failed ({result.error.status}), retrying with user id"
        )
        owner = fallback
        result = attempt(
            RemoteCall.CREATE_PLAYLIST, client.create_playlist,
            fallback, draft.name, draft.description, draft.public,
        )

    playlist = policy.resolve(result, None, context=f"owner {owner}")
    logger.info(f"Playlist created successfully: {playlist['id']}")
    return playlist


def publish_playlist(
    client,
    profile: Dict[str, Any],
    workout: Workout,
    uris: Sequence[str],
    *,
    policy: TolerancePolicy,
    cfg: PublishConfig = PublishConfig(),
) -> PublishedPlaylist:
    """
    Create the playlist and append uris in order, `cfg.add_batch_size` at a time.

    A failed batch aborts the run. Batches already appended stay in the
    remote playlist; nothing is rolled back.
    """
    playlist = create_playlist(client, profile, build_draft(workout, cfg), policy=policy)
    playlist_id = playlist["id"]

    if not uris:
        logger.warning(f"No tracks matched any section; playlist {playlist_id} left empty")

    batches = list(chunked(uris, cfg.add_batch_size))
    for i, batch in enumerate(batches, 1):
        result = attempt(RemoteCall.ADD_TRACKS, client.add_tracks, playlist_id, batch)
        policy.resolve(result, None, context=f"playlist {playlist_id}, batch {i}/{len(batches)}")
        logger.debug(f"Appended batch {i}/{len(batches)} ({len(batch)} tracks)")

    return PublishedPlaylist(id=playlist_id, url=playlist.get("url", ""), track_count=len(uris))
