"""
Feature matching for one section.

Candidates are scored on catalog audio features against the section's
FeatureWindow:

- strict pass: tempo window, energy within +/- tolerance of target, valence window
- relaxed pass (only when strict is short): tempo window alone
- both passes rank by |energy - target_energy| (stable, so catalog order breaks ties)
- feature lookup failure: first N candidates, unfiltered
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .candidate_pool import CandidateTrack
from .config import MatchConfig
from .intensity import FeatureWindow
from .policy import RemoteCall, TolerancePolicy, attempt

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    STRICT = "strict"
    RELAXED = "relaxed"
    UNFILTERED = "unfiltered"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class AudioFeatureRecord:
    id: str
    tempo: float
    energy: float
    valence: float


@dataclass(frozen=True)
class MatchResult:
    tracks: List[CandidateTrack]
    mode: MatchMode
    desired_count: int
    strict_matches: int = 0
    features_available: int = 0

    @property
    def uris(self) -> List[str]:
        return [t.uri for t in self.tracks]


def parse_feature_records(raw: Sequence[Optional[Dict[str, Any]]]) -> List[AudioFeatureRecord]:
    """Keep usable records: non-null, tempo > 0, numeric energy and valence."""
    records: List[AudioFeatureRecord] = []
    for f in raw:
        if not f or not f.get("id"):
            continue
        try:
            tempo = float(f.get("tempo") or 0)
            energy = float(f["energy"])
            valence = float(f["valence"])
        except (KeyError, TypeError, ValueError):
            continue
        if tempo <= 0:
            continue
        records.append(AudioFeatureRecord(id=f["id"], tempo=tempo, energy=energy, valence=valence))
    return records


def rank_by_window(
    records: Sequence[AudioFeatureRecord],
    window: FeatureWindow,
    limit: int,
    *,
    strict: bool = True,
    energy_tolerance: float = 0.2,
) -> List[AudioFeatureRecord]:
    """Filter records to the window and return the `limit` closest in energy."""
    if not records or limit <= 0:
        return []

    tempo = np.array([r.tempo for r in records], dtype=float)
    energy = np.array([r.energy for r in records], dtype=float)
    valence = np.array([r.valence for r in records], dtype=float)

    mask = (tempo >= window.min_tempo) & (tempo <= window.max_tempo)
    if strict:
        mask &= (energy >= window.target_energy - energy_tolerance)
        mask &= (energy <= window.target_energy + energy_tolerance)
        mask &= (valence >= window.min_valence) & (valence <= window.max_valence)

    idx = np.flatnonzero(mask)
    if idx.size == 0:
        return []
    distance = np.abs(energy[idx] - window.target_energy)
    order = idx[np.argsort(distance, kind="stable")][:limit]
    return [records[i] for i in order]


def merge_matches(
    strict: Sequence[AudioFeatureRecord],
    relaxed: Sequence[AudioFeatureRecord],
    limit: int,
) -> List[AudioFeatureRecord]:
    """Top up the strict matches from the relaxed ones, skipping ids already taken."""
    merged = list(strict[:limit])
    taken = {r.id for r in merged}
    for r in relaxed:
        if len(merged) >= limit:
            break
        if r.id in taken:
            continue
        merged.append(r)
        taken.add(r.id)
    return merged


def match_section(
    client,
    candidates: Sequence[CandidateTrack],
    window: FeatureWindow,
    desired_count: int,
    *,
    policy: TolerancePolicy,
    cfg: MatchConfig = MatchConfig(),
    section_name: str = "",
) -> MatchResult:
    """
    Select up to `desired_count` candidates for a section.

    Only the first `cfg.max_feature_batch` candidates are scored, since
    audio features are fetched in a single batch request.
    """
    if not candidates:
        return MatchResult(tracks=[], mode=MatchMode.SKIPPED, desired_count=desired_count)

    batch = list(candidates[:cfg.max_feature_batch])
    result = attempt(RemoteCall.AUDIO_FEATURES, client.get_audio_features, [t.id for t in batch])
    if not result.ok:
        policy.resolve(result, None, context=f"section {section_name!r}")
        picked = list(candidates[:desired_count])
        logger.info(
            f"Added {len(picked)} tracks for section {section_name!r} (without audio feature filtering)"
        )
        return MatchResult(tracks=picked, mode=MatchMode.UNFILTERED, desired_count=desired_count)

    records = parse_feature_records(result.value or [])

    strict = rank_by_window(
        records, window, desired_count, strict=True, energy_tolerance=cfg.energy_tolerance
    )
    logger.debug(f"Filtered to {len(strict)} matching tracks for section {section_name!r}")

    mode = MatchMode.STRICT
    matched = strict
    if len(strict) < desired_count:
        logger.debug(f"Only found {len(strict)} tracks for section {section_name!r}, relaxing filters")
        relaxed = rank_by_window(records, window, desired_count, strict=False)
        matched = merge_matches(strict, relaxed, desired_count)
        mode = MatchMode.RELAXED

    by_id = {t.id: t for t in batch}
    tracks = [by_id[r.id] for r in matched if r.id in by_id]

    if len(tracks) < desired_count:
        logger.info(
            f"Section {section_name!r} under-filled: {len(tracks)}/{desired_count} tracks"
        )
    return MatchResult(
        tracks=tracks,
        mode=mode,
        desired_count=desired_count,
        strict_matches=len(strict),
        features_available=len(records),
    )
