"""
Intensity profiles and section sizing.

Pure functions: an intensity maps to a fixed acoustic target window, and a
section's duration (explicit or interval-based) maps to a track count.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from workout_mix.workout.models import Intensity, Section

DEFAULT_SECTION_SECONDS = 180
DEFAULT_AVG_SECONDS_PER_TRACK = 210


@dataclass(frozen=True)
class FeatureWindow:
    min_tempo: float
    max_tempo: float
    target_energy: float
    min_valence: float
    max_valence: float


INTENSITY_PROFILES: Mapping[Intensity, FeatureWindow] = MappingProxyType({
    Intensity.LOW: FeatureWindow(min_tempo=80, max_tempo=110, target_energy=0.3, min_valence=0.3, max_valence=0.6),
    Intensity.MEDIUM: FeatureWindow(min_tempo=110, max_tempo=130, target_energy=0.55, min_valence=0.4, max_valence=0.7),
    Intensity.HIGH: FeatureWindow(min_tempo=130, max_tempo=170, target_energy=0.9, min_valence=0.6, max_valence=1.0),
})


def feature_window(intensity: Intensity) -> FeatureWindow:
    """
    Look up the target window for a normalized intensity.

    Raises:
        ValueError: for anything that is not an Intensity member; callers
            normalize raw labels with `normalize_intensity` first.
    """
    if not isinstance(intensity, Intensity):
        raise ValueError(f"Unknown intensity: {intensity!r}")
    return INTENSITY_PROFILES[intensity]


def effective_seconds(section: Section, default_seconds: int = DEFAULT_SECTION_SECONDS) -> float:
    """
    Playback time a section needs.

    Explicit positive duration wins, then rounds * (work + rest) when rounds
    and work are positive and rest is given (zero allowed), else the default.
    Infinite values, including an interval product that overflows, count as
    not given.
    """
    if section.duration is not None and 0 < section.duration < math.inf:
        return section.duration

    rounds, work, rest = section.rounds, section.work, section.rest
    if rounds is not None and work is not None and rest is not None:
        if rounds > 0 and work > 0 and rest >= 0:
            total = rounds * (work + rest)
            if 0 < total < math.inf:
                return total

    return default_seconds


def estimate_track_count(
    section: Section,
    avg_seconds_per_track: int = DEFAULT_AVG_SECONDS_PER_TRACK,
    default_seconds: int = DEFAULT_SECTION_SECONDS,
) -> int:
    """ceil(seconds / avg), never below 1."""
    if avg_seconds_per_track <= 0:
        raise ValueError("avg_seconds_per_track must be positive")
    secs = effective_seconds(section, default_seconds)
    return max(1, math.ceil(secs / avg_seconds_per_track))


def clamp_fetch_target(count: int, minimum: int = 5, maximum: int = 20) -> int:
    """Bound a desired count to a sane per-section request size."""
    return max(minimum, min(count, maximum))
