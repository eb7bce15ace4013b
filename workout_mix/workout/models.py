"""
Workout documents as seen by the playlist pipeline.

Documents come from the store (or a JSON file on the CLI) as plain dicts;
`Workout.from_dict` is the single place where they are validated.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_INTENSITY = Intensity.MEDIUM


def normalize_intensity(raw: Any, section_name: str = "") -> Intensity:
    """
    Coerce a raw intensity label, defaulting to medium.

    A missing or unknown label is a data-quality problem in the document,
    not a reason to fail the run, so it is logged and replaced.
    """
    if isinstance(raw, Intensity):
        return raw
    if isinstance(raw, str):
        try:
            return Intensity(raw.strip().lower())
        except ValueError:
            pass
    logger.warning(
        "Section %r has invalid intensity %r, defaulting to %s",
        section_name, raw, DEFAULT_INTENSITY.value,
    )
    return DEFAULT_INTENSITY


def _optional_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class Section:
    name: str
    intensity: Intensity = DEFAULT_INTENSITY
    duration: Optional[float] = None
    rounds: Optional[float] = None
    work: Optional[float] = None
    rest: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        name = str(data.get("name") or "").strip()
        return cls(
            name=name,
            intensity=normalize_intensity(data.get("intensity"), name),
            duration=_optional_number(data.get("duration")),
            rounds=_optional_number(data.get("rounds")),
            work=_optional_number(data.get("work")),
            rest=_optional_number(data.get("rest")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "intensity": self.intensity.value}
        for key in ("duration", "rounds", "work", "rest"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass(frozen=True)
class Workout:
    id: str
    name: str
    type: str
    sections: List[Section] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workout":
        raw_sections = data.get("sections") or []
        if not isinstance(raw_sections, list):
            raise ValueError("Workout sections must be a list")
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            name=str(data.get("name") or "").strip(),
            type=str(data.get("type") or "").strip(),
            sections=[Section.from_dict(s) for s in raw_sections if isinstance(s, dict)],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "sections": [s.to_dict() for s in self.sections],
        }
