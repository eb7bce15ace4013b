from .models import DEFAULT_INTENSITY, Intensity, Section, Workout, normalize_intensity
from .store import WorkoutStore

__all__ = [
    "DEFAULT_INTENSITY",
    "Intensity",
    "Section",
    "Workout",
    "normalize_intensity",
    "WorkoutStore",
]
