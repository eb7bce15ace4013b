"""
Genre Keyword Vocabulary
========================
The catalog only accepts genre seeds from a fixed keyword list. The list is
treated as configuration: the built-in copy below is the default, and a
deployment can point `seeds.genre_keywords_path` at a newer file instead.

Accepted file formats:
- plain text, one keyword per line (blank lines and `#` comments ignored)
- YAML, either a list or a mapping with a `genres` list
"""
import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_GENRE_KEYWORDS: FrozenSet[str] = frozenset({
    "acoustic", "afrobeat", "alt-rock", "alternative", "ambient", "anime",
    "black-metal", "bluegrass", "blues", "bossanova", "brazil", "breakbeat",
    "british", "cantopop", "chicago-house", "children", "chill", "classical",
    "club", "comedy", "country", "dance", "dancehall", "death-metal",
    "deep-house", "detroit-techno", "disco", "disney", "drum-and-bass", "dub",
    "dubstep", "edm", "electro", "electronic", "emo", "folk", "forro",
    "french", "funk", "garage", "german", "gospel", "goth", "grindcore",
    "groove", "grunge", "guitar", "happy", "hard-rock", "hardcore",
    "hardstyle", "heavy-metal", "hip-hop", "holidays", "honky-tonk", "house",
    "idm", "indian", "indie", "indie-pop", "industrial", "iranian", "j-dance",
    "j-idol", "j-pop", "j-rock", "jazz", "k-pop", "kids", "latin", "latino",
    "malay", "mandopop", "metal", "metal-misc", "metalcore", "minimal-techno",
    "movies", "new-age", "new-release", "opera", "pagode", "party",
    "philippines-opm", "piano", "pop", "pop-film", "post-dubstep", "power-pop",
    "progressive-house", "psych-rock", "punk", "punk-rock", "r-n-b",
    "rainy-day", "reggae", "reggaeton", "road-trip", "rock", "rock-n-roll",
    "rockabilly", "romance", "sad", "salsa", "samba", "sertanejo",
    "show-tunes", "singer-songwriter", "ska", "sleep", "songwriter", "soul",
    "soundtracks", "spanish", "study", "summer", "swedish", "synth-pop",
    "tango", "techno", "trance", "trip-hop", "turkish", "work-out",
    "world-music",
})


def _clean(keywords: Iterable[object]) -> FrozenSet[str]:
    return frozenset(
        str(k).strip().lower() for k in keywords if k is not None and str(k).strip()
    )


def load_genre_keywords(path: Optional[str] = None) -> FrozenSet[str]:
    """
    Load the genre keyword set.

    Args:
        path: Keyword file; None returns the built-in set

    Raises:
        FileNotFoundError: if a path is given but missing
        ValueError: if the file parses to an empty or malformed set
    """
    if not path:
        return DEFAULT_GENRE_KEYWORDS

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Genre keyword file not found: {path}")

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
        if isinstance(data, dict):
            data = data.get("genres")
        if not isinstance(data, list):
            raise ValueError(f"Genre keyword file must hold a list of genres: {path}")
        keywords = _clean(data)
    else:
        keywords = _clean(
            line for line in text.splitlines() if not line.strip().startswith("#")
        )

    if not keywords:
        raise ValueError(f"Genre keyword file is empty: {path}")

    logger.info(f"Loaded {len(keywords)} genre keywords from {path}")
    return keywords
