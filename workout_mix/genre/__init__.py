"""
Genre keyword handling
======================
- Versionable catalog genre keyword set (built-in default or file)
- Normalization of freeform artist genre tags onto that set
"""

from .normalize import extract_genre_keywords, normalize_genre_tag
from .vocabulary import DEFAULT_GENRE_KEYWORDS, load_genre_keywords

__all__ = [
    'DEFAULT_GENRE_KEYWORDS',
    'load_genre_keywords',
    'extract_genre_keywords',
    'normalize_genre_tag',
]
