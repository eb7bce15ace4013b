"""
Map freeform artist genre tags onto catalog genre keywords.

Rules, applied per tag (lowercased, trimmed):
1. A single-word tag that is already a keyword is kept verbatim.
2. Otherwise whitespace runs become hyphens ("jazz rap" -> "jazz-rap");
   kept if that is a keyword. The hyphenated form is preferred over
   splitting, so a matching compound never yields its parts.
3. Otherwise each whitespace-separated word that is a keyword is kept.
"""
import re
from typing import AbstractSet, Iterable, List

_WHITESPACE = re.compile(r"\s+")


def normalize_genre_tag(raw: str, keywords: AbstractSet[str]) -> List[str]:
    """Keywords contributed by one raw tag, in order."""
    if not isinstance(raw, str):
        return []
    tag = raw.strip().lower()
    if not tag:
        return []

    if not _WHITESPACE.search(tag):
        return [tag] if tag in keywords else []

    hyphenated = _WHITESPACE.sub("-", tag)
    if hyphenated in keywords:
        return [hyphenated]

    return [word for word in _WHITESPACE.split(tag) if word in keywords]


def extract_genre_keywords(raw_genres: Iterable[str], keywords: AbstractSet[str]) -> List[str]:
    """
    Normalize every tag and deduplicate, preserving first-seen order.

    >>> extract_genre_keywords(["jazz rap", "jazz"], {"jazz", "jazz-rap"})
    ['jazz-rap', 'jazz']
    """
    seen = set()
    out: List[str] = []
    for raw in raw_genres:
        for genre in normalize_genre_tag(raw, keywords):
            if genre not in seen:
                seen.add(genre)
                out.append(genre)
    return out
