"""Relevance scoring shared by rule lookup and memory search."""

from __future__ import annotations

from dnd_director.core.constants import SHORT_ENTRY_CHARS

EXACT_TITLE_SCORE = 100
PARTIAL_TITLE_SCORE = 50
DESCRIPTION_SCORE = 25
SHORT_ENTRY_SCORE = 10


def matches(query: str, *fields: str) -> bool:
    """Case-insensitive substring match of ``query`` against any field.

    An empty query matches everything.
    """
    term = query.strip().lower()
    if not term:
        return True
    return any(term in field.lower() for field in fields if field)


def score_relevance(title: str, description: str, query: str) -> int:
    """Score how well an entry answers ``query``.

    +100 for an exact title match, otherwise +50 when the title contains
    the query; +25 when the description contains it; +10 for entries with
    a description under 200 characters.
    """
    term = query.strip().lower()
    title_lower = title.lower()
    score = 0

    if term and title_lower == term:
        score += EXACT_TITLE_SCORE
    elif term and term in title_lower:
        score += PARTIAL_TITLE_SCORE

    if term and term in description.lower():
        score += DESCRIPTION_SCORE

    if len(description) < SHORT_ENTRY_CHARS:
        score += SHORT_ENTRY_SCORE

    return score


__all__ = [
    "EXACT_TITLE_SCORE",
    "PARTIAL_TITLE_SCORE",
    "DESCRIPTION_SCORE",
    "SHORT_ENTRY_SCORE",
    "matches",
    "score_relevance",
]
