"""Rule and memory lookup.

Both searches rank with the same relevance function (``score_relevance``).
"""

from dnd_director.lookup.memory import MemoryLookup, MemoryMatch, SavedMemory
from dnd_director.lookup.rules import RuleEntry, RuleLookup, RuleMatch
from dnd_director.lookup.scoring import matches, score_relevance

__all__ = [
    "MemoryLookup",
    "MemoryMatch",
    "SavedMemory",
    "RuleEntry",
    "RuleLookup",
    "RuleMatch",
    "matches",
    "score_relevance",
]
