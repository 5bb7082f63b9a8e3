"""Rule lookup over the static SRD corpus."""

from __future__ import annotations

import random
from dataclasses import dataclass

from dnd_director.core.constants import RULE_RESULTS_LIMIT
from dnd_director.core.exceptions import ValidationError
from dnd_director.core.logging import get_logger
from dnd_director.lookup.corpus import SRD_RULES, SRD_SOURCE
from dnd_director.lookup.scoring import matches, score_relevance
from dnd_director.models.enums import RuleCategory


logger = get_logger(__name__)


@dataclass(frozen=True)
class RuleEntry:
    """One rules text."""

    key: str
    category: RuleCategory
    title: str
    description: str
    source: str = SRD_SOURCE


@dataclass(frozen=True)
class RuleMatch:
    entry: RuleEntry
    relevance: int

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.entry.title,
            "description": self.entry.description,
            "category": str(self.entry.category),
            "source": self.entry.source,
            "relevance": self.relevance,
        }


class RuleLookup:
    """Ranked text search over rules, partitioned by category.

    Each instance owns a copy of the corpus, so homebrew rules added with
    ``add_rule`` stay local to it.

    Example:
        >>> lookup = RuleLookup()
        >>> lookup.search("prone")[0].entry.title
        'Prone'
    """

    def __init__(self) -> None:
        self._rules: dict[RuleCategory, dict[str, RuleEntry]] = {
            category: {
                key: RuleEntry(key=key, category=category, title=title, description=description)
                for key, (title, description) in entries.items()
            }
            for category, entries in SRD_RULES.items()
        }

    @property
    def categories(self) -> list[RuleCategory]:
        return list(self._rules)

    def search(
        self,
        query: str,
        category: RuleCategory | str | None = None,
        *,
        limit: int | None = RULE_RESULTS_LIMIT,
    ) -> list[RuleMatch]:
        """Find rules whose title or description contains ``query``.

        Args:
            query: Search text, case-insensitive.
            category: Restrict to one category.
            limit: Maximum results; None for all.

        Returns:
            Matches sorted by relevance, highest first.

        Raises:
            ValidationError: For an unknown category.
        """
        if category is None:
            categories = list(self._rules)
        else:
            categories = [self._coerce_category(category)]

        found = [
            RuleMatch(entry=entry, relevance=score_relevance(entry.title, entry.description, query))
            for cat in categories
            for entry in self._rules[cat].values()
            if matches(query, entry.title, entry.description)
        ]
        found.sort(key=lambda m: m.relevance, reverse=True)

        logger.debug("Rule lookup", query=query, category=category, hits=len(found))
        return found if limit is None else found[:limit]

    def get_rule(self, category: RuleCategory | str, key: str) -> RuleEntry | None:
        return self._rules[self._coerce_category(category)].get(key)

    def get_category(self, category: RuleCategory | str) -> list[RuleEntry]:
        return list(self._rules[self._coerce_category(category)].values())

    def add_rule(
        self,
        category: RuleCategory | str,
        key: str,
        title: str,
        description: str,
        *,
        source: str = "Homebrew",
    ) -> RuleEntry:
        """Add or replace a rule in this lookup's corpus."""
        cat = self._coerce_category(category)
        entry = RuleEntry(key=key, category=cat, title=title, description=description, source=source)
        self._rules[cat][key] = entry
        logger.info("Rule added", category=str(cat), key=key, source=source)
        return entry

    def random_rule(self, rng: random.Random | None = None) -> RuleEntry:
        """Pick a rule at random, for loading-screen tips."""
        chooser = rng or random
        entries = [entry for group in self._rules.values() for entry in group.values()]
        return chooser.choice(entries)

    @staticmethod
    def _coerce_category(category: RuleCategory | str) -> RuleCategory:
        try:
            return RuleCategory(category)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown rule category: {category}",
                field_name="category",
                invalid_value=category,
            ) from exc


__all__ = ["RuleEntry", "RuleMatch", "RuleLookup"]
