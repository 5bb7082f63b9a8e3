"""Engine-wide constants for the D&D Director.

Dice bounds, D&D 5E rules ranges, and the size limits that keep model
context and tool payloads small.
"""

from __future__ import annotations

# =============================================================================
# Dice Constants
# =============================================================================

ALLOWED_DIE_SIZES = frozenset({4, 6, 8, 10, 12, 20, 100})
"""Die sizes accepted by the dice engine."""

MIN_DICE_COUNT = 1
"""Fewest dice in a single expression."""

MAX_DICE_COUNT = 100
"""Most dice in a single expression."""

MAX_DICE_MODIFIER = 1000
"""Largest absolute flat modifier."""

# =============================================================================
# D&D 5E Rules Constants
# =============================================================================

MIN_CHARACTER_LEVEL = 1
"""Lowest character level."""

MAX_CHARACTER_LEVEL = 20
"""Highest character level."""

MIN_ABILITY_SCORE = 1
"""Minimum ability score."""

MAX_ABILITY_SCORE = 30
"""Maximum ability score (monsters and deities)."""

MIN_DIFFICULTY_CLASS = 1
"""Lowest DC a tool call may ask for."""

MAX_DIFFICULTY_CLASS = 30
"""Highest DC a tool call may ask for (nearly impossible)."""

ABILITY_ABBREVIATIONS = ("STR", "DEX", "CON", "INT", "WIS", "CHA")
"""Six ability abbreviations in sheet order."""

# =============================================================================
# Context & Lookup Limits
# =============================================================================

DM_HISTORY_PREVIEW_CHARS = 150
"""DM messages in the context block are truncated to this many characters."""

RULE_RESULTS_LIMIT = 3
"""Rule lookup results returned to the model."""

DEFAULT_MEMORY_RESULTS = 5
"""Memory search results when the caller gives no limit."""

MAX_MEMORY_RESULTS = 10
"""Upper bound on memory search results."""

SHORT_ENTRY_CHARS = 200
"""Descriptions shorter than this get the short-entry relevance bonus."""
