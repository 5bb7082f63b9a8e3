"""Deterministic game engine: dice, rules arithmetic and campaign progression.

NEURO-SYMBOLIC PRINCIPLE:
Everything in this package is Python truth. The language model asks for a
roll or a round advance; it never produces the number itself.
"""

from dnd_director.engine.dice import (
    CheckResult,
    DiceRoller,
    DiceRollResult,
    format_roll_result,
    roll,
    validate_notation,
)
from dnd_director.engine.progression import (
    CampaignProgression,
    calculate_progress,
    format_credits_display,
    format_round_display,
    is_chapter_boundary,
    needs_paywall,
    next_chapter_boundary,
    plan_round_transition,
)
from dnd_director.engine.rules import (
    DIFFICULTY_CLASSES,
    ENCOUNTER_XP_THRESHOLDS,
    SKILL_ABILITIES,
    get_ability_modifier,
    get_difficulty_class,
    get_encounter_xp_budget,
    get_proficiency_bonus,
    get_saving_throw_modifier,
    get_skill_modifier,
    get_trap_damage,
)

__all__ = [
    # Dice
    "CheckResult",
    "DiceRoller",
    "DiceRollResult",
    "format_roll_result",
    "roll",
    "validate_notation",
    # Progression
    "CampaignProgression",
    "calculate_progress",
    "format_credits_display",
    "format_round_display",
    "is_chapter_boundary",
    "needs_paywall",
    "next_chapter_boundary",
    "plan_round_transition",
    # Rules
    "DIFFICULTY_CLASSES",
    "ENCOUNTER_XP_THRESHOLDS",
    "SKILL_ABILITIES",
    "get_ability_modifier",
    "get_difficulty_class",
    "get_encounter_xp_budget",
    "get_proficiency_bonus",
    "get_saving_throw_modifier",
    "get_skill_modifier",
    "get_trap_damage",
]
