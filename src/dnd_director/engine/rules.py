"""D&D 5E rules arithmetic.

Small pure functions the tools and the context builder use when they need
a number the model must not invent: proficiency bonus by level, ability
modifiers, and skill/save totals.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from dnd_director.core.constants import (
    MAX_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MIN_ABILITY_SCORE,
    MIN_CHARACTER_LEVEL,
)
from dnd_director.core.exceptions import ValidationError
from dnd_director.models.enums import Ability, Difficulty


# =============================================================================
# Skills (PHB p.174)
# =============================================================================

SKILL_ABILITIES: dict[str, Ability] = {
    "acrobatics": Ability.DEX,
    "animal_handling": Ability.WIS,
    "arcana": Ability.INT,
    "athletics": Ability.STR,
    "deception": Ability.CHA,
    "history": Ability.INT,
    "insight": Ability.WIS,
    "intimidation": Ability.CHA,
    "investigation": Ability.INT,
    "medicine": Ability.WIS,
    "nature": Ability.INT,
    "perception": Ability.WIS,
    "performance": Ability.CHA,
    "persuasion": Ability.CHA,
    "religion": Ability.INT,
    "sleight_of_hand": Ability.DEX,
    "stealth": Ability.DEX,
    "survival": Ability.WIS,
}


def get_proficiency_bonus(level: int) -> int:
    """Proficiency bonus for a character level.

    Args:
        level: Character level, 1 to 20.

    Returns:
        ``ceil(level / 4) + 1`` (level 1 is +2, level 5 is +3, level 17 is +5).

    Raises:
        ValidationError: If the level is outside 1 to 20.
    """
    if not MIN_CHARACTER_LEVEL <= level <= MAX_CHARACTER_LEVEL:
        raise ValidationError(
            f"Level must be between {MIN_CHARACTER_LEVEL} and {MAX_CHARACTER_LEVEL}",
            field_name="level",
            invalid_value=level,
        )
    return math.ceil(level / 4) + 1


def get_ability_modifier(score: int) -> int:
    """Ability modifier for a score (``floor((score - 10) / 2)``).

    Raises:
        ValidationError: If the score is outside 1 to 30.
    """
    if not MIN_ABILITY_SCORE <= score <= MAX_ABILITY_SCORE:
        raise ValidationError(
            f"Ability score must be between {MIN_ABILITY_SCORE} and {MAX_ABILITY_SCORE}",
            field_name="score",
            invalid_value=score,
        )
    return (score - 10) // 2


def get_skill_modifier(
    scores: Mapping[Ability, int],
    skill: str,
    *,
    level: int,
    proficient: bool = False,
    expertise: bool = False,
) -> int:
    """Total bonus for a skill check.

    Args:
        scores: Ability scores keyed by ability.
        skill: Skill name, snake_case (``sleight_of_hand``).
        level: Character level, for the proficiency bonus.
        proficient: Add the proficiency bonus.
        expertise: Add the proficiency bonus twice (implies proficient).

    Raises:
        ValidationError: For an unknown skill or out-of-range values.
    """
    key = skill.lower().replace(" ", "_")
    ability = SKILL_ABILITIES.get(key)
    if ability is None:
        raise ValidationError(f"Unknown skill: {skill}", field_name="skill", invalid_value=skill)

    modifier = get_ability_modifier(scores.get(ability, 10))
    if proficient or expertise:
        bonus = get_proficiency_bonus(level)
        modifier += bonus * 2 if expertise else bonus
    return modifier


def get_saving_throw_modifier(
    scores: Mapping[Ability, int],
    ability: Ability,
    *,
    level: int,
    proficient: bool = False,
) -> int:
    """Total bonus for a saving throw."""
    modifier = get_ability_modifier(scores.get(ability, 10))
    if proficient:
        modifier += get_proficiency_bonus(level)
    return modifier


# =============================================================================
# Encounter Building (DMG p.82, p.121)
# =============================================================================

ENCOUNTER_XP_THRESHOLDS: dict[int, tuple[int, int, int, int]] = {
    1: (25, 50, 75, 100),
    2: (50, 100, 150, 200),
    3: (75, 150, 225, 400),
    4: (125, 250, 375, 500),
    5: (250, 500, 750, 1100),
    6: (300, 600, 900, 1400),
    7: (350, 750, 1100, 1700),
    8: (450, 900, 1400, 2100),
    9: (550, 1100, 1600, 2400),
    10: (600, 1200, 1900, 2800),
    11: (800, 1600, 2400, 3600),
    12: (1000, 2000, 3000, 4500),
    13: (1100, 2200, 3400, 5100),
    14: (1250, 2500, 3800, 5700),
    15: (1400, 2800, 4300, 6400),
    16: (1600, 3200, 4800, 7200),
    17: (2000, 3900, 5900, 8800),
    18: (2100, 4200, 6300, 9500),
    19: (2400, 4900, 7300, 10900),
    20: (2800, 5700, 8500, 12700),
}
"""Per-character XP thresholds: (easy, medium, hard, deadly)."""

DIFFICULTY_CLASSES: dict[Difficulty, int] = {
    Difficulty.TRIVIAL: 5,
    Difficulty.EASY: 10,
    Difficulty.MEDIUM: 15,
    Difficulty.HARD: 20,
    Difficulty.DEADLY: 25,
}

# Trap damage dice by level tier: (setback, dangerous, deadly)
_TRAP_DAMAGE: dict[int, tuple[str, str, str]] = {
    4: ("1d10", "2d10", "4d10"),
    10: ("2d10", "4d10", "10d10"),
    16: ("4d10", "10d10", "18d10"),
    20: ("10d10", "18d10", "24d10"),
}


def _check_level(level: int) -> None:
    if not MIN_CHARACTER_LEVEL <= level <= MAX_CHARACTER_LEVEL:
        raise ValidationError(
            f"Level must be {MIN_CHARACTER_LEVEL}-{MAX_CHARACTER_LEVEL}, got {level}",
            field_name="level",
            invalid_value=level,
        )


def get_encounter_xp_budget(party_level: int, party_size: int, difficulty: Difficulty) -> int:
    """Adjusted XP budget for an encounter against the whole party.

    Trivial encounters get half the easy threshold.

    Raises:
        ValidationError: For an out-of-range level or an empty party.
    """
    _check_level(party_level)
    if party_size < 1:
        raise ValidationError("Party size must be at least 1", field_name="party_size", invalid_value=party_size)

    easy, medium, hard, deadly = ENCOUNTER_XP_THRESHOLDS[party_level]
    per_character = {
        Difficulty.TRIVIAL: easy // 2,
        Difficulty.EASY: easy,
        Difficulty.MEDIUM: medium,
        Difficulty.HARD: hard,
        Difficulty.DEADLY: deadly,
    }[difficulty]
    return per_character * party_size


def get_difficulty_class(difficulty: Difficulty) -> int:
    return DIFFICULTY_CLASSES[difficulty]


def get_trap_damage(level: int, difficulty: Difficulty) -> str:
    """Damage dice for a trap at this level.

    Trivial and easy traps are setbacks, medium and hard are dangerous,
    deadly is deadly.
    """
    _check_level(level)
    tier = next(cap for cap in _TRAP_DAMAGE if level <= cap)
    setback, dangerous, deadly = _TRAP_DAMAGE[tier]
    if difficulty in (Difficulty.TRIVIAL, Difficulty.EASY):
        return setback
    if difficulty == Difficulty.DEADLY:
        return deadly
    return dangerous


__all__ = [
    "SKILL_ABILITIES",
    "ENCOUNTER_XP_THRESHOLDS",
    "DIFFICULTY_CLASSES",
    "get_proficiency_bonus",
    "get_ability_modifier",
    "get_skill_modifier",
    "get_saving_throw_modifier",
    "get_encounter_xp_budget",
    "get_difficulty_class",
    "get_trap_damage",
]
