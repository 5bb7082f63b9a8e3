"""Dice rolling mechanics for D&D 5E.

Supported notation (case-insensitive, surrounding whitespace ignored):

* ``[N]d<S>[+|-M]``: plain roll, e.g. ``d20``, ``3d6+2``, ``1d8-1``.
* ``1d20[+|-M] advantage|adv|disadvantage|dis|disadv``: two d20s, keep
  the higher (advantage) or lower (disadvantage).
* ``NdS drop lowest|highest|K``: roll N, discard dice, sum the rest. No
  modifier is accepted on drop expressions.

Die sizes are limited to 4, 6, 8, 10, 12, 20 and 100; ``N`` is 1 to 100;
``|M|`` is at most 1000. Anything else raises DiceRollError before a
single die is rolled.

The model never produces numbers itself: every roll it asks for goes
through DiceRoller, and DiceRoller takes its randomness from an
injectable source so tests can script the faces.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Protocol

from dnd_director.core.constants import (
    ALLOWED_DIE_SIZES,
    MAX_DICE_COUNT,
    MAX_DICE_MODIFIER,
    MIN_DICE_COUNT,
)
from dnd_director.core.exceptions import DiceRollError
from dnd_director.core.logging import get_logger
from dnd_director.models.enums import Ability, RollMode


logger = get_logger(__name__)


_PLAIN_PATTERN = re.compile(r"^(\d+)?d(\d+)([+-]\d+)?$", re.IGNORECASE)
_ADVANTAGE_PATTERN = re.compile(
    r"^(.+?)\s*(advantage|adv|disadvantage|disadv|dis)$",
    re.IGNORECASE,
)
_DROP_PATTERN = re.compile(r"^(\d+d\d+)\s+drop\s+(lowest|highest|\d+)$", re.IGNORECASE)


class RandomSource(Protocol):
    """Anything with ``random.Random.randint`` semantics."""

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class DiceRollResult:
    """The outcome of one dice expression.

    Attributes:
        notation: The expression as given by the caller.
        rolls: Every face rolled, in roll order.
        kept: Faces that count toward the total. Equal to ``rolls`` for
            plain rolls; the chosen d20 for advantage/disadvantage; the
            surviving dice (highest first) for drop rolls.
        dropped: Faces rolled but discarded.
        modifier: Flat modifier added to the kept faces.
        total: ``sum(kept) + modifier``.
        mode: How the dice were resolved.
        die_size: Size of the dice rolled.
        is_critical_success: A single chosen d20 showed 20.
        is_critical_failure: A single chosen d20 showed 1.
    """

    notation: str
    rolls: tuple[int, ...]
    kept: tuple[int, ...]
    dropped: tuple[int, ...]
    modifier: int
    total: int
    mode: RollMode
    die_size: int
    is_critical_success: bool = False
    is_critical_failure: bool = False

    @property
    def chosen_roll(self) -> int | None:
        """The single d20 face that decided an advantage, disadvantage or 1d20 roll."""
        if self.die_size == 20 and len(self.kept) == 1:
            return self.kept[0]
        return None

    @property
    def discarded_roll(self) -> int | None:
        if self.mode in (RollMode.ADVANTAGE, RollMode.DISADVANTAGE):
            return self.dropped[0]
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "notation": self.notation,
            "rolls": list(self.rolls),
            "kept": list(self.kept),
            "dropped": list(self.dropped),
            "modifier": self.modifier,
            "total": self.total,
            "mode": str(self.mode),
            "chosen_roll": self.chosen_roll,
            "is_critical_success": self.is_critical_success,
            "is_critical_failure": self.is_critical_failure,
        }


@dataclass(frozen=True)
class _Parsed:
    count: int
    size: int
    modifier: int


@dataclass(frozen=True)
class CheckResult:
    """A d20 check compared against an optional DC."""

    roll: DiceRollResult
    dc: int | None

    @property
    def success(self) -> bool | None:
        # Checks and saves meet-or-beat; natural 20/1 only matter for attacks
        if self.dc is None:
            return None
        return self.roll.total >= self.dc


class DiceRoller:
    """Dice rolling with D&D 5E notation.

    Example:
        >>> roller = DiceRoller(rng=random.Random(7))
        >>> result = roller.roll("1d20+5 advantage")
        >>> result.chosen_roll in result.rolls
        True
    """

    def __init__(self, *, rng: RandomSource | None = None) -> None:
        """Initialize the dice roller.

        Args:
            rng: Random source. Defaults to a fresh, unseeded ``random.Random``.
        """
        self._rng: RandomSource = rng if rng is not None else random.Random()

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def _parse_plain(self, text: str, notation: str) -> _Parsed:
        match = _PLAIN_PATTERN.match(text)
        if not match:
            raise DiceRollError(
                f"Invalid dice notation '{notation}'. Use formats like 1d20, 2d6+3, "
                "1d20 advantage or 4d6 drop lowest",
                expression=notation,
            )

        count = int(match.group(1)) if match.group(1) else 1
        size = int(match.group(2))
        modifier = int(match.group(3)) if match.group(3) else 0

        if size not in ALLOWED_DIE_SIZES:
            allowed = ", ".join(f"d{s}" for s in sorted(ALLOWED_DIE_SIZES))
            raise DiceRollError(
                f"Unsupported die size d{size}. Valid sizes: {allowed}",
                expression=notation,
            )
        if not MIN_DICE_COUNT <= count <= MAX_DICE_COUNT:
            raise DiceRollError(
                f"Dice count must be between {MIN_DICE_COUNT} and {MAX_DICE_COUNT}",
                expression=notation,
            )
        if abs(modifier) > MAX_DICE_MODIFIER:
            raise DiceRollError(
                f"Modifier must be between -{MAX_DICE_MODIFIER} and {MAX_DICE_MODIFIER}",
                expression=notation,
            )
        return _Parsed(count=count, size=size, modifier=modifier)

    def _roll_faces(self, count: int, size: int) -> list[int]:
        return [self._rng.randint(1, size) for _ in range(count)]

    # -------------------------------------------------------------------------
    # Rolling
    # -------------------------------------------------------------------------

    def roll(self, notation: str) -> DiceRollResult:
        """Roll a dice expression.

        Args:
            notation: Dice expression, see the module docstring.

        Returns:
            DiceRollResult with every face rolled.

        Raises:
            DiceRollError: If the notation is malformed or out of bounds.
        """
        if not notation or not notation.strip():
            raise DiceRollError("Empty dice expression", expression=notation)

        text = notation.strip()

        drop_match = _DROP_PATTERN.match(text)
        if drop_match:
            return self._roll_drop(notation, drop_match.group(1), drop_match.group(2))

        advantage_match = _ADVANTAGE_PATTERN.match(text)
        if advantage_match:
            keyword = advantage_match.group(2).lower()
            mode = RollMode.ADVANTAGE if keyword.startswith("adv") else RollMode.DISADVANTAGE
            return self._roll_advantage(notation, advantage_match.group(1).strip(), mode)

        parsed = self._parse_plain(text, notation)
        faces = self._roll_faces(parsed.count, parsed.size)
        single_d20 = parsed.size == 20 and parsed.count == 1

        result = DiceRollResult(
            notation=notation,
            rolls=tuple(faces),
            kept=tuple(faces),
            dropped=(),
            modifier=parsed.modifier,
            total=sum(faces) + parsed.modifier,
            mode=RollMode.NORMAL,
            die_size=parsed.size,
            is_critical_success=single_d20 and faces[0] == 20,
            is_critical_failure=single_d20 and faces[0] == 1,
        )
        logger.debug("Dice rolled", notation=notation, rolls=faces, total=result.total)
        return result

    def _roll_advantage(self, notation: str, base: str, mode: RollMode) -> DiceRollResult:
        parsed = self._parse_plain(base, notation)
        if parsed.size != 20 or parsed.count != 1:
            raise DiceRollError(
                "Advantage and disadvantage only apply to a single d20 (e.g. 1d20+5 advantage)",
                expression=notation,
            )

        first, second = self._roll_faces(2, 20)
        if mode == RollMode.ADVANTAGE:
            chosen, discarded = max(first, second), min(first, second)
        else:
            chosen, discarded = min(first, second), max(first, second)

        result = DiceRollResult(
            notation=notation,
            rolls=(first, second),
            kept=(chosen,),
            dropped=(discarded,),
            modifier=parsed.modifier,
            total=chosen + parsed.modifier,
            mode=mode,
            die_size=20,
            is_critical_success=chosen == 20,
            is_critical_failure=chosen == 1,
        )
        logger.debug(
            "Dice rolled",
            notation=notation,
            mode=str(mode),
            rolls=[first, second],
            total=result.total,
        )
        return result

    def _roll_drop(self, notation: str, base: str, drop_spec: str) -> DiceRollResult:
        parsed = self._parse_plain(base, notation)
        if parsed.count < 2:
            raise DiceRollError("Drop requires at least 2 dice", expression=notation)

        spec = drop_spec.lower()
        if spec in ("lowest", "highest"):
            drop_count = 1
        else:
            drop_count = int(spec)
            if drop_count < 1:
                raise DiceRollError("Must drop at least 1 die", expression=notation)
            if drop_count >= parsed.count:
                raise DiceRollError(
                    f"Cannot drop {drop_count} dice from {parsed.count}",
                    expression=notation,
                )

        faces = self._roll_faces(parsed.count, parsed.size)
        ordered = sorted(faces, reverse=True)
        if spec == "highest":
            kept, dropped = ordered[1:], ordered[:1]
        else:
            keep_count = parsed.count - drop_count
            kept, dropped = ordered[:keep_count], ordered[keep_count:]

        result = DiceRollResult(
            notation=notation,
            rolls=tuple(faces),
            kept=tuple(kept),
            dropped=tuple(dropped),
            modifier=0,
            total=sum(kept),
            mode=RollMode.DROP,
            die_size=parsed.size,
        )
        logger.debug("Dice rolled", notation=notation, rolls=faces, kept=kept, total=result.total)
        return result

    # -------------------------------------------------------------------------
    # D&D helpers
    # -------------------------------------------------------------------------

    def roll_check(
        self,
        modifier: int = 0,
        *,
        dc: int | None = None,
        mode: RollMode = RollMode.NORMAL,
    ) -> CheckResult:
        """Roll a d20 ability check, skill check or saving throw.

        Args:
            modifier: Total bonus to add.
            dc: Difficulty class to compare against, if any.
            mode: NORMAL, ADVANTAGE or DISADVANTAGE.

        Returns:
            CheckResult; ``success`` is None when no DC was given.
        """
        if mode == RollMode.DROP:
            raise DiceRollError("Checks cannot use drop mode")
        notation = f"1d20{modifier:+d}" if modifier else "1d20"
        if mode != RollMode.NORMAL:
            notation = f"{notation} {mode}"
        return CheckResult(roll=self.roll(notation), dc=dc)

    def roll_ability_scores(self) -> dict[Ability, int]:
        """Roll a standard array: 4d6 drop lowest for each ability."""
        return {ability: self.roll("4d6 drop lowest").total for ability in Ability}


class _FloorSource:
    def randint(self, a: int, b: int) -> int:
        return a


def validate_notation(notation: str) -> bool:
    """Check whether ``notation`` is accepted without rolling real dice."""
    try:
        DiceRoller(rng=_FloorSource()).roll(notation)
    except DiceRollError:
        return False
    return True


def format_roll_result(
    result: DiceRollResult,
    *,
    reason: str | None = None,
    dc: int | None = None,
) -> str:
    """Render a roll as the one-line summary shown to players.

    Example:
        ``"🎲 Perception: Rolled 1d20+3 = **17** (14) vs DC 15 - SUCCESS"``
    """
    label = f"{reason}: " if reason else ""
    if result.mode in (RollMode.ADVANTAGE, RollMode.DISADVANTAGE):
        detail = f"{result.rolls[0]}, {result.rolls[1]} {result.mode}, kept {result.kept[0]}"
    elif result.mode == RollMode.DROP:
        detail = f"{', '.join(map(str, result.rolls))}; kept {', '.join(map(str, result.kept))}"
    else:
        detail = ", ".join(map(str, result.rolls))

    text = f"🎲 {label}Rolled {result.notation.strip()} = **{result.total}** ({detail})"

    if dc is not None:
        check = CheckResult(roll=result, dc=dc)
        text += f" vs DC {dc} - {'SUCCESS' if check.success else 'FAILURE'}"
    if result.is_critical_success:
        text += " (natural 20!)"
    elif result.is_critical_failure:
        text += " (natural 1!)"
    return text


# =============================================================================
# Convenience Functions
# =============================================================================

_default_roller: DiceRoller | None = None


def roll(notation: str) -> DiceRollResult:
    """Roll ``notation`` with a process-wide default roller.

    Services should take a DiceRoller through their constructor instead.
    """
    global _default_roller
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller.roll(notation)


__all__ = [
    "RandomSource",
    "DiceRollResult",
    "CheckResult",
    "DiceRoller",
    "validate_notation",
    "format_roll_result",
    "roll",
]
