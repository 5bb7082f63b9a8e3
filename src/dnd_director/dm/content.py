"""Descriptive content for encounters, NPCs, progress analysis and story beats.

This output is advisory: the model narrates from it, nothing enforces it.
Numbers that do matter (DCs, XP budgets, trap damage, NPC ability scores)
come from the rules tables and the dice engine.
"""

from __future__ import annotations

import random
from collections import Counter
from typing import Any

from dnd_director.engine.dice import DiceRoller
from dnd_director.engine.progression import calculate_progress
from dnd_director.engine.rules import (
    get_ability_modifier,
    get_difficulty_class,
    get_encounter_xp_budget,
    get_trap_damage,
)
from dnd_director.models.campaign import CampaignProgress
from dnd_director.models.enums import (
    AnalysisType,
    BeatPriority,
    Difficulty,
    EncounterType,
    FocusArea,
    Intensity,
    NpcImportance,
    NpcRole,
)
from dnd_director.models.memory import StoryBeat
from dnd_director.storage.database import LogRecord


# =============================================================================
# Tables
# =============================================================================

NPC_NAMES = (
    "Aelindra", "Bram", "Celia", "Dorian", "Evelyn", "Finn",
    "Gwen", "Hector", "Iris", "Jace", "Kira", "Liam",
)

NPC_PERSONALITIES = (
    "cheerful and optimistic",
    "gruff but kind-hearted",
    "nervous and twitchy",
    "wise and patient",
    "ambitious and cunning",
    "mysterious and aloof",
)

NPC_BUILDS = ("a short, stocky figure", "a tall, wiry figure", "a person of average height", "a broad-shouldered figure")
NPC_FEATURES = ("a crooked nose", "ink-stained fingers", "a faded scar across one cheek", "bright, restless eyes", "a booming laugh")

NPC_MOTIVATIONS: dict[NpcRole, str] = {
    NpcRole.SHOPKEEPER: "Making a profit and serving customers well",
    NpcRole.GUARD: "Protecting the community from threats",
    NpcRole.NOBLE: "Maintaining power and influence",
    NpcRole.COMMONER: "Living a peaceful life with family",
    NpcRole.VILLAIN: "Achieving their dark goals",
    NpcRole.ALLY: "Helping the party succeed",
    NpcRole.NEUTRAL: "Pursuing personal interests",
    NpcRole.QUEST_GIVER: "Solving a pressing problem",
}

NPC_BASE_STATS: dict[NpcImportance, dict[str, float]] = {
    NpcImportance.MINOR: {"ac": 10, "hp": 5, "cr": 0},
    NpcImportance.MODERATE: {"ac": 12, "hp": 15, "cr": 0.25},
    NpcImportance.MAJOR: {"ac": 14, "hp": 30, "cr": 0.5},
    NpcImportance.CRITICAL: {"ac": 16, "hp": 50, "cr": 1},
}

ANALYSIS_PROFILES: dict[AnalysisType, tuple[str, tuple[str, ...]]] = {
    AnalysisType.PACING: (
        "moderate",
        ("Consider adding more action sequences", "Balance roleplay with exploration"),
    ),
    AnalysisType.CHARACTER_DEVELOPMENT: (
        "good",
        ("Focus on character backstories", "Create personal stakes"),
    ),
    AnalysisType.STORY_BEATS: (
        "on_track",
        ("Continue current narrative arc", "Prepare climax elements"),
    ),
    AnalysisType.DIFFICULTY: (
        "appropriate",
        ("Maintain current challenge level", "Add optional harder encounters"),
    ),
    AnalysisType.ENGAGEMENT: (
        "high",
        ("Continue current approach", "Introduce surprise elements"),
    ),
}


# =============================================================================
# Generator
# =============================================================================


class ContentGenerator:
    """Builds encounter, NPC, analysis and story-beat content.

    Args:
        rng: Random source; pass a seeded ``random.Random`` in tests.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.dice = DiceRoller(rng=self.rng)

    # -------------------------------------------------------------------------
    # Encounters
    # -------------------------------------------------------------------------

    def encounter(
        self,
        *,
        party_level: int,
        party_size: int,
        encounter_type: EncounterType,
        difficulty: Difficulty,
        environment: str | None = None,
        theme: str | None = None,
    ) -> dict[str, Any]:
        """Structured encounter outline for the model to narrate from."""
        place = environment or "the surrounding area"
        dc = get_difficulty_class(difficulty)
        xp_budget = get_encounter_xp_budget(party_level, party_size, difficulty)
        flavor = f" with a {theme} theme" if theme else ""

        elements: list[dict[str, Any]]
        rewards: list[dict[str, Any]] = []
        if encounter_type == EncounterType.COMBAT:
            elements = [{
                "type": "monsters",
                "description": f"Combat encounter appropriate for a level {party_level} party of {party_size}",
                "challenge": f"{difficulty} difficulty{flavor}",
                "xp_budget": xp_budget,
            }]
            rewards.append({"type": "xp", "amount": xp_budget})
        elif encounter_type == EncounterType.SOCIAL:
            elements = [{
                "type": "social_challenge",
                "description": f"Social encounter with {difficulty} complexity{flavor}",
                "dc": dc,
            }]
        elif encounter_type == EncounterType.EXPLORATION:
            elements = [{
                "type": "exploration_challenge",
                "description": f"Exploration challenge in {place}",
                "dc": dc,
            }]
        elif encounter_type == EncounterType.PUZZLE:
            elements = [{
                "type": "puzzle",
                "description": f"{str(difficulty).capitalize()} puzzle{flavor}",
                "dc": dc,
            }]
        else:
            elements = [{
                "type": "trap",
                "description": f"{str(difficulty).capitalize()} trap for a level {party_level} party",
                "save_dc": dc,
                "damage": get_trap_damage(party_level, difficulty),
            }]

        return {
            "type": str(encounter_type),
            "difficulty": str(difficulty),
            "environment": environment,
            "theme": theme,
            "party_level": party_level,
            "party_size": party_size,
            "description": f"A {difficulty} {encounter_type} encounter in {place}",
            "xp_budget": xp_budget,
            "elements": elements,
            "rewards": rewards,
        }

    # -------------------------------------------------------------------------
    # NPCs
    # -------------------------------------------------------------------------

    def npc(
        self,
        *,
        role: NpcRole,
        importance: NpcImportance,
        location: str | None = None,
        personality: str | None = None,
        connection_to_party: str | None = None,
    ) -> dict[str, Any]:
        """A named NPC with motivation and a basic stat block.

        Only critical NPCs carry a secret.
        """
        scores = self.dice.roll_ability_scores()
        stats: dict[str, Any] = dict(NPC_BASE_STATS[importance])
        stats["ability_scores"] = {str(ability): score for ability, score in scores.items()}
        stats["modifiers"] = {str(ability): get_ability_modifier(score) for ability, score in scores.items()}

        return {
            "name": self.rng.choice(NPC_NAMES),
            "role": str(role),
            "importance": str(importance),
            "location": location,
            "personality": personality or self.rng.choice(NPC_PERSONALITIES),
            "connection_to_party": connection_to_party,
            "appearance": f"{self.rng.choice(NPC_BUILDS).capitalize()} with {self.rng.choice(NPC_FEATURES)}",
            "motivation": NPC_MOTIVATIONS.get(role, "Following their own agenda"),
            "secrets": ["Has a hidden connection to the main plot"] if importance == NpcImportance.CRITICAL else [],
            "stats": stats,
        }

    # -------------------------------------------------------------------------
    # Director content
    # -------------------------------------------------------------------------

    def analysis(
        self,
        analysis_type: AnalysisType,
        progress: CampaignProgress,
        logs: list[LogRecord],
        round_range: tuple[int, int] | None = None,
    ) -> dict[str, Any]:
        """Advisory analysis over the campaign log."""
        assessment, recommendations = ANALYSIS_PROFILES[analysis_type]
        activity = Counter(str(log.log_type) for log in logs)
        rounds_seen = sorted({log.round_number for log in logs if log.round_number is not None})

        if not logs:
            assessment = "insufficient_data"

        return {
            "type": str(analysis_type),
            "assessment": assessment,
            "recommendations": list(recommendations),
            "round_range": list(round_range) if round_range else None,
            "current_round": progress.current_round,
            "current_chapter": progress.current_chapter,
            "progress_percent": calculate_progress(progress.current_round, progress.target_rounds),
            "rounds_with_activity": len(rounds_seen),
            "activity": dict(activity),
        }

    def story_beats(
        self,
        progress: CampaignProgress,
        *,
        look_ahead: int,
        focus_areas: list[FocusArea],
        intensity: Intensity,
    ) -> list[StoryBeat]:
        """Plan beats for the rounds after the current one.

        Beats never go past the campaign's target round.
        """
        beat_type = focus_areas[0] if focus_areas else FocusArea.MAIN_PLOT
        last_round = min(progress.current_round + look_ahead, progress.target_rounds)

        return [
            StoryBeat(
                round_number=round_number,
                beat_type=beat_type,
                description=f"{str(intensity).capitalize()} {beat_type.replace('_', ' ')} beat for round {round_number}",
                priority=BeatPriority.HIGH if round_number == progress.current_round + 1 else BeatPriority.MEDIUM,
            )
            for round_number in range(progress.current_round + 1, last_round + 1)
        ]


__all__ = [
    "NPC_NAMES",
    "NPC_PERSONALITIES",
    "NPC_MOTIVATIONS",
    "NPC_BASE_STATS",
    "ANALYSIS_PROFILES",
    "ContentGenerator",
]
