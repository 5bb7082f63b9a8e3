"""Enumeration types for the D&D Director engine.

Every closed set of choices that crosses the model-facing tool schema is
declared here so the JSON schema enums and the Python checks come from
the same source.
"""

from __future__ import annotations

from enum import StrEnum


class AgentTier(StrEnum):
    """Which agent role a request is routed to.

    The tier decides the system prompt, the sampling temperature and the
    subset of tools the model may call.
    """

    STRATEGIC = "strategic"
    SCENE = "scene"


class Ability(StrEnum):
    """D&D 5E ability scores, valued by their sheet abbreviation."""

    STR = "STR"
    DEX = "DEX"
    CON = "CON"
    INT = "INT"
    WIS = "WIS"
    CHA = "CHA"

    @property
    def full_name(self) -> str:
        return {
            "STR": "Strength",
            "DEX": "Dexterity",
            "CON": "Constitution",
            "INT": "Intelligence",
            "WIS": "Wisdom",
            "CHA": "Charisma",
        }[self.value]


class RollType(StrEnum):
    """Kind of roll a tool call asks for."""

    D20 = "d20"
    DAMAGE = "damage"
    CUSTOM = "custom"


class RollMode(StrEnum):
    """How the dice of one expression were resolved."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"
    DROP = "drop"


class RuleCategory(StrEnum):
    """Partitions of the static rules corpus."""

    COMBAT = "combat"
    CONDITIONS = "conditions"
    SPELLS = "spells"
    ABILITIES = "abilities"
    GENERAL = "general"


class MemoryKind(StrEnum):
    """Kinds of campaign memory. EVENT is stored in the log, not as an entity."""

    NPC = "npc"
    LOCATION = "location"
    QUEST = "quest"
    ITEM = "item"
    SECRET = "secret"
    EVENT = "event"


class LocationType(StrEnum):
    TOWN = "town"
    DUNGEON = "dungeon"
    WILDERNESS = "wilderness"
    BUILDING = "building"
    PLANE = "plane"


class PartyHealth(StrEnum):
    HEALTHY = "healthy"
    INJURED = "injured"
    CRITICAL = "critical"
    RESTING = "resting"


class PartyResources(StrEnum):
    FULL = "full"
    MODERATE = "moderate"
    LOW = "low"
    DEPLETED = "depleted"


class PartyMorale(StrEnum):
    HIGH = "high"
    GOOD = "good"
    NEUTRAL = "neutral"
    LOW = "low"
    BROKEN = "broken"


class QuestStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class EncounterType(StrEnum):
    COMBAT = "combat"
    SOCIAL = "social"
    EXPLORATION = "exploration"
    PUZZLE = "puzzle"
    TRAP = "trap"


class Difficulty(StrEnum):
    TRIVIAL = "trivial"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    DEADLY = "deadly"


class NpcRole(StrEnum):
    SHOPKEEPER = "shopkeeper"
    GUARD = "guard"
    NOBLE = "noble"
    COMMONER = "commoner"
    VILLAIN = "villain"
    ALLY = "ally"
    NEUTRAL = "neutral"
    QUEST_GIVER = "quest_giver"


class NpcImportance(StrEnum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


class AnalysisType(StrEnum):
    """Lenses the Director tier can analyze campaign progress through."""

    PACING = "pacing"
    CHARACTER_DEVELOPMENT = "character_development"
    STORY_BEATS = "story_beats"
    DIFFICULTY = "difficulty"
    ENGAGEMENT = "engagement"


class FocusArea(StrEnum):
    CHARACTER_DEVELOPMENT = "character_development"
    MAIN_PLOT = "main_plot"
    SIDE_QUESTS = "side_quests"
    WORLD_BUILDING = "world_building"
    COMBAT = "combat"
    ROLEPLAY = "roleplay"


class Intensity(StrEnum):
    LOW = "low"
    BUILDING = "building"
    CLIMACTIC = "climactic"
    RESOLUTION = "resolution"


class BeatPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CreditType(StrEnum):
    """Which ledger unit paid for a round advance."""

    FREE = "free"
    PAID = "paid"


class LogType(StrEnum):
    """Entry types written to the campaign log."""

    PLAYER_MESSAGE = "player_message"
    DM_MESSAGE = "dm_message"
    ROUND_ADVANCE = "round_advance"
    LOCATION_CHANGE = "location_change"
    MILESTONE = "milestone"
    FLAGS_UPDATED = "flags_updated"
    PARTY_STATUS = "party_status"
    IMPORTANT_EVENT = "important_event"
    DICE_ROLL = "dice_roll"
    ENCOUNTER = "encounter"


__all__ = [
    "AgentTier",
    "Ability",
    "RollType",
    "RollMode",
    "RuleCategory",
    "MemoryKind",
    "LocationType",
    "PartyHealth",
    "PartyResources",
    "PartyMorale",
    "QuestStatus",
    "EncounterType",
    "Difficulty",
    "NpcRole",
    "NpcImportance",
    "AnalysisType",
    "FocusArea",
    "Intensity",
    "BeatPriority",
    "CreditType",
    "LogType",
]
