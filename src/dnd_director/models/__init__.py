"""Pydantic V2 models and enumerations for campaign state and memory."""

from __future__ import annotations

from dnd_director.models.campaign import (
    AdvanceRoundResult,
    CampaignProgress,
    CampaignState,
    CharacterInfo,
    CreditLedger,
    CreditStatus,
    RoundTransition,
    HistoryEntry,
    Location,
    PartyStatus,
    calculate_chapter,
)
from dnd_director.models.enums import (
    Ability,
    AgentTier,
    AnalysisType,
    BeatPriority,
    CreditType,
    Difficulty,
    EncounterType,
    FocusArea,
    Intensity,
    LocationType,
    LogType,
    MemoryKind,
    NpcImportance,
    NpcRole,
    PartyHealth,
    PartyMorale,
    PartyResources,
    QuestStatus,
    RollMode,
    RollType,
    RuleCategory,
)
from dnd_director.models.memory import (
    ItemMemory,
    LocationMemory,
    MemoryEntity,
    MemoryEvent,
    NpcMemory,
    QuestMemory,
    SecretMemory,
    StoredMemory,
    StoryBeat,
    parse_memory_entity,
)


__all__ = [
    # Campaign
    "RoundTransition",
    "AdvanceRoundResult",
    "CampaignProgress",
    "CampaignState",
    "CharacterInfo",
    "CreditLedger",
    "CreditStatus",
    "HistoryEntry",
    "Location",
    "PartyStatus",
    "calculate_chapter",
    # Enums
    "Ability",
    "AgentTier",
    "AnalysisType",
    "BeatPriority",
    "CreditType",
    "Difficulty",
    "EncounterType",
    "FocusArea",
    "Intensity",
    "LocationType",
    "LogType",
    "MemoryKind",
    "NpcImportance",
    "NpcRole",
    "PartyHealth",
    "PartyMorale",
    "PartyResources",
    "QuestStatus",
    "RollMode",
    "RollType",
    "RuleCategory",
    # Memory
    "ItemMemory",
    "LocationMemory",
    "MemoryEntity",
    "MemoryEvent",
    "NpcMemory",
    "QuestMemory",
    "SecretMemory",
    "StoredMemory",
    "StoryBeat",
    "parse_memory_entity",
]
