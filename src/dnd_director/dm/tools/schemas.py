"""Argument models for every DM tool.

The model writes camelCase JSON (``partyLevel``, ``campaignId``); Python
reads snake_case attributes. Each model is validated once at the dispatcher
boundary and handed to its handler as trusted typed data.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from dnd_director.core.constants import (
    DEFAULT_MEMORY_RESULTS,
    MAX_CHARACTER_LEVEL,
    MAX_DIFFICULTY_CLASS,
    MAX_MEMORY_RESULTS,
    MIN_CHARACTER_LEVEL,
    MIN_DIFFICULTY_CLASS,
)
from dnd_director.models.enums import (
    Ability,
    AnalysisType,
    Difficulty,
    EncounterType,
    FocusArea,
    Intensity,
    LocationType,
    MemoryKind,
    NpcImportance,
    NpcRole,
    PartyHealth,
    PartyMorale,
    PartyResources,
    QuestStatus,
    RollType,
    RuleCategory,
)


class ToolArguments(BaseModel):
    """Base for tool arguments: camelCase on the wire, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CampaignScopedArguments(ToolArguments):
    campaign_id: str = Field(min_length=1, description="Campaign identifier")


# =============================================================================
# Dice & Rules
# =============================================================================


class RollDiceArgs(ToolArguments):
    expression: str = Field(
        min_length=1,
        max_length=64,
        description="Dice notation, e.g. '1d20+5', '1d20 advantage', '4d6 drop lowest'",
    )
    reason: str = Field(min_length=1, max_length=200, description="Why the roll is being made")
    dc: int | None = Field(
        default=None,
        ge=MIN_DIFFICULTY_CLASS,
        le=MAX_DIFFICULTY_CLASS,
        description="Difficulty class to beat, for checks and saves",
    )
    ability: Ability | None = Field(default=None, description="Ability the roll is based on")
    roll_type: RollType = Field(default=RollType.D20, description="Kind of roll")


class LookupRuleArgs(ToolArguments):
    query: str = Field(min_length=1, max_length=200, description="Rule, condition or spell to look up")
    category: RuleCategory | None = Field(default=None, description="Restrict the search to one category")


# =============================================================================
# Campaign State
# =============================================================================


class LocationUpdate(ToolArguments):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    location_type: LocationType | None = Field(default=None, alias="type")


class StoryProgressUpdate(ToolArguments):
    milestones: list[str] = Field(
        default_factory=list,
        description="Story milestones reached this turn",
    )


class PartyStatusUpdate(ToolArguments):
    health: PartyHealth | None = None
    resources: PartyResources | None = None
    morale: PartyMorale | None = None


class CampaignStateUpdates(ToolArguments):
    current_location: LocationUpdate | None = None
    story_progress: StoryProgressUpdate | None = None
    flags: dict[str, Any] | None = Field(default=None, description="Story flags to set")
    party_status: PartyStatusUpdate | None = None

    @model_validator(mode="after")
    def require_some_change(self) -> CampaignStateUpdates:
        if (
            self.current_location is None
            and not (self.story_progress and self.story_progress.milestones)
            and not self.flags
            and self.party_status is None
        ):
            raise ValueError("updates must change at least one field")
        return self


class UpdateCampaignStateArgs(CampaignScopedArguments):
    updates: CampaignStateUpdates


# =============================================================================
# Memory
# =============================================================================


class MemoryData(ToolArguments):
    """Memory payload. Kind-specific fields are ignored for other kinds."""

    name: str | None = Field(default=None, max_length=200)
    description: str = ""
    importance: int = Field(default=3, ge=1, le=5, description="1 (trivia) to 5 (campaign-defining)")
    tags: list[str] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list, description="NPC only")
    personality: str | None = Field(default=None, description="NPC only")
    category: str | None = Field(default=None, description="Location type or item type")
    status: QuestStatus | None = Field(default=None, description="Quest only")
    rarity: str | None = Field(default=None, description="Item only")
    revealed: bool | None = Field(default=None, description="Secret only")

    def for_kind(self, kind: MemoryKind) -> dict[str, Any]:
        """Project onto the fields stored for ``kind``."""
        data: dict[str, Any] = {
            "description": self.description,
            "importance": self.importance,
            "tags": self.tags,
        }
        if self.name is not None:
            data["name"] = self.name

        if kind == MemoryKind.NPC:
            data["relationships"] = self.relationships
            data["personality"] = self.personality
        elif kind == MemoryKind.LOCATION:
            data["location_type"] = self.category
        elif kind == MemoryKind.QUEST and self.status is not None:
            data["status"] = self.status
        elif kind == MemoryKind.ITEM:
            data["item_type"] = self.category
            data["rarity"] = self.rarity
        elif kind == MemoryKind.SECRET and self.revealed is not None:
            data["revealed"] = self.revealed
        return data


class SaveMemoryArgs(CampaignScopedArguments):
    memory_type: MemoryKind
    data: MemoryData


class LoadMemoryArgs(CampaignScopedArguments):
    query: str = Field(max_length=200, description="Keywords to search for")
    memory_types: list[MemoryKind] | None = Field(default=None, description="Kinds to search; all if omitted")
    limit: int = Field(default=DEFAULT_MEMORY_RESULTS, ge=1, le=MAX_MEMORY_RESULTS)


# =============================================================================
# Encounters & NPCs
# =============================================================================


class GenerateEncounterArgs(ToolArguments):
    party_level: int = Field(ge=MIN_CHARACTER_LEVEL, le=MAX_CHARACTER_LEVEL)
    party_size: int = Field(ge=1, le=8)
    encounter_type: EncounterType
    difficulty: Difficulty
    environment: str | None = Field(default=None, max_length=200)
    theme: str | None = Field(default=None, max_length=200)


class GenerateNpcArgs(ToolArguments):
    role: NpcRole
    importance: NpcImportance
    location: str | None = Field(default=None, max_length=200)
    personality: str | None = Field(default=None, max_length=200)
    connection_to_party: str | None = Field(default=None, max_length=500)


# =============================================================================
# Director
# =============================================================================


class RoundRange(ToolArguments):
    start: int = Field(ge=1)
    end: int = Field(ge=1)

    @model_validator(mode="after")
    def check_order(self) -> RoundRange:
        if self.start > self.end:
            raise ValueError("roundRange.start must not exceed roundRange.end")
        return self


class AnalyzeCampaignProgressArgs(CampaignScopedArguments):
    analysis_type: AnalysisType
    round_range: RoundRange | None = None


class PlanStoryBeatsArgs(CampaignScopedArguments):
    look_ahead: int = Field(default=5, ge=1, le=20, description="How many rounds ahead to plan")
    focus_areas: list[FocusArea] = Field(default_factory=list)
    intensity: Intensity = Intensity.BUILDING


__all__ = [
    "ToolArguments",
    "CampaignScopedArguments",
    "RollDiceArgs",
    "LookupRuleArgs",
    "LocationUpdate",
    "StoryProgressUpdate",
    "PartyStatusUpdate",
    "CampaignStateUpdates",
    "UpdateCampaignStateArgs",
    "MemoryData",
    "SaveMemoryArgs",
    "LoadMemoryArgs",
    "GenerateEncounterArgs",
    "GenerateNpcArgs",
    "RoundRange",
    "AnalyzeCampaignProgressArgs",
    "PlanStoryBeatsArgs",
]
