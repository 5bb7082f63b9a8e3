"""Tool registry.

Centralizes tool definitions in one place: name, argument model, handler
and which agent tiers may see each tool. Built once at startup and treated
as read-only afterwards.
"""

from __future__ import annotations

from typing import Any, Iterator

from dnd_director.core.logging import get_logger
from dnd_director.dm.tools.base import ToolName, ToolSpec
from dnd_director.dm.tools.handlers import ToolHandlers
from dnd_director.dm.tools.schemas import (
    AnalyzeCampaignProgressArgs,
    GenerateEncounterArgs,
    GenerateNpcArgs,
    LoadMemoryArgs,
    LookupRuleArgs,
    PlanStoryBeatsArgs,
    RollDiceArgs,
    SaveMemoryArgs,
    UpdateCampaignStateArgs,
)
from dnd_director.models.enums import AgentTier

logger = get_logger(__name__)

SCENE_ONLY = frozenset({AgentTier.SCENE})
STRATEGIC_ONLY = frozenset({AgentTier.STRATEGIC})
BOTH_TIERS = frozenset(AgentTier)


class ToolRegistry:
    """Mapping from tool name to its definition, filtered per tier."""

    def __init__(self) -> None:
        self._tools: dict[ToolName, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        """Add a tool.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        """Look up a tool by the name the model used; None if unknown."""
        tool_name = ToolName.parse(name)
        if tool_name is None:
            return None
        return self._tools.get(tool_name)

    def for_tier(self, tier: AgentTier) -> list[ToolSpec]:
        return [spec for spec in self._tools.values() if spec.visible_to(tier)]

    def openai_tools(self, tier: AgentTier) -> list[dict[str, Any]]:
        """Function-calling schemas for the tools ``tier`` may call."""
        return [spec.to_openai_schema() for spec in self.for_tier(tier)]

    @property
    def names(self) -> list[str]:
        return [str(name) for name in self._tools]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)


def build_default_registry(handlers: ToolHandlers) -> ToolRegistry:
    """Register the nine game tools against ``handlers``."""
    registry = ToolRegistry()

    # Scene tier: direct play
    registry.register(ToolSpec(
        name=ToolName.ROLL_DICE,
        description=(
            "Roll dice using standard D&D notation (e.g. '1d20+5', '2d6', '1d20 advantage', "
            "'4d6 drop lowest'). Use for every check, save, attack and damage roll; "
            "never invent a result."
        ),
        arguments_model=RollDiceArgs,
        handler=handlers.roll_dice,
        tiers=SCENE_ONLY,
    ))
    registry.register(ToolSpec(
        name=ToolName.LOOKUP_RULE,
        description="Look up D&D 5e SRD rules, spells, conditions, or mechanics",
        arguments_model=LookupRuleArgs,
        handler=handlers.lookup_rule,
        tiers=SCENE_ONLY,
    ))
    registry.register(ToolSpec(
        name=ToolName.SAVE_MEMORY,
        description="Save important events, NPCs, or discoveries to campaign memory",
        arguments_model=SaveMemoryArgs,
        handler=handlers.save_memory,
        tiers=SCENE_ONLY,
        campaign_scoped=True,
    ))
    registry.register(ToolSpec(
        name=ToolName.GENERATE_ENCOUNTER,
        description="Generate a balanced encounter appropriate for the party level and situation",
        arguments_model=GenerateEncounterArgs,
        handler=handlers.generate_encounter,
        tiers=SCENE_ONLY,
    ))
    registry.register(ToolSpec(
        name=ToolName.GENERATE_NPC,
        description="Generate an NPC with personality, goals, and story hooks",
        arguments_model=GenerateNpcArgs,
        handler=handlers.generate_npc,
        tiers=SCENE_ONLY,
    ))

    # Shared
    registry.register(ToolSpec(
        name=ToolName.UPDATE_CAMPAIGN_STATE,
        description=(
            "Update campaign state: current location, story milestones, flags, and party status. "
            "Rounds and chapters only advance through the round-advance control."
        ),
        arguments_model=UpdateCampaignStateArgs,
        handler=handlers.update_campaign_state,
        tiers=BOTH_TIERS,
        campaign_scoped=True,
    ))
    registry.register(ToolSpec(
        name=ToolName.LOAD_MEMORY,
        description="Load relevant campaign memories, NPCs, or story elements",
        arguments_model=LoadMemoryArgs,
        handler=handlers.load_memory,
        tiers=BOTH_TIERS,
        campaign_scoped=True,
    ))

    # Strategic tier: planning
    registry.register(ToolSpec(
        name=ToolName.ANALYZE_CAMPAIGN_PROGRESS,
        description="Analyze campaign pacing, character development, story beats, difficulty or engagement",
        arguments_model=AnalyzeCampaignProgressArgs,
        handler=handlers.analyze_campaign_progress,
        tiers=STRATEGIC_ONLY,
        campaign_scoped=True,
    ))
    registry.register(ToolSpec(
        name=ToolName.PLAN_STORY_BEATS,
        description="Plan upcoming story beats and plot points for the campaign",
        arguments_model=PlanStoryBeatsArgs,
        handler=handlers.plan_story_beats,
        tiers=STRATEGIC_ONLY,
        campaign_scoped=True,
    ))

    logger.debug("Tool registry built", tools=registry.names)
    return registry


__all__ = [
    "SCENE_ONLY",
    "STRATEGIC_ONLY",
    "BOTH_TIERS",
    "ToolRegistry",
    "build_default_registry",
]
