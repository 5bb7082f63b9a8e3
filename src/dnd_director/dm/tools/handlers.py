"""Tool handler implementations for both agent tiers.

Every handler takes its validated argument model and returns a ToolResult.
Expected failures (bad notation, unknown campaign, data that does not fit a
memory kind) become ``success=False`` results here; anything unexpected is
caught one level up by the dispatcher.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from dnd_director.core.constants import RULE_RESULTS_LIMIT
from dnd_director.core.exceptions import DiceRollError, DndDirectorError
from dnd_director.core.logging import get_logger
from dnd_director.dm.content import ContentGenerator
from dnd_director.dm.tools.base import ToolName, ToolResult, format_validation_error
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
from dnd_director.engine.dice import CheckResult, DiceRoller, format_roll_result
from dnd_director.lookup.memory import MemoryLookup
from dnd_director.lookup.rules import RuleLookup
from dnd_director.models.campaign import Location
from dnd_director.models.enums import LogType, MemoryKind
from dnd_director.storage.database import CampaignStore


logger = get_logger(__name__)


class ToolHandlers:
    """The nine tool handlers, bound to their services.

    Args:
        dice: Dice roller (inject a scripted random source in tests).
        rules: Static rule corpus.
        memory: Campaign memory.
        store: Campaign store, for state updates and director reads.
        content: Encounter/NPC/analysis generator.
    """

    def __init__(
        self,
        *,
        dice: DiceRoller,
        rules: RuleLookup,
        memory: MemoryLookup,
        store: CampaignStore,
        content: ContentGenerator,
    ) -> None:
        self.dice = dice
        self.rules = rules
        self.memory = memory
        self.store = store
        self.content = content

    # =========================================================================
    # Dice & Rules
    # =========================================================================

    async def roll_dice(self, args: RollDiceArgs) -> ToolResult:
        """Roll through the dice engine, framing the total against a DC if one was given."""
        name = ToolName.ROLL_DICE
        try:
            result = self.dice.roll(args.expression)
        except DiceRollError as exc:
            return ToolResult.fail(name, exc.message, f"❌ Error rolling {args.expression}: {exc.message}")

        check = CheckResult(roll=result, dc=args.dc)
        payload = {
            **result.to_dict(),
            "reason": args.reason,
            "dc": args.dc,
            "ability": str(args.ability) if args.ability else None,
            "roll_type": str(args.roll_type),
            "success": check.success,
        }
        return ToolResult.ok(name, payload, format_roll_result(result, reason=args.reason, dc=args.dc))

    async def lookup_rule(self, args: LookupRuleArgs) -> ToolResult:
        name = ToolName.LOOKUP_RULE
        found = self.rules.search(args.query, args.category, limit=None)
        if not found:
            return ToolResult.fail(name, "No rules found for that query", f'❓ No SRD rules found for "{args.query}"')

        payload = {
            "query": args.query,
            "category": str(args.category) if args.category else None,
            "results": [match.to_dict() for match in found[:RULE_RESULTS_LIMIT]],
        }
        return ToolResult.ok(name, payload, f'📚 Found {len(found)} rule(s) for "{args.query}"')

    # =========================================================================
    # Campaign State
    # =========================================================================

    async def update_campaign_state(self, args: UpdateCampaignStateArgs) -> ToolResult:
        """Apply location, milestone, flag and party-status changes.

        Each change is its own field-level write plus one log entry. Round
        and chapter never move here; only a round advance does that.
        """
        name = ToolName.UPDATE_CAMPAIGN_STATE
        try:
            payload = await asyncio.to_thread(self._apply_state_updates, args)
        except DndDirectorError as exc:
            return ToolResult.fail(name, exc.message, f"❌ Error updating campaign state: {exc.message}")

        fields = ", ".join(payload["updated_fields"])
        return ToolResult.ok(name, payload, f"✅ Campaign state updated: {fields}")

    def _apply_state_updates(self, args: UpdateCampaignStateArgs) -> dict[str, Any]:
        campaign_id = args.campaign_id
        updates = args.updates
        round_number = self.store.get_campaign(campaign_id).progress.current_round
        updated: list[str] = []
        payload: dict[str, Any] = {}

        if updates.current_location is not None:
            location = Location(
                name=updates.current_location.name,
                description=updates.current_location.description,
                location_type=updates.current_location.location_type,
            )
            self.store.set_location(campaign_id, location)
            self.store.append_log(
                campaign_id,
                LogType.LOCATION_CHANGE,
                {"location": location.model_dump(mode="json")},
                round_number=round_number,
            )
            payload["location"] = location.model_dump(mode="json")
            updated.append("currentLocation")

        if updates.story_progress is not None and updates.story_progress.milestones:
            for milestone in updates.story_progress.milestones:
                self.store.append_log(
                    campaign_id,
                    LogType.MILESTONE,
                    {"milestone": milestone},
                    round_number=round_number,
                )
            payload["milestones"] = updates.story_progress.milestones
            updated.append("storyProgress")

        if updates.flags:
            self.store.merge_flags(campaign_id, updates.flags)
            self.store.append_log(
                campaign_id,
                LogType.FLAGS_UPDATED,
                {"flags": updates.flags},
                round_number=round_number,
            )
            payload["flags"] = updates.flags
            updated.append("flags")

        if updates.party_status is not None:
            changes = updates.party_status.model_dump(mode="json", exclude_none=True)
            if changes:
                status = self.store.merge_party_status(campaign_id, changes)
                self.store.append_log(
                    campaign_id,
                    LogType.PARTY_STATUS,
                    {"status": changes},
                    round_number=round_number,
                )
                payload["party_status"] = status.model_dump(mode="json")
                updated.append("partyStatus")

        logger.info("Campaign state updated", campaign_id=campaign_id, fields=updated)
        payload["updated_fields"] = updated
        return payload

    # =========================================================================
    # Memory
    # =========================================================================

    async def save_memory(self, args: SaveMemoryArgs) -> ToolResult:
        name = ToolName.SAVE_MEMORY
        kind = args.memory_type
        try:
            round_number = None
            if kind == MemoryKind.EVENT:
                state = await asyncio.to_thread(self.store.get_campaign, args.campaign_id)
                round_number = state.progress.current_round
            saved = await self.memory.save(
                args.campaign_id,
                kind,
                args.data.for_kind(kind),
                round_number=round_number,
            )
        except PydanticValidationError as exc:
            message = format_validation_error(exc)
            return ToolResult.fail(name, message, f"❌ Error saving {kind}: {message}")
        except DndDirectorError as exc:
            return ToolResult.fail(name, exc.message, f"❌ Error saving {kind}: {exc.message}")

        verb = "💾 Saved" if saved.created else "🔄 Updated"
        payload = {
            "memory_type": str(kind),
            "name": saved.name,
            "record_id": saved.record_id,
            "created": saved.created,
        }
        return ToolResult.ok(name, payload, f'{verb} {kind}: "{saved.name}"')

    async def load_memory(self, args: LoadMemoryArgs) -> ToolResult:
        name = ToolName.LOAD_MEMORY
        matches = await self.memory.search(
            args.campaign_id,
            args.query,
            kinds=args.memory_types,
            limit=args.limit,
        )
        payload = {
            "query": args.query,
            "results": [match.to_dict() for match in matches],
            "total_found": len(matches),
        }
        return ToolResult.ok(name, payload, f'🔍 Found {len(matches)} memories matching "{args.query}"')

    # =========================================================================
    # Encounters & NPCs
    # =========================================================================

    async def generate_encounter(self, args: GenerateEncounterArgs) -> ToolResult:
        encounter = self.content.encounter(
            party_level=args.party_level,
            party_size=args.party_size,
            encounter_type=args.encounter_type,
            difficulty=args.difficulty,
            environment=args.environment,
            theme=args.theme,
        )
        return ToolResult.ok(
            ToolName.GENERATE_ENCOUNTER,
            {"encounter": encounter},
            f"⚔️ Generated {args.difficulty} {args.encounter_type} encounter for level {args.party_level} party",
        )

    async def generate_npc(self, args: GenerateNpcArgs) -> ToolResult:
        npc = self.content.npc(
            role=args.role,
            importance=args.importance,
            location=args.location,
            personality=args.personality,
            connection_to_party=args.connection_to_party,
        )
        return ToolResult.ok(
            ToolName.GENERATE_NPC,
            {"npc": npc},
            f"👤 Generated {args.importance} {args.role}: {npc['name']}",
        )

    # =========================================================================
    # Director
    # =========================================================================

    async def analyze_campaign_progress(self, args: AnalyzeCampaignProgressArgs) -> ToolResult:
        name = ToolName.ANALYZE_CAMPAIGN_PROGRESS
        round_range = (args.round_range.start, args.round_range.end) if args.round_range else None
        try:
            state = await asyncio.to_thread(self.store.get_campaign, args.campaign_id)
            logs = await asyncio.to_thread(
                self.store.recent_logs,
                args.campaign_id,
                limit=200,
                round_range=round_range,
            )
        except DndDirectorError as exc:
            return ToolResult.fail(name, exc.message, f"❌ Error analyzing {args.analysis_type}: {exc.message}")

        analysis = self.content.analysis(args.analysis_type, state.progress, logs, round_range)
        return ToolResult.ok(
            name,
            {"analysis": analysis, "analysis_type": str(args.analysis_type)},
            f"📊 Completed {args.analysis_type} analysis for campaign",
        )

    async def plan_story_beats(self, args: PlanStoryBeatsArgs) -> ToolResult:
        name = ToolName.PLAN_STORY_BEATS
        try:
            state = await asyncio.to_thread(self.store.get_campaign, args.campaign_id)
            beats = self.content.story_beats(
                state.progress,
                look_ahead=args.look_ahead,
                focus_areas=args.focus_areas,
                intensity=args.intensity,
            )
            if beats:
                await asyncio.to_thread(self.store.save_story_beats, args.campaign_id, beats)
        except DndDirectorError as exc:
            return ToolResult.fail(name, exc.message, f"❌ Error planning story beats: {exc.message}")

        if not beats:
            return ToolResult.ok(
                name,
                {"story_beats": [], "intensity": str(args.intensity)},
                "📖 No rounds left to plan; the campaign is at its final round",
            )

        payload = {
            "story_beats": [
                {**beat.model_dump(mode="json"), "intensity": str(args.intensity)} for beat in beats
            ],
            "start_round": beats[0].round_number,
            "intensity": str(args.intensity),
        }
        return ToolResult.ok(
            name,
            payload,
            f"📖 Planned {len(beats)} story beats for rounds {beats[0].round_number}-{beats[-1].round_number}",
        )


__all__ = ["ToolHandlers"]
