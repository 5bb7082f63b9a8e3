"""Tests for the nine tool handlers."""

from __future__ import annotations

import pytest

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
from dnd_director.models.enums import LogType


class TestRollDice:
    """Tests for the roll_dice handler."""

    @pytest.mark.asyncio
    async def test_check_against_dc(self, tool_handlers: ToolHandlers, scripted_random) -> None:
        """Test a d20 check reports the total and the outcome."""
        scripted_random.push(14)
        args = RollDiceArgs.model_validate(
            {"expression": "1d20+3", "reason": "Perception", "dc": 15, "ability": "WIS"}
        )

        result = await tool_handlers.roll_dice(args)

        assert result.success is True
        assert result.payload["total"] == 17
        assert result.payload["dc"] == 15
        assert result.payload["ability"] == "WIS"
        assert result.payload["success"] is True
        assert result.summary == "🎲 Perception: Rolled 1d20+3 = **17** (14) vs DC 15 - SUCCESS"

    @pytest.mark.asyncio
    async def test_no_dc_has_no_outcome(self, tool_handlers: ToolHandlers, scripted_random) -> None:
        """Test damage rolls carry no success flag."""
        scripted_random.push(3, 4)
        args = RollDiceArgs.model_validate({"expression": "2d6+1", "reason": "Damage", "rollType": "damage"})

        result = await tool_handlers.roll_dice(args)

        assert result.payload["total"] == 8
        assert result.payload["success"] is None
        assert result.payload["roll_type"] == "damage"

    @pytest.mark.asyncio
    async def test_bad_notation(self, tool_handlers: ToolHandlers) -> None:
        """Test unsupported dice fail without rolling."""
        result = await tool_handlers.roll_dice(RollDiceArgs(expression="1d7", reason="odd"))

        assert result.success is False
        assert result.summary.startswith("❌ Error rolling 1d7")
        assert "d7" in result.error


class TestLookupRule:
    """Tests for the lookup_rule handler."""

    @pytest.mark.asyncio
    async def test_found(self, tool_handlers: ToolHandlers) -> None:
        """Test results are capped and the best match comes first."""
        result = await tool_handlers.lookup_rule(LookupRuleArgs(query="prone"))

        assert result.success is True
        assert result.payload["results"][0]["title"] == "Prone"
        assert len(result.payload["results"]) <= 3

    @pytest.mark.asyncio
    async def test_not_found(self, tool_handlers: ToolHandlers) -> None:
        """Test an empty search is a failure the model can read."""
        result = await tool_handlers.lookup_rule(LookupRuleArgs(query="spelljammer"))

        assert result.success is False
        assert "spelljammer" in result.summary


class TestUpdateCampaignState:
    """Tests for the update_campaign_state handler."""

    @pytest.mark.asyncio
    async def test_all_fields(self, tool_handlers: ToolHandlers, store, campaign) -> None:
        """Test every kind of update is applied and logged."""
        args = UpdateCampaignStateArgs.model_validate({
            "campaignId": campaign.campaign_id,
            "updates": {
                "currentLocation": {"name": "Thundertree", "type": "wilderness"},
                "storyProgress": {"milestones": ["Reached the ruins"]},
                "flags": {"dragon_awake": False},
                "partyStatus": {"morale": "high"},
            },
        })

        result = await tool_handlers.update_campaign_state(args)

        assert result.success is True
        assert result.payload["updated_fields"] == ["currentLocation", "storyProgress", "flags", "partyStatus"]
        state = store.get_campaign(campaign.campaign_id)
        assert state.location.name == "Thundertree"
        assert state.flags == {"dragon_awake": False}
        assert state.party_status.morale == "high"
        assert state.progress.current_round == 1
        milestones = store.recent_logs(campaign.campaign_id, log_types=[LogType.MILESTONE])
        assert milestones[0].data == {"milestone": "Reached the ruins"}

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, tool_handlers: ToolHandlers) -> None:
        """Test writes to a missing campaign fail cleanly."""
        args = UpdateCampaignStateArgs.model_validate({"campaignId": "ghost", "updates": {"flags": {"a": 1}}})

        result = await tool_handlers.update_campaign_state(args)

        assert result.success is False
        assert result.summary.startswith("❌ Error updating campaign state")

    def test_empty_updates_rejected(self) -> None:
        """Test an update that changes nothing does not validate."""
        with pytest.raises(ValueError):
            UpdateCampaignStateArgs.model_validate({"campaignId": "c", "updates": {}})


class TestMemoryTools:
    """Tests for save_memory and load_memory."""

    @pytest.mark.asyncio
    async def test_save_then_load(self, tool_handlers: ToolHandlers, campaign) -> None:
        """Test a saved NPC is found again."""
        saved = await tool_handlers.save_memory(SaveMemoryArgs.model_validate({
            "campaignId": campaign.campaign_id,
            "memoryType": "npc",
            "data": {"name": "Sildar", "description": "A captured knight", "personality": "honorable"},
        }))
        loaded = await tool_handlers.load_memory(LoadMemoryArgs.model_validate({
            "campaignId": campaign.campaign_id,
            "query": "knight",
        }))

        assert saved.summary == '💾 Saved npc: "Sildar"'
        assert loaded.payload["total_found"] == 1
        assert loaded.payload["results"][0]["personality"] == "honorable"

    @pytest.mark.asyncio
    async def test_quest_update(self, tool_handlers: ToolHandlers, campaign) -> None:
        """Test saving a known quest reports an update."""
        base = {"campaignId": campaign.campaign_id, "memoryType": "quest"}
        await tool_handlers.save_memory(SaveMemoryArgs.model_validate({**base, "data": {"name": "Find Gundren"}}))

        result = await tool_handlers.save_memory(SaveMemoryArgs.model_validate(
            {**base, "data": {"name": "Find Gundren", "status": "completed"}}
        ))

        assert result.payload["created"] is False
        assert result.summary.startswith("🔄 Updated quest")

    @pytest.mark.asyncio
    async def test_event_uses_current_round(self, tool_handlers: ToolHandlers, store, campaign) -> None:
        """Test events are stamped with the campaign's round."""
        await tool_handlers.save_memory(SaveMemoryArgs.model_validate({
            "campaignId": campaign.campaign_id,
            "memoryType": "event",
            "data": {"description": "The bridge collapsed"},
        }))

        logs = store.recent_logs(campaign.campaign_id, log_types=[LogType.IMPORTANT_EVENT])
        assert logs[0].round_number == 1

    @pytest.mark.asyncio
    async def test_entity_without_name(self, tool_handlers: ToolHandlers, campaign) -> None:
        """Test data that does not fit the kind is a failed result."""
        result = await tool_handlers.save_memory(SaveMemoryArgs.model_validate({
            "campaignId": campaign.campaign_id,
            "memoryType": "npc",
            "data": {"description": "nameless"},
        }))

        assert result.success is False
        assert result.summary.startswith("❌ Error saving npc")


class TestContentTools:
    """Tests for encounter and NPC generation."""

    @pytest.mark.asyncio
    async def test_encounter(self, tool_handlers: ToolHandlers) -> None:
        """Test the encounter budget comes from the XP tables."""
        result = await tool_handlers.generate_encounter(GenerateEncounterArgs.model_validate({
            "partyLevel": 3, "partySize": 4, "encounterType": "combat", "difficulty": "medium",
        }))

        encounter = result.payload["encounter"]
        assert encounter["xp_budget"] == 600
        assert encounter["elements"][0]["type"] == "monsters"
        assert result.summary == "⚔️ Generated medium combat encounter for level 3 party"

    @pytest.mark.asyncio
    async def test_npc(self, tool_handlers: ToolHandlers) -> None:
        """Test a critical NPC has a secret and a stat block."""
        result = await tool_handlers.generate_npc(GenerateNpcArgs.model_validate({
            "role": "villain", "importance": "critical", "location": "Cragmaw Castle",
        }))

        npc = result.payload["npc"]
        assert npc["secrets"]
        assert npc["stats"]["ac"] == 16
        assert set(npc["stats"]["ability_scores"]) == {"STR", "DEX", "CON", "INT", "WIS", "CHA"}


class TestDirectorTools:
    """Tests for the strategic-tier tools."""

    @pytest.mark.asyncio
    async def test_analysis_without_logs(self, tool_handlers: ToolHandlers, campaign) -> None:
        """Test an empty log yields an insufficient-data assessment."""
        result = await tool_handlers.analyze_campaign_progress(AnalyzeCampaignProgressArgs.model_validate({
            "campaignId": campaign.campaign_id, "analysisType": "pacing",
        }))

        assert result.payload["analysis"]["assessment"] == "insufficient_data"
        assert result.payload["analysis"]["recommendations"]

    @pytest.mark.asyncio
    async def test_analysis_with_activity(self, tool_handlers: ToolHandlers, store, campaign) -> None:
        """Test log activity is counted."""
        store.append_log(campaign.campaign_id, LogType.PLAYER_MESSAGE, {"content": "hi"}, round_number=1)

        result = await tool_handlers.analyze_campaign_progress(AnalyzeCampaignProgressArgs.model_validate({
            "campaignId": campaign.campaign_id, "analysisType": "engagement",
        }))

        analysis = result.payload["analysis"]
        assert analysis["assessment"] == "high"
        assert analysis["activity"] == {"player_message": 1}

    def test_round_range_order(self) -> None:
        """Test an inverted round range does not validate."""
        with pytest.raises(ValueError):
            AnalyzeCampaignProgressArgs.model_validate({
                "campaignId": "c", "analysisType": "pacing", "roundRange": {"start": 9, "end": 2},
            })

    @pytest.mark.asyncio
    async def test_plan_story_beats(self, tool_handlers: ToolHandlers, store, campaign) -> None:
        """Test beats are planned after the current round and stored."""
        result = await tool_handlers.plan_story_beats(PlanStoryBeatsArgs.model_validate({
            "campaignId": campaign.campaign_id, "lookAhead": 3, "focusAreas": ["roleplay"], "intensity": "climactic",
        }))

        assert result.payload["start_round"] == 2
        assert [beat["round_number"] for beat in result.payload["story_beats"]] == [2, 3, 4]
        stored = store.list_story_beats(campaign.campaign_id)
        assert [beat.beat_type for beat in stored] == ["roleplay"] * 3

    @pytest.mark.asyncio
    async def test_plan_at_final_round(self, tool_handlers: ToolHandlers, store) -> None:
        """Test nothing is planned past the target round."""
        one_shot = store.create_campaign("One shot", target_rounds=1, rounds_per_chapter=1, free_rounds_limit=0)

        result = await tool_handlers.plan_story_beats(PlanStoryBeatsArgs(campaign_id=one_shot.campaign_id))

        assert result.success is True
        assert result.payload["story_beats"] == []
