"""Tests for campaign memory save and search."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from dnd_director.lookup.memory import MemoryLookup
from dnd_director.models.enums import MemoryKind, QuestStatus


@pytest.fixture
def memory(store) -> MemoryLookup:
    """Provide a memory lookup over the temp store."""
    return MemoryLookup(store)


class TestSave:
    """Tests for saving memories."""

    @pytest.mark.asyncio
    async def test_save_npc(self, memory: MemoryLookup, campaign) -> None:
        """Test an NPC is stored with its kind-specific fields."""
        saved = await memory.save(
            campaign.campaign_id,
            MemoryKind.NPC,
            {"name": "Meepo", "description": "A kobold keeper of dragons", "personality": "anxious"},
        )

        assert saved.created is True
        assert saved.name == "Meepo"
        stored = memory.store.find_entity(campaign.campaign_id, "npc", "meepo")
        assert stored is not None
        assert stored.attributes["personality"] == "anxious"

    @pytest.mark.asyncio
    async def test_quest_status_flips_existing(self, memory: MemoryLookup, campaign) -> None:
        """Test saving a quest with an existing name updates its status."""
        first = await memory.save(campaign.campaign_id, "quest", {"name": "Rescue Sharwyn"})
        second = await memory.save(
            campaign.campaign_id,
            "quest",
            {"name": "rescue sharwyn", "status": QuestStatus.COMPLETED},
        )

        assert second.created is False
        assert second.record_id == first.record_id
        quests = memory.store.list_entities(campaign.campaign_id, kinds=["quest"])
        assert len(quests) == 1
        assert quests[0].attributes["status"] == "completed"

    @pytest.mark.asyncio
    async def test_resave_without_status_keeps_quest_status(self, memory: MemoryLookup, campaign) -> None:
        """Test re-saving a quest without a status leaves the stored status alone."""
        await memory.save(
            campaign.campaign_id,
            "quest",
            {"name": "Rescue Sharwyn", "status": QuestStatus.COMPLETED},
        )
        again = await memory.save(
            campaign.campaign_id,
            "quest",
            {"name": "Rescue Sharwyn", "description": "more detail"},
        )

        assert again.created is False
        quests = memory.store.list_entities(campaign.campaign_id, kinds=["quest"])
        assert len(quests) == 1
        assert quests[0].attributes["status"] == "completed"

    @pytest.mark.asyncio
    async def test_resave_without_revealed_keeps_secret_revealed(self, memory: MemoryLookup, campaign) -> None:
        """Test re-saving a revealed secret without the flag keeps it revealed."""
        await memory.save(
            campaign.campaign_id,
            "secret",
            {"name": "Belak's bargain", "revealed": True},
        )
        await memory.save(
            campaign.campaign_id,
            "secret",
            {"name": "Belak's bargain", "description": "The druid feeds the tree"},
        )

        secret = memory.store.find_entity(campaign.campaign_id, "secret", "belak's bargain")
        assert secret is not None
        assert secret.attributes["revealed"] is True

    @pytest.mark.asyncio
    async def test_event_goes_to_log(self, memory: MemoryLookup, campaign) -> None:
        """Test events are written to the campaign log, not the entity table."""
        saved = await memory.save(
            campaign.campaign_id,
            MemoryKind.EVENT,
            {"description": "The twig blights attacked at dusk"},
            round_number=3,
        )

        assert saved.kind == MemoryKind.EVENT
        assert memory.store.list_entities(campaign.campaign_id) == []
        logs = memory.store.recent_logs(campaign.campaign_id, log_types=["important_event"])
        assert logs[0].round_number == 3

    @pytest.mark.asyncio
    async def test_invalid_data(self, memory: MemoryLookup, campaign) -> None:
        """Test entity data that does not fit the kind is rejected."""
        with pytest.raises(PydanticValidationError):
            await memory.save(campaign.campaign_id, MemoryKind.LOCATION, {"description": "no name"})


class TestSearch:
    """Tests for memory search."""

    @pytest.mark.asyncio
    async def test_ranked_by_relevance(self, memory: MemoryLookup, campaign) -> None:
        """Test title hits outrank description hits."""
        await memory.save(campaign.campaign_id, "location", {"name": "Thundertree", "description": "Ruined village"})
        await memory.save(campaign.campaign_id, "npc", {"name": "Reidoth", "description": "Druid of Thundertree"})

        found = await memory.search(campaign.campaign_id, "thundertree")

        assert [m.memory.name for m in found] == ["Thundertree", "Reidoth"]
        assert found[0].relevance > found[1].relevance

    @pytest.mark.asyncio
    async def test_matches_tags_and_events(self, memory: MemoryLookup, campaign) -> None:
        """Test tags are searched and events are merged in."""
        await memory.save(campaign.campaign_id, "item", {"name": "Ash staff", "tags": ["gulthias"]})
        await memory.save(campaign.campaign_id, "event", {"description": "The Gulthias tree bled sap"})

        found = await memory.search(campaign.campaign_id, "gulthias")

        assert {m.memory.kind for m in found} == {MemoryKind.ITEM, MemoryKind.EVENT}

    @pytest.mark.asyncio
    async def test_kind_filter_and_limit(self, memory: MemoryLookup, campaign) -> None:
        """Test kind filtering and the result limit."""
        for i in range(4):
            await memory.save(campaign.campaign_id, "npc", {"name": f"Goblin {i}"})
        await memory.save(campaign.campaign_id, "location", {"name": "Goblin warren"})

        npcs = await memory.search(campaign.campaign_id, "goblin", kinds=["npc"], limit=2)

        assert len(npcs) == 2
        assert all(m.memory.kind == MemoryKind.NPC for m in npcs)

    @pytest.mark.asyncio
    async def test_empty_query_lists_all(self, memory: MemoryLookup, campaign) -> None:
        """Test an empty query returns everything up to the limit."""
        await memory.save(campaign.campaign_id, "npc", {"name": "Belak"})
        await memory.save(campaign.campaign_id, "secret", {"name": "Belak tends the tree"})

        found = await memory.search(campaign.campaign_id, "")

        assert len(found) == 2

    @pytest.mark.asyncio
    async def test_to_dict_flattens_attributes(self, memory: MemoryLookup, campaign) -> None:
        """Test the result payload includes kind-specific fields."""
        await memory.save(campaign.campaign_id, "secret", {"name": "Belak's bargain", "revealed": False})

        data = (await memory.search(campaign.campaign_id, "bargain"))[0].to_dict()

        assert data["type"] == "secret"
        assert data["revealed"] is False
        assert "relevance" in data
