"""Tests for encounter, NPC, analysis and story-beat content."""

from __future__ import annotations

import random

import pytest

from dnd_director.dm.content import NPC_NAMES, ContentGenerator
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


@pytest.fixture
def content() -> ContentGenerator:
    return ContentGenerator(random.Random(42))


class TestEncounters:
    """Tests for encounter outlines."""

    def test_trap_uses_damage_table(self, content: ContentGenerator) -> None:
        """Test traps carry a save DC and tiered damage."""
        encounter = content.encounter(
            party_level=5, party_size=4, encounter_type=EncounterType.TRAP, difficulty=Difficulty.DEADLY
        )

        element = encounter["elements"][0]
        assert element["type"] == "trap"
        assert element["save_dc"] == 25
        assert element["damage"] == "10d10"

    def test_social_has_dc(self, content: ContentGenerator) -> None:
        """Test non-combat encounters expose a DC and no XP reward."""
        encounter = content.encounter(
            party_level=2,
            party_size=3,
            encounter_type=EncounterType.SOCIAL,
            difficulty=Difficulty.EASY,
            theme="courtly",
        )

        assert encounter["elements"][0]["dc"] == 10
        assert "courtly" in encounter["elements"][0]["description"]
        assert encounter["rewards"] == []

    def test_environment_in_description(self, content: ContentGenerator) -> None:
        """Test the environment is named when given."""
        encounter = content.encounter(
            party_level=1,
            party_size=1,
            encounter_type=EncounterType.EXPLORATION,
            difficulty=Difficulty.TRIVIAL,
            environment="the Neverwinter Wood",
        )

        assert encounter["description"] == "A trivial exploration encounter in the Neverwinter Wood"


class TestNpcs:
    """Tests for NPC generation."""

    def test_minor_npc(self, content: ContentGenerator) -> None:
        """Test a minor NPC has no secrets and a table name."""
        npc = content.npc(role=NpcRole.SHOPKEEPER, importance=NpcImportance.MINOR)

        assert npc["name"] in NPC_NAMES
        assert npc["secrets"] == []
        assert npc["motivation"] == "Making a profit and serving customers well"

    def test_given_personality_kept(self, content: ContentGenerator) -> None:
        """Test a requested personality is not replaced."""
        npc = content.npc(role=NpcRole.ALLY, importance=NpcImportance.MAJOR, personality="dour")

        assert npc["personality"] == "dour"

    def test_seeded_is_repeatable(self) -> None:
        """Test the same seed gives the same NPC."""
        first = ContentGenerator(random.Random(9)).npc(role=NpcRole.GUARD, importance=NpcImportance.MODERATE)
        second = ContentGenerator(random.Random(9)).npc(role=NpcRole.GUARD, importance=NpcImportance.MODERATE)

        assert first == second


class TestDirectorContent:
    """Tests for analysis and story beats."""

    def test_beats_capped_at_target(self, content: ContentGenerator) -> None:
        """Test beats stop at the final round."""
        progress = CampaignProgress(current_round=198, current_chapter=5, target_rounds=200, rounds_per_chapter=40)

        beats = content.story_beats(progress, look_ahead=5, focus_areas=[], intensity=Intensity.RESOLUTION)

        assert [beat.round_number for beat in beats] == [199, 200]
        assert beats[0].priority == BeatPriority.HIGH
        assert beats[1].priority == BeatPriority.MEDIUM
        assert beats[0].beat_type == FocusArea.MAIN_PLOT

    def test_analysis_progress(self, content: ContentGenerator) -> None:
        """Test progress percent comes from the campaign position."""
        progress = CampaignProgress(current_round=50, current_chapter=2, target_rounds=200, rounds_per_chapter=40)

        analysis = content.analysis(AnalysisType.DIFFICULTY, progress, [], (40, 50))

        assert analysis["progress_percent"] == 25
        assert analysis["round_range"] == [40, 50]
        assert analysis["assessment"] == "insufficient_data"
