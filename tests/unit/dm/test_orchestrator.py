"""Tests for the two-tier orchestrator."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from dnd_director.core.config import AIProviderSettings, GameSettings
from dnd_director.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIQuotaError,
    ConfigurationError,
)
from dnd_director.dm.dispatcher import ToolDispatcher
from dnd_director.dm.orchestrator import (
    CONFIGURATION_APOLOGY,
    GENERIC_APOLOGY,
    QUOTA_APOLOGY,
    AgentTierOrchestrator,
    extract_recommendations,
    fallback_chapter_summary,
    render_chapter_log,
)
from dnd_director.dm.tools.base import ToolResult
from dnd_director.models.campaign import HistoryEntry
from dnd_director.models.enums import AgentTier, LogType
from dnd_director.storage.database import LogRecord


@pytest.fixture
def orchestrator(fake_provider, dispatcher: ToolDispatcher) -> AgentTierOrchestrator:
    return AgentTierOrchestrator(
        fake_provider,
        dispatcher,
        ai_settings=AIProviderSettings(timeout_seconds=5),
        game_settings=GameSettings(history_window=2),
    )


def _log(log_type: LogType, **data) -> LogRecord:
    return LogRecord(
        id=1,
        campaign_id="camp-1",
        log_type=str(log_type),
        data=data,
        round_number=1,
        created_at=datetime.now(),
    )


class TestRequests:
    """Tests for per-tier request assembly."""

    def test_scene_request(self, orchestrator: AgentTierOrchestrator, campaign) -> None:
        """Test the scene tier gets the DM prompt, its tools and a hot temperature."""
        history = [HistoryEntry(role="player", content=f"line {i}") for i in range(4)]

        request = orchestrator.build_request(AgentTier.SCENE, "I open the door", campaign, history)

        assert request.temperature == 0.8
        assert request.messages[1]["content"].startswith("Campaign Context:\n")
        assert [m["content"] for m in request.messages[2:]] == ["line 2", "line 3", "I open the door"]
        names = {tool["function"]["name"] for tool in request.tools}
        assert "roll_dice" in names
        assert "plan_story_beats" not in names

    def test_strategic_request(self, orchestrator: AgentTierOrchestrator, campaign) -> None:
        """Test the director prompt is filled from campaign progress."""
        request = orchestrator.build_request(AgentTier.STRATEGIC, "Plan ahead", campaign)

        assert request.temperature == 0.3
        assert "200 rounds total, organized into 5 chapters (40 rounds each)" in request.messages[0]["content"]
        assert "roll_dice" not in {tool["function"]["name"] for tool in request.tools}


class TestGenerate:
    """Tests for a single turn."""

    @pytest.mark.asyncio
    async def test_narration_and_tools(
        self, orchestrator: AgentTierOrchestrator, fake_provider, campaign, scripted_random
    ) -> None:
        """Test tool calls run in order and their summaries follow the narration."""
        scripted_random.push(20)
        fake_provider.reply(
            "The goblin lunges!",
            ("roll_dice", {"expression": "1d20+4", "reason": "Attack"}),
            ("lookup_rule", '{"query": "prone"}'),
        )

        result = await orchestrator.generate("scene", "I swing my axe", campaign)

        assert result.success is True
        assert result.tier == AgentTier.SCENE
        assert [r.tool_name for r in result.tool_results] == ["roll_dice", "lookup_rule"]
        assert result.dice_results[0].payload["total"] == 24
        assert result.display_text.startswith("The goblin lunges!\n\n🎲 Attack")
        assert "(natural 20!)" in result.display_text
        assert result.usage["total_tokens"] == 15
        assert len(fake_provider.requests) == 1

    @pytest.mark.asyncio
    async def test_failed_tool_does_not_fail_turn(
        self, orchestrator: AgentTierOrchestrator, fake_provider, campaign
    ) -> None:
        """Test a bad tool call is reported alongside the narration."""
        fake_provider.reply("You hear a click.", ("teleport", {}))

        result = await orchestrator.generate(AgentTier.SCENE, "I step forward", campaign)

        assert result.success is True
        assert result.tool_results[0].success is False
        assert "Unknown tool: teleport" in result.display_text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "apology"),
        [
            (AIQuotaError("insufficient_quota"), QUOTA_APOLOGY),
            (AIAuthenticationError("bad key"), CONFIGURATION_APOLOGY),
            (ConfigurationError("no key"), CONFIGURATION_APOLOGY),
            (AIConnectionError("unreachable"), GENERIC_APOLOGY),
        ],
    )
    async def test_provider_failures(
        self, orchestrator: AgentTierOrchestrator, fake_provider, campaign, error, apology
    ) -> None:
        """Test each failure class maps to its fixed apology."""
        fake_provider.queue(error)

        result = await orchestrator.generate(AgentTier.SCENE, "Hello", campaign)

        assert result.success is False
        assert result.narration_text == apology
        assert result.error == error.message
        assert result.tool_results == []

    @pytest.mark.asyncio
    async def test_timeout(self, dispatcher: ToolDispatcher, campaign) -> None:
        """Test a slow provider becomes the generic apology."""
        class SlowProvider:
            async def complete(self, request):
                await asyncio.sleep(5)

        orchestrator = AgentTierOrchestrator(
            SlowProvider(),
            dispatcher,
            ai_settings=AIProviderSettings(timeout_seconds=0.01),
            game_settings=GameSettings(),
        )

        result = await orchestrator.generate(AgentTier.SCENE, "Hello", campaign)

        assert result.success is False
        assert result.narration_text == GENERIC_APOLOGY
        assert "No response within" in result.error


class TestDirectorHelpers:
    """Tests for analysis and chapter summaries."""

    @pytest.mark.asyncio
    async def test_director_analysis(self, orchestrator: AgentTierOrchestrator, fake_provider, campaign) -> None:
        """Test recommendations come from the analysis tool and bullet lines."""
        fake_provider.reply(
            "Pacing is steady.\n- Raise the stakes at the gate\n* Consider adding more action sequences",
            ("analyze_campaign_progress", {"analysisType": "pacing"}),
        )

        analysis = await orchestrator.run_director_analysis(campaign)

        assert analysis.success is True
        assert analysis.recommendations == [
            "Consider adding more action sequences",
            "Balance roleplay with exploration",
            "Raise the stakes at the gate",
        ]
        assert "pacing analysis" in fake_provider.requests[0].messages[-1]["content"]

    @pytest.mark.asyncio
    async def test_director_analysis_failure(
        self, orchestrator: AgentTierOrchestrator, fake_provider, campaign
    ) -> None:
        """Test a provider failure yields an unsuccessful analysis."""
        fake_provider.queue(AIQuotaError("insufficient_quota"))

        analysis = await orchestrator.run_director_analysis(campaign)

        assert analysis.success is False
        assert analysis.analysis == QUOTA_APOLOGY

    @pytest.mark.asyncio
    async def test_summarize_chapter(self, orchestrator: AgentTierOrchestrator, fake_provider, campaign) -> None:
        """Test the summary request carries no tools and includes the chapter log."""
        fake_provider.reply("  The party broke the siege.  ")
        logs = [_log(LogType.MILESTONE, milestone="Siege broken")]

        summary = await orchestrator.summarize_chapter(campaign, 1, logs)

        assert summary == "The party broke the siege."
        request = fake_provider.requests[0]
        assert request.tools == []
        assert "Milestone: Siege broken" in request.messages[0]["content"]

    @pytest.mark.asyncio
    async def test_summarize_chapter_fallback(
        self, orchestrator: AgentTierOrchestrator, fake_provider, campaign
    ) -> None:
        """Test a failed provider call falls back to a digest."""
        fake_provider.queue(AIConnectionError("down"))
        logs = [_log(LogType.MILESTONE, milestone="Siege broken")]

        summary = await orchestrator.summarize_chapter(campaign, 2, logs)

        assert summary == "Chapter 2 has come to a close. Highlights: Siege broken."


class TestHelpers:
    """Tests for module-level helpers."""

    def test_extract_recommendations_dedupes(self) -> None:
        """Test duplicates collapse and failed tools are ignored."""
        failed = ToolResult.fail("analyze_campaign_progress", "boom")

        found = extract_recommendations("- Keep going\n- Keep going\nplain text", [failed])

        assert found == ["Keep going"]

    def test_render_chapter_log(self) -> None:
        """Test each log type renders its own line."""
        text = render_chapter_log([
            _log(LogType.PLAYER_MESSAGE, content="I search", author="Tordek"),
            _log(LogType.DM_MESSAGE, content="You find a key"),
            _log(LogType.IMPORTANT_EVENT, description="Trap sprung"),
            _log(LogType.LOCATION_CHANGE, location={"name": "Crypt"}),
            _log(LogType.DICE_ROLL, total=7),
        ])

        assert text.splitlines() == [
            "Tordek: I search",
            "DM: You find a key",
            "Event: Trap sprung",
            "Moved to: Crypt",
        ]

    def test_fallback_without_highlights(self) -> None:
        """Test a quiet chapter still gets a summary."""
        assert fallback_chapter_summary(3, []) == "Chapter 3 has come to a close."
