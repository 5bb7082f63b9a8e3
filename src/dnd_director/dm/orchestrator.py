"""Agent Tier Orchestrator - one model call per turn, tools executed by Python.

This module implements the turn pattern:
1. INPUT: Participant message → bounded context assembly
2. REASONING: The tier's prompt, temperature and tool subset go to the model
3. TOOL USE: Returned tool calls are dispatched in order (dice, lookups, state)
4. RESULT: Narration and tool results go back to the caller together

NEURO-SYMBOLIC PRINCIPLE:
- Python owns TRUTH (dice, ledger, rounds, stored state)
- The model handles INTERFACE (narration, deciding which tool to call)
- Tool outputs are surfaced next to the narration, not fed back for a
  second model pass
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Sequence

from dnd_director.core.config import AIProviderSettings, GameSettings, get_settings
from dnd_director.core.exceptions import (
    AIAuthenticationError,
    AIQuotaError,
    AITimeoutError,
    ConfigurationError,
    ExternalServiceError,
)
from dnd_director.core.logging import get_logger
from dnd_director.dm.context import build_context, build_message_history
from dnd_director.dm.dispatcher import DispatchContext, ToolDispatcher
from dnd_director.dm.prompts import (
    CHAPTER_SUMMARY_PROMPT,
    DIRECTOR_ANALYSIS_PROMPT,
    DIRECTOR_SYSTEM_PROMPT,
    DM_SYSTEM_PROMPT,
)
from dnd_director.dm.provider import CompletionRequest, LanguageModelProvider
from dnd_director.dm.tools.base import ToolName, ToolResult
from dnd_director.models.campaign import CampaignProgress, CampaignState, CharacterInfo, HistoryEntry
from dnd_director.models.enums import AgentTier, AnalysisType, LogType
from dnd_director.models.memory import StoryBeat
from dnd_director.storage.database import LogRecord


logger = get_logger(__name__)


# =============================================================================
# Fixed Apologies
# =============================================================================

QUOTA_APOLOGY = "I'm sorry, but the AI service is currently unavailable. Please check your OpenAI API credits."
CONFIGURATION_APOLOGY = "I'm sorry, but there's an issue with the AI service configuration."
GENERIC_APOLOGY = "I'm having trouble processing your request right now. Please try again in a moment."


def apology_for(exc: Exception) -> str:
    """The user-safe message shown in place of narration after a provider failure."""
    if isinstance(exc, AIQuotaError):
        return QUOTA_APOLOGY
    if isinstance(exc, (AIAuthenticationError, ConfigurationError)):
        return CONFIGURATION_APOLOGY
    return GENERIC_APOLOGY


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class TierProfile:
    """What a tier changes about a request."""

    tier: AgentTier
    system_prompt: str
    temperature: float


@dataclass
class NarrationResult:
    """Response from one orchestrated turn."""

    success: bool
    narration_text: str
    """The narration, or a fixed apology when the provider failed."""

    tier: AgentTier

    tool_results: list[ToolResult] = field(default_factory=list)
    """Results of every tool call, in the order the model issued them."""

    error: str | None = None
    usage: dict[str, int] | None = None

    @property
    def dice_results(self) -> list[ToolResult]:
        return [r for r in self.tool_results if r.tool_name == ToolName.ROLL_DICE and r.success]

    @property
    def display_text(self) -> str:
        """Narration followed by the one-line summary of each tool result."""
        summaries = [r.summary for r in self.tool_results if r.summary]
        return "\n\n".join(part for part in [self.narration_text, "\n".join(summaries)] if part)


@dataclass
class DirectorAnalysis:
    """Strategic-tier analysis with its recommendations pulled out."""

    success: bool
    analysis: str
    recommendations: list[str] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    error: str | None = None


# =============================================================================
# Orchestrator
# =============================================================================


class AgentTierOrchestrator:
    """Routes a turn to the Strategic (Director) or Scene (DM) tier.

    Args:
        provider: Language-model provider.
        dispatcher: Tool dispatcher over the shared registry.
        ai_settings: Model, temperatures, token cap and timeout.
        game_settings: Context and history window sizes.
    """

    def __init__(
        self,
        provider: LanguageModelProvider,
        dispatcher: ToolDispatcher,
        *,
        ai_settings: AIProviderSettings | None = None,
        game_settings: GameSettings | None = None,
    ) -> None:
        if ai_settings is None or game_settings is None:
            settings = get_settings()
            ai_settings = ai_settings or settings.ai
            game_settings = game_settings or settings.game
        self.provider = provider
        self.dispatcher = dispatcher
        self.ai_settings = ai_settings
        self.game_settings = game_settings

        logger.info("Orchestrator initialized", model=ai_settings.model, tools=len(dispatcher.registry))

    # -------------------------------------------------------------------------
    # Request assembly
    # -------------------------------------------------------------------------

    def tier_profile(self, tier: AgentTier, progress: CampaignProgress) -> TierProfile:
        if tier == AgentTier.STRATEGIC:
            prompt = DIRECTOR_SYSTEM_PROMPT.format(
                target_rounds=progress.target_rounds,
                total_chapters=progress.total_chapters,
                rounds_per_chapter=progress.rounds_per_chapter,
            )
            return TierProfile(tier, prompt, self.ai_settings.strategic_temperature)
        return TierProfile(tier, DM_SYSTEM_PROMPT, self.ai_settings.scene_temperature)

    def build_request(
        self,
        tier: AgentTier,
        user_message: str,
        campaign_context: CampaignState,
        recent_history: Sequence[HistoryEntry] = (),
        character_info: CharacterInfo | None = None,
        *,
        story_beats: Sequence[StoryBeat] = (),
    ) -> CompletionRequest:
        """Assemble messages, tools and sampling parameters for one turn."""
        profile = self.tier_profile(tier, campaign_context.progress)
        context = build_context(
            campaign_context,
            recent_history,
            character_info,
            story_beats=story_beats,
            context_window=self.game_settings.context_window,
        )
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": profile.system_prompt},
            {"role": "system", "content": f"Campaign Context:\n{context}"},
            *build_message_history(recent_history, window=self.game_settings.history_window),
            {"role": "user", "content": user_message},
        ]
        return CompletionRequest(
            messages=messages,
            tools=self.dispatcher.registry.openai_tools(tier),
            temperature=profile.temperature,
            max_tokens=self.ai_settings.max_tokens,
            presence_penalty=self.ai_settings.presence_penalty,
            frequency_penalty=self.ai_settings.frequency_penalty,
            model=self.ai_settings.model,
        )

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    async def generate(
        self,
        tier: AgentTier | str,
        user_message: str,
        campaign_context: CampaignState,
        recent_history: Sequence[HistoryEntry] = (),
        character_info: CharacterInfo | None = None,
        *,
        story_beats: Sequence[StoryBeat] = (),
    ) -> NarrationResult:
        """Run one turn: a single provider call, then its tool calls in order.

        Provider failures never raise out of here; they become a fixed
        apology with ``success=False``. Nothing is retried.

        Args:
            tier: STRATEGIC or SCENE.
            user_message: The participant's message.
            campaign_context: Current campaign state.
            recent_history: Transcript, oldest first.
            character_info: The acting participant's character.
            story_beats: Planned beats to offer as guidance.

        Returns:
            NarrationResult with narration and every tool result.
        """
        tier = AgentTier(tier)
        campaign_id = campaign_context.campaign_id
        request = self.build_request(
            tier,
            user_message,
            campaign_context,
            recent_history,
            character_info,
            story_beats=story_beats,
        )

        try:
            response = await asyncio.wait_for(
                self.provider.complete(request),
                timeout=self.ai_settings.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            error = AITimeoutError(
                f"No response within {self.ai_settings.timeout_seconds}s",
                model=request.model,
            )
            return self._failed(tier, campaign_id, error, cause=exc)
        except (ExternalServiceError, ConfigurationError) as exc:
            return self._failed(tier, campaign_id, exc)

        tool_results = await self.dispatcher.dispatch_all(
            response.tool_calls,
            DispatchContext(campaign_id=campaign_id, tier=tier),
        )

        logger.info(
            "Turn generated",
            campaign_id=campaign_id,
            tier=str(tier),
            tool_calls=len(tool_results),
            failed_tools=sum(1 for r in tool_results if not r.success),
        )
        return NarrationResult(
            success=True,
            narration_text=response.content,
            tier=tier,
            tool_results=tool_results,
            usage=response.usage,
        )

    def _failed(
        self,
        tier: AgentTier,
        campaign_id: str,
        error: Exception,
        *,
        cause: BaseException | None = None,
    ) -> NarrationResult:
        logger.warning(
            "Provider call failed",
            campaign_id=campaign_id,
            tier=str(tier),
            error_type=error.__class__.__name__,
            error=str(error),
            cause=repr(cause) if cause else None,
        )
        return NarrationResult(
            success=False,
            narration_text=apology_for(error),
            tier=tier,
            error=getattr(error, "message", str(error)),
        )

    # -------------------------------------------------------------------------
    # Director helpers
    # -------------------------------------------------------------------------

    async def run_director_analysis(
        self,
        campaign_context: CampaignState,
        *,
        analysis_type: AnalysisType = AnalysisType.PACING,
        focus_areas: Sequence[str] = ("pacing", "character_development"),
        look_ahead: int = 5,
        story_beats: Sequence[StoryBeat] = (),
    ) -> DirectorAnalysis:
        """Ask the strategic tier for an analysis and collect its recommendations."""
        prompt = DIRECTOR_ANALYSIS_PROMPT.format(
            analysis_type=analysis_type,
            focus_areas=", ".join(focus_areas),
            look_ahead=look_ahead,
        )
        result = await self.generate(
            AgentTier.STRATEGIC,
            prompt,
            campaign_context,
            story_beats=story_beats,
        )
        if not result.success:
            return DirectorAnalysis(success=False, analysis=result.narration_text, error=result.error)

        return DirectorAnalysis(
            success=True,
            analysis=result.narration_text,
            recommendations=extract_recommendations(result.narration_text, result.tool_results),
            tool_results=result.tool_results,
        )

    async def summarize_chapter(
        self,
        campaign_context: CampaignState,
        chapter: int,
        logs: Sequence[LogRecord],
    ) -> str:
        """Write a players-facing summary of a finished chapter.

        Falls back to a plain list of the chapter's milestones and events
        when the provider fails, so a boundary always gets a summary.
        """
        prompt = CHAPTER_SUMMARY_PROMPT.format(
            chapter=chapter,
            campaign_name=campaign_context.name,
            chapter_log=render_chapter_log(logs) or "(nothing recorded)",
        )
        request = CompletionRequest(
            messages=[{"role": "user", "content": prompt}],
            temperature=self.ai_settings.strategic_temperature,
            max_tokens=self.ai_settings.max_tokens,
            model=self.ai_settings.model,
        )
        try:
            response = await asyncio.wait_for(
                self.provider.complete(request),
                timeout=self.ai_settings.timeout_seconds,
            )
        except (asyncio.TimeoutError, ExternalServiceError, ConfigurationError) as exc:
            logger.warning(
                "Chapter summary fell back to log digest",
                campaign_id=campaign_context.campaign_id,
                chapter=chapter,
                error_type=exc.__class__.__name__,
            )
            return fallback_chapter_summary(chapter, logs)

        return response.content.strip() or fallback_chapter_summary(chapter, logs)


# =============================================================================
# Helpers
# =============================================================================


def extract_recommendations(narration: str, tool_results: Sequence[ToolResult]) -> list[str]:
    """Recommendations from analysis tool payloads, then bullet lines of the narration."""
    found: list[str] = []
    for result in tool_results:
        if result.success and result.tool_name == ToolName.ANALYZE_CAMPAIGN_PROGRESS:
            found.extend(result.payload.get("analysis", {}).get("recommendations", []))

    for line in narration.splitlines():
        stripped = line.strip()
        if stripped.startswith(("- ", "* ")):
            found.append(stripped[2:].strip())

    return list(dict.fromkeys(item for item in found if item))


def render_chapter_log(logs: Sequence[LogRecord]) -> str:
    lines = []
    for log in logs:
        data = log.data
        if log.log_type == LogType.PLAYER_MESSAGE:
            lines.append(f"{data.get('author') or 'Player'}: {data.get('content', '')}")
        elif log.log_type == LogType.DM_MESSAGE:
            lines.append(f"DM: {data.get('content', '')}")
        elif log.log_type == LogType.MILESTONE:
            lines.append(f"Milestone: {data.get('milestone', '')}")
        elif log.log_type == LogType.IMPORTANT_EVENT:
            lines.append(f"Event: {data.get('name') or data.get('description', '')}")
        elif log.log_type == LogType.LOCATION_CHANGE:
            lines.append(f"Moved to: {data.get('location', {}).get('name', '')}")
    return "\n".join(lines)


def fallback_chapter_summary(chapter: int, logs: Sequence[LogRecord]) -> str:
    highlights = [
        log.data.get("milestone") or log.data.get("name") or log.data.get("description")
        for log in logs
        if log.log_type in (LogType.MILESTONE, LogType.IMPORTANT_EVENT)
    ]
    highlights = [h for h in highlights if h]
    if not highlights:
        return f"Chapter {chapter} has come to a close."
    return f"Chapter {chapter} has come to a close. Highlights: {'; '.join(highlights)}."


__all__ = [
    "QUOTA_APOLOGY",
    "CONFIGURATION_APOLOGY",
    "GENERIC_APOLOGY",
    "apology_for",
    "TierProfile",
    "NarrationResult",
    "DirectorAnalysis",
    "AgentTierOrchestrator",
    "extract_recommendations",
    "render_chapter_log",
    "fallback_chapter_summary",
]
