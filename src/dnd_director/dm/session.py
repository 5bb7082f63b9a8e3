"""Campaign session: one turn and one round advance at a time, with broadcast.

A ``CampaignSession`` ties the orchestrator, the progression state machine,
the store and the event bus together for a single campaign:

- ``handle_turn``: rate limit → load state → one orchestrated turn →
  persist transcript → broadcast narration, dice, encounters and party status
- ``advance_round``: ledger-gated advance (retried on store conflicts) →
  broadcast → chapter summary on a chapter boundary

Once a session is closed, work already in flight still completes and is
returned to its caller, but nothing more is broadcast.
"""

from __future__ import annotations

import asyncio
import random
import re
from dataclasses import dataclass
from typing import Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from dnd_director.core.config import Settings, get_settings
from dnd_director.core.exceptions import GameEngineError, RequestThrottledError, StateConflictError
from dnd_director.core.logging import bind_context, clear_context, get_logger
from dnd_director.dm.content import ContentGenerator
from dnd_director.dm.dispatcher import ToolDispatcher
from dnd_director.dm.orchestrator import AgentTierOrchestrator, NarrationResult
from dnd_director.dm.provider import LanguageModelProvider, OpenAIChatProvider
from dnd_director.dm.ratelimit import RateLimiter
from dnd_director.dm.tools.base import ToolName
from dnd_director.dm.tools.handlers import ToolHandlers
from dnd_director.dm.tools.registry import build_default_registry
from dnd_director.engine.dice import DiceRoller
from dnd_director.engine.progression import CampaignProgression
from dnd_director.events.bus import BroadcastType, EventBus
from dnd_director.lookup.memory import MemoryLookup
from dnd_director.lookup.rules import RuleLookup
from dnd_director.models.campaign import AdvanceRoundResult, CharacterInfo, HistoryEntry
from dnd_director.models.enums import AgentTier, LogType
from dnd_director.storage.database import CampaignStore, LogRecord, get_campaign_store

logger = get_logger(__name__)


DIRECTOR_KEYWORDS = (
    "campaign",
    "story",
    "plot",
    "chapter",
    "planning",
    "progress",
    "pacing",
    "development",
    "arc",
    "future",
    "strategy",
    "direction",
)
"""Words that route a participant message to the strategic tier."""

_DIRECTOR_PATTERN = re.compile(r"\b(?:" + "|".join(DIRECTOR_KEYWORDS) + r")\b", re.IGNORECASE)

ADVANCE_ATTEMPTS = 3


def select_tier(message: str) -> AgentTier:
    """Route campaign-level questions to the Director, everything else to the DM."""
    if _DIRECTOR_PATTERN.search(message):
        return AgentTier.STRATEGIC
    return AgentTier.SCENE


def history_from_logs(logs: list[LogRecord]) -> list[HistoryEntry]:
    """Transcript entries from player/DM log records, oldest first."""
    history = []
    for log in logs:
        if log.log_type == LogType.PLAYER_MESSAGE:
            role = "player"
        elif log.log_type == LogType.DM_MESSAGE:
            role = "dm"
        else:
            continue
        history.append(
            HistoryEntry(
                role=role,
                content=log.data.get("content", ""),
                author=log.data.get("author"),
                created_at=log.created_at,
            )
        )
    return history


@dataclass
class RoundAdvanceOutcome:
    """A round advance plus the chapter summary it produced, if any."""

    result: AdvanceRoundResult
    chapter_summary: str | None = None


class CampaignSession:
    """Turn handling and round advancement for one campaign.

    Args:
        campaign_id: Campaign this session serves.
        store: Backing store.
        orchestrator: Two-tier orchestrator.
        progression: Round/ledger state machine over the same store.
        bus: Event bus participants subscribe to.
        rate_limiter: Narration limiter; defaults from game settings.
        settings: Application settings.
        retry_wait_multiplier: Base of the exponential backoff between
            advance attempts, in seconds.
    """

    def __init__(
        self,
        campaign_id: str,
        *,
        store: CampaignStore,
        orchestrator: AgentTierOrchestrator,
        progression: CampaignProgression,
        bus: EventBus,
        rate_limiter: RateLimiter | None = None,
        settings: Settings | None = None,
        retry_wait_multiplier: float = 0.1,
    ) -> None:
        self.campaign_id = campaign_id
        self.store = store
        self.orchestrator = orchestrator
        self.progression = progression
        self.bus = bus
        self.settings = settings or get_settings()
        game = self.settings.game
        self.rate_limiter = rate_limiter or RateLimiter(
            game.narration_requests_per_window,
            game.narration_window_seconds,
        )
        self._retry_wait_multiplier = retry_wait_multiplier
        self.closed = False

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    async def handle_turn(
        self,
        participant_id: str,
        message: str,
        *,
        author: str | None = None,
        character: CharacterInfo | None = None,
        tier: AgentTier | str | None = None,
    ) -> NarrationResult:
        """Run one participant turn end to end.

        Args:
            participant_id: Who is speaking; keys the rate limit.
            message: What they said.
            author: Display name stored with the message.
            character: The speaker's character, if any.
            tier: Force a tier; otherwise chosen from the message text.

        Returns:
            The orchestrator's NarrationResult.

        Raises:
            GameEngineError: The session is closed.
            RequestThrottledError: The participant is over the narration limit.
            CampaignNotFoundError: Unknown campaign.
        """
        if self.closed:
            raise GameEngineError("Session is closed", details={"campaign_id": self.campaign_id})

        decision = self.rate_limiter.check(f"{participant_id}-{self.campaign_id}")
        if not decision.allowed:
            raise RequestThrottledError(
                "Narration rate limit exceeded",
                retry_after_seconds=decision.retry_after_seconds,
            )

        selected = AgentTier(tier) if tier is not None else select_tier(message)
        bind_context(campaign_id=self.campaign_id, tier=str(selected))
        try:
            state = await asyncio.to_thread(self.store.get_campaign, self.campaign_id)
            beats, logs = await asyncio.gather(
                asyncio.to_thread(
                    self.store.list_story_beats,
                    self.campaign_id,
                    from_round=state.progress.current_round,
                ),
                asyncio.to_thread(
                    self.store.recent_logs,
                    self.campaign_id,
                    limit=self.settings.game.history_window,
                    log_types=[LogType.PLAYER_MESSAGE, LogType.DM_MESSAGE],
                ),
            )
            round_number = state.progress.current_round

            await asyncio.to_thread(
                self.store.append_log,
                self.campaign_id,
                LogType.PLAYER_MESSAGE,
                {"content": message, "author": author, "participant_id": participant_id},
                round_number=round_number,
            )
            self._broadcast(
                BroadcastType.TURN_UPDATE,
                {"participant_id": participant_id, "author": author, "content": message},
            )

            result = await self.orchestrator.generate(
                selected,
                message,
                state,
                history_from_logs(logs),
                character,
                story_beats=beats[:3],
            )

            if result.success:
                await asyncio.to_thread(self._persist_result, result, round_number)
            self._broadcast_result(result)

            logger.info(
                "Turn handled",
                participant_id=participant_id,
                success=result.success,
                remaining_requests=decision.remaining,
            )
            return result
        finally:
            clear_context()

    def _persist_result(self, result: NarrationResult, round_number: int) -> None:
        self.store.append_log(
            self.campaign_id,
            LogType.DM_MESSAGE,
            {
                "content": result.display_text,
                "tier": str(result.tier),
                "tool_calls": [r.tool_name for r in result.tool_results],
            },
            round_number=round_number,
        )
        for dice in result.dice_results:
            self.store.append_log(self.campaign_id, LogType.DICE_ROLL, dice.payload, round_number=round_number)
        for encounter in self._encounters(result):
            self.store.append_log(self.campaign_id, LogType.ENCOUNTER, encounter, round_number=round_number)

    @staticmethod
    def _encounters(result: NarrationResult) -> list[dict[str, Any]]:
        return [
            r.payload.get("encounter", r.payload)
            for r in result.tool_results
            if r.success and r.tool_name == ToolName.GENERATE_ENCOUNTER
        ]

    @staticmethod
    def _party_statuses(result: NarrationResult) -> list[dict[str, Any]]:
        return [
            r.payload["party_status"]
            for r in result.tool_results
            if r.success and r.tool_name == ToolName.UPDATE_CAMPAIGN_STATE and "party_status" in r.payload
        ]

    def _broadcast_result(self, result: NarrationResult) -> None:
        self._broadcast(
            BroadcastType.NARRATION,
            {
                "text": result.display_text,
                "tier": str(result.tier),
                "success": result.success,
            },
        )
        for dice in result.dice_results:
            self._broadcast(BroadcastType.DICE_ROLL, {**dice.payload, "summary": dice.summary})
        for encounter in self._encounters(result):
            self._broadcast(BroadcastType.ENCOUNTER_UPDATE, encounter)
        for status in self._party_statuses(result):
            self._broadcast(BroadcastType.PLAYER_STATUS, {"party_status": status})

    def _broadcast(self, event_type: BroadcastType, data: dict[str, Any]) -> None:
        if self.closed:
            logger.debug("Broadcast suppressed after close", event_type=str(event_type))
            return
        self.bus.publish(self.campaign_id, event_type, data)

    # -------------------------------------------------------------------------
    # Rounds
    # -------------------------------------------------------------------------

    async def advance_round(self) -> RoundAdvanceOutcome:
        """Advance one round, then summarize the chapter if it just ended.

        Store conflicts are retried a few times with backoff; every other
        error, including the paywall, propagates unchanged.

        Raises:
            CreditExhaustedError: No free rounds and no credits.
            StateConflictError: Still conflicting after the last attempt.
        """
        bind_context(campaign_id=self.campaign_id)
        try:
            result = await self._advance_with_retry()
            if not result.advanced:
                return RoundAdvanceOutcome(result)

            self._broadcast(BroadcastType.ROUND_ADVANCED, result.model_dump(mode="json"))

            summary = None
            if result.chapter_summary_triggered:
                summary = await self._summarize_chapter(result.chapter)
            return RoundAdvanceOutcome(result, summary)
        finally:
            clear_context()

    async def _advance_with_retry(self) -> AdvanceRoundResult:
        @retry(
            stop=stop_after_attempt(ADVANCE_ATTEMPTS),
            wait=wait_exponential(multiplier=self._retry_wait_multiplier, max=2),
            retry=retry_if_exception_type(StateConflictError),
            reraise=True,
        )
        async def _advance() -> AdvanceRoundResult:
            try:
                return await self.progression.advance_round(self.campaign_id)
            except StateConflictError:
                logger.warning("Round advance conflicted, retrying")
                raise

        return await _advance()

    async def _summarize_chapter(self, chapter: int) -> str:
        state = await asyncio.to_thread(self.store.get_campaign, self.campaign_id)
        rounds_per_chapter = state.progress.rounds_per_chapter
        first_round = (chapter - 1) * rounds_per_chapter + 1
        logs = await asyncio.to_thread(
            self.store.recent_logs,
            self.campaign_id,
            limit=500,
            round_range=(first_round, chapter * rounds_per_chapter),
        )
        summary = await self.orchestrator.summarize_chapter(state, chapter, logs)
        await asyncio.to_thread(self.store.save_chapter_summary, self.campaign_id, chapter, summary)
        self._broadcast(BroadcastType.CHAPTER_SUMMARY, {"chapter": chapter, "summary": summary})
        logger.info("Chapter summarized", chapter=chapter)
        return summary

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Stop broadcasting and close every subscription to this campaign."""
        if self.closed:
            return
        self.closed = True
        self.bus.close_campaign(self.campaign_id)
        logger.info("Session closed", campaign_id=self.campaign_id)


def build_session(
    campaign_id: str,
    *,
    store: CampaignStore | None = None,
    provider: LanguageModelProvider | None = None,
    bus: EventBus | None = None,
    settings: Settings | None = None,
    rng: random.Random | None = None,
) -> CampaignSession:
    """Wire a session with the default tool set.

    Every argument left out comes from settings: the process-wide store,
    the OpenAI provider and a fresh bus.
    """
    settings = settings or get_settings()
    store = store or get_campaign_store()
    rng = rng or random.Random()

    handlers = ToolHandlers(
        dice=DiceRoller(rng=rng),
        rules=RuleLookup(),
        memory=MemoryLookup(store),
        store=store,
        content=ContentGenerator(rng),
    )
    dispatcher = ToolDispatcher(build_default_registry(handlers))
    orchestrator = AgentTierOrchestrator(
        provider or OpenAIChatProvider(settings.ai),
        dispatcher,
        ai_settings=settings.ai,
        game_settings=settings.game,
    )
    return CampaignSession(
        campaign_id,
        store=store,
        orchestrator=orchestrator,
        progression=CampaignProgression(store),
        bus=bus or EventBus(),
        settings=settings,
    )


__all__ = [
    "DIRECTOR_KEYWORDS",
    "select_tier",
    "history_from_logs",
    "RoundAdvanceOutcome",
    "CampaignSession",
    "build_session",
]
