"""D&D Director - Two-Tier AI Game Master Engine.

A campaign engine where a Strategic "Director" tier plans pacing and a
Scene "DM" tier narrates, both acting on the world only through tools.

NEURO-SYMBOLIC ARCHITECTURE:
- Python owns TRUTH (dice, credit ledger, round/chapter position, stored state)
- LLMs handle INTERFACE (narration, choosing which tool to call)
- LLMs NEVER directly mutate state or generate random numbers

Example:
    >>> from dnd_director import CampaignStore, build_session
    >>>
    >>> store = CampaignStore("campaigns.db")
    >>> campaign = store.create_campaign(
    ...     "Lost Mines", target_rounds=200, rounds_per_chapter=40, free_rounds_limit=5
    ... )
    >>> session = build_session(campaign.campaign_id, store=store)
    >>>
    >>> result = await session.handle_turn("player-1", "I search the room for traps")
    >>> print(result.display_text)
    >>> outcome = await session.advance_round()

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas for campaign state and memory.
    engine: Dice, rules arithmetic and the progression state machine.
    lookup: Rule and campaign-memory search.
    storage: SQLite campaign store.
    dm: Tools, dispatcher, orchestrator and sessions.
    events: Per-campaign broadcast.
"""

from __future__ import annotations

# Core
from dnd_director.core.config import Settings, get_settings
from dnd_director.core.exceptions import DndDirectorError
from dnd_director.core.logging import configure_logging, get_logger

# Models
from dnd_director.models.campaign import AdvanceRoundResult, CampaignState, CreditStatus
from dnd_director.models.enums import AgentTier

# Engine
from dnd_director.engine.dice import DiceRoller, DiceRollResult
from dnd_director.engine.progression import CampaignProgression

# Storage
from dnd_director.storage.database import CampaignStore

# DM
from dnd_director.dm.orchestrator import AgentTierOrchestrator, NarrationResult
from dnd_director.dm.session import CampaignSession, build_session

# Events
from dnd_director.events.bus import BroadcastEvent, BroadcastType, EventBus


__version__ = "0.1.0"
__all__ = [
    "__version__",
    # Core
    "DndDirectorError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "AdvanceRoundResult",
    "AgentTier",
    "CampaignState",
    "CreditStatus",
    # Engine
    "DiceRoller",
    "DiceRollResult",
    "CampaignProgression",
    # Storage
    "CampaignStore",
    # DM
    "AgentTierOrchestrator",
    "NarrationResult",
    "CampaignSession",
    "build_session",
    # Events
    "BroadcastEvent",
    "BroadcastType",
    "EventBus",
]
