"""Two-tier AI game master.

This module provides:
- Tool definitions, argument models and the tier-aware registry
- The dispatcher that validates and executes model tool calls
- The Strategic (Director) / Scene (DM) orchestrator
- Campaign sessions: rate limiting, transcript persistence and broadcast

NEURO-SYMBOLIC PRINCIPLE:
The model decides what to say and which tool to call. Dice, lookups and
state changes are executed by Python; the model never produces a number
or mutates state directly.
"""

from __future__ import annotations

from .dispatcher import DispatchContext, ToolDispatcher
from .orchestrator import AgentTierOrchestrator, DirectorAnalysis, NarrationResult
from .provider import CompletionRequest, CompletionResponse, LanguageModelProvider, OpenAIChatProvider
from .ratelimit import RateLimitDecision, RateLimiter
from .session import CampaignSession, RoundAdvanceOutcome, build_session
from .tools.base import ToolCall, ToolResult

__all__ = [
    "AgentTierOrchestrator",
    "DirectorAnalysis",
    "NarrationResult",
    "DispatchContext",
    "ToolDispatcher",
    "CompletionRequest",
    "CompletionResponse",
    "LanguageModelProvider",
    "OpenAIChatProvider",
    "RateLimitDecision",
    "RateLimiter",
    "CampaignSession",
    "RoundAdvanceOutcome",
    "build_session",
    "ToolCall",
    "ToolResult",
]
