"""Tool dispatcher: turns model-issued calls into handler invocations.

The dispatcher is the boundary where loose model output becomes typed data.
It never raises: unknown tools, undecodable JSON, schema failures and
handler crashes all come back as ``ToolResult(success=False)`` so one bad
call cannot abort the rest of a turn.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from dnd_director.core.exceptions import DndDirectorError, ToolArgumentError
from dnd_director.core.logging import get_logger
from dnd_director.dm.tools.base import ToolCall, ToolResult, ToolSpec, format_validation_error
from dnd_director.dm.tools.registry import ToolRegistry
from dnd_director.models.enums import AgentTier

logger = get_logger(__name__)

UNKNOWN_TOOL_ERROR = "unknown tool"

_CAMPAIGN_KEYS = ("campaignId", "campaign_id")


@dataclass(frozen=True)
class DispatchContext:
    """Request-scoped facts the model does not get to choose."""

    campaign_id: str
    tier: AgentTier = AgentTier.SCENE


class ToolDispatcher:
    """Routes tool calls through the registry.

    Example:
        >>> dispatcher = ToolDispatcher(registry)
        >>> result = await dispatcher.dispatch(
        ...     ToolCall(name="teleport", arguments="{}"),
        ...     DispatchContext(campaign_id="c-1"),
        ... )
        >>> result.success, result.error
        (False, 'unknown tool')
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def dispatch(self, call: ToolCall, context: DispatchContext) -> ToolResult:
        """Validate and execute one tool call."""
        started = time.perf_counter()
        result = await self._dispatch(call, context)
        result.call_id = call.call_id

        logger.info(
            "Tool dispatched",
            tool=call.name,
            tier=str(context.tier),
            success=result.success,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return result

    async def dispatch_all(self, calls: Iterable[ToolCall], context: DispatchContext) -> list[ToolResult]:
        """Execute calls one at a time, in the order given.

        A failed call does not stop the ones after it. Calls are not
        transactional with each other: earlier side effects stay applied.
        """
        results = []
        for call in calls:
            results.append(await self.dispatch(call, context))
        return results

    async def _dispatch(self, call: ToolCall, context: DispatchContext) -> ToolResult:
        spec = self.registry.get(call.name)
        if spec is None or not spec.visible_to(context.tier):
            logger.warning("Unknown tool requested", tool=call.name, tier=str(context.tier))
            return ToolResult.fail(call.name, UNKNOWN_TOOL_ERROR, f"❓ Unknown tool: {call.name}")

        try:
            arguments = self._decode_arguments(call)
            if spec.campaign_scoped:
                arguments = self._scope_to_campaign(spec, arguments, context)
            validated = spec.arguments_model.model_validate(arguments)
        except ToolArgumentError as exc:
            return ToolResult.fail(spec.name, exc.message)
        except PydanticValidationError as exc:
            return ToolResult.fail(spec.name, f"Invalid arguments: {format_validation_error(exc)}")

        try:
            return await spec.handler(validated)
        except DndDirectorError as exc:
            logger.warning("Tool handler failed", tool=str(spec.name), error=str(exc))
            return ToolResult.fail(spec.name, exc.message)
        except Exception as exc:
            logger.exception("Tool handler crashed", tool=str(spec.name))
            return ToolResult.fail(spec.name, str(exc) or exc.__class__.__name__)

    @staticmethod
    def _decode_arguments(call: ToolCall) -> dict[str, Any]:
        raw = call.arguments
        if isinstance(raw, dict):
            return dict(raw)
        if not raw or not raw.strip():
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ToolArgumentError(
                f"Arguments are not valid JSON: {exc.msg}",
                tool_name=call.name,
            ) from exc
        if not isinstance(decoded, dict):
            raise ToolArgumentError("Arguments must be a JSON object", tool_name=call.name)
        return decoded

    @staticmethod
    def _scope_to_campaign(
        spec: ToolSpec,
        arguments: dict[str, Any],
        context: DispatchContext,
    ) -> dict[str, Any]:
        supplied = next((arguments[key] for key in _CAMPAIGN_KEYS if key in arguments), None)
        if supplied is None:
            return {**arguments, "campaignId": context.campaign_id}
        if supplied != context.campaign_id:
            # A model must not reach into another campaign
            raise ToolArgumentError(
                "campaignId does not match the active campaign",
                tool_name=str(spec.name),
                details={"campaign_id": supplied},
            )
        return arguments


__all__ = [
    "UNKNOWN_TOOL_ERROR",
    "DispatchContext",
    "ToolDispatcher",
]
