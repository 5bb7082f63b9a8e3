"""Base types for DM tools.

Tools are defined by Python and called by the LLM.
The LLM provides arguments, Python executes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from dnd_director.models.enums import AgentTier


# =============================================================================
# Tool Names
# =============================================================================


class ToolName(StrEnum):
    """Closed set of tools the model may call."""

    ROLL_DICE = "roll_dice"
    LOOKUP_RULE = "lookup_rule"
    UPDATE_CAMPAIGN_STATE = "update_campaign_state"
    SAVE_MEMORY = "save_memory"
    LOAD_MEMORY = "load_memory"
    GENERATE_ENCOUNTER = "generate_encounter"
    GENERATE_NPC = "generate_npc"
    ANALYZE_CAMPAIGN_PROGRESS = "analyze_campaign_progress"
    PLAN_STORY_BEATS = "plan_story_beats"

    @classmethod
    def parse(cls, name: str) -> ToolName | None:
        try:
            return cls(name)
        except ValueError:
            return None


# =============================================================================
# Calls and Results
# =============================================================================


@dataclass
class ToolCall:
    """A function call issued by the model.

    ``arguments`` is whatever the provider handed back: usually a JSON
    string, sometimes an already-decoded dict.
    """

    name: str
    arguments: str | dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None


class ToolResult(BaseModel):
    """Result of a tool execution.

    Attributes:
        tool_name: Name the model used, even when it is not a known tool.
        success: Whether the tool ran and did what was asked.
        payload: Structured result for the caller, on success.
        error: Error message, on failure.
        summary: One human-readable line for the transcript.
        call_id: Provider call id, echoed back.
        timestamp: When the result was produced.
    """

    tool_name: str
    success: bool
    payload: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    summary: str = ""
    call_id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def ok(cls, tool_name: str, payload: dict[str, Any], summary: str) -> ToolResult:
        return cls(tool_name=tool_name, success=True, payload=payload, summary=summary)

    @classmethod
    def fail(cls, tool_name: str, error: str, summary: str | None = None) -> ToolResult:
        return cls(
            tool_name=tool_name,
            success=False,
            error=error,
            summary=summary or f"❌ {tool_name}: {error}",
        )


# =============================================================================
# Tool Definition
# =============================================================================

ToolHandler = Callable[[Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    """A registered tool: its argument model, handler and tier visibility.

    Attributes:
        name: Tool name.
        description: Shown to the model.
        arguments_model: Pydantic model the raw arguments are validated into.
        handler: Coroutine taking the validated arguments.
        tiers: Agent tiers that see this tool.
        campaign_scoped: The dispatcher fills ``campaignId`` from the request
            context when the model leaves it out.
    """

    name: ToolName
    description: str
    arguments_model: type[BaseModel]
    handler: ToolHandler
    tiers: frozenset[AgentTier]
    campaign_scoped: bool = False

    def visible_to(self, tier: AgentTier) -> bool:
        return tier in self.tiers

    def parameters_schema(self) -> dict[str, Any]:
        """JSON schema of the arguments as the model sees them (camelCase, refs inlined)."""
        schema = self.arguments_model.model_json_schema(by_alias=True)
        definitions = schema.pop("$defs", {})
        schema = _inline_refs(schema, definitions)
        if self.campaign_scoped:
            schema["required"] = [r for r in schema.get("required", []) if r != "campaignId"]
        return schema

    def to_openai_schema(self) -> dict[str, Any]:
        """Convert to OpenAI function schema."""
        return {
            "type": "function",
            "function": {
                "name": str(self.name),
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }


def format_validation_error(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into one line the model can act on."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _inline_refs(node: Any, definitions: dict[str, Any]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            target = definitions[ref.removeprefix("#/$defs/")]
            merged = {**target, **{k: v for k, v in node.items() if k != "$ref"}}
            return _inline_refs(merged, definitions)
        return {k: _inline_refs(v, definitions) for k, v in node.items() if k != "title"}
    if isinstance(node, list):
        return [_inline_refs(item, definitions) for item in node]
    return node


__all__ = [
    "ToolName",
    "ToolCall",
    "ToolResult",
    "ToolHandler",
    "ToolSpec",
    "format_validation_error",
]
