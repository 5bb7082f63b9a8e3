"""DM tools: definitions, argument models, handlers and the registry."""

from dnd_director.dm.tools.base import (
    ToolCall,
    ToolHandler,
    ToolName,
    ToolResult,
    ToolSpec,
    format_validation_error,
)
from dnd_director.dm.tools.handlers import ToolHandlers
from dnd_director.dm.tools.registry import (
    BOTH_TIERS,
    SCENE_ONLY,
    STRATEGIC_ONLY,
    ToolRegistry,
    build_default_registry,
)

__all__ = [
    "ToolCall",
    "ToolHandler",
    "ToolName",
    "ToolResult",
    "ToolSpec",
    "format_validation_error",
    "ToolHandlers",
    "BOTH_TIERS",
    "SCENE_ONLY",
    "STRATEGIC_ONLY",
    "ToolRegistry",
    "build_default_registry",
]
