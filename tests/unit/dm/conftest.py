"""Fixtures for the DM tier: handlers, registry and dispatcher."""

from __future__ import annotations

import random

import pytest

from dnd_director.dm.content import ContentGenerator
from dnd_director.dm.dispatcher import ToolDispatcher
from dnd_director.dm.tools.handlers import ToolHandlers
from dnd_director.dm.tools.registry import ToolRegistry, build_default_registry
from dnd_director.engine.dice import DiceRoller
from dnd_director.lookup.memory import MemoryLookup
from dnd_director.lookup.rules import RuleLookup


@pytest.fixture
def tool_handlers(store, scripted_random) -> ToolHandlers:
    """Handlers over the temp store, rolling scripted dice."""
    return ToolHandlers(
        dice=DiceRoller(rng=scripted_random),
        rules=RuleLookup(),
        memory=MemoryLookup(store),
        store=store,
        content=ContentGenerator(random.Random(7)),
    )


@pytest.fixture
def registry(tool_handlers: ToolHandlers) -> ToolRegistry:
    return build_default_registry(tool_handlers)


@pytest.fixture
def dispatcher(registry: ToolRegistry) -> ToolDispatcher:
    return ToolDispatcher(registry)
