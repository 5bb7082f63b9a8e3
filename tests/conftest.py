"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the D&D Director test suite.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from dnd_director.dm.provider import CompletionRequest, CompletionResponse
from dnd_director.dm.tools.base import ToolCall


if TYPE_CHECKING:
    from collections.abc import Generator

    from dnd_director.models.campaign import CampaignState
    from dnd_director.storage.database import CampaignStore


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dnd_director.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DND_DIRECTOR_OPENAI_API_KEY": "test-openai-key",
        "DND_DIRECTOR_DEBUG": "true",
        "DND_DIRECTOR_LOG_LEVEL": "DEBUG",
        "DND_DIRECTOR_STORAGE_DATABASE_PATH": str(tmp_path / "env.db"),
        "DND_DIRECTOR_GAME_FREE_ROUNDS_LIMIT": "3",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Randomness
# =============================================================================


class ScriptedRandom:
    """Random source that returns queued faces, then falls back to the low bound.

    Each scripted face must fit the die being rolled; a mismatch fails the
    test loudly instead of silently clamping.
    """

    def __init__(self, faces: Iterable[int] = ()) -> None:
        self.faces = list(faces)
        self.calls: list[tuple[int, int]] = []

    def push(self, *faces: int) -> None:
        self.faces.extend(faces)

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if not self.faces:
            return a
        face = self.faces.pop(0)
        assert a <= face <= b, f"scripted face {face} outside {a}..{b}"
        return face


@pytest.fixture
def scripted_random() -> ScriptedRandom:
    """Provide an empty scripted random source."""
    return ScriptedRandom()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store(tmp_path: Path) -> CampaignStore:
    """Provide a campaign store backed by a temp-file SQLite database."""
    from dnd_director.storage.database import CampaignStore

    return CampaignStore(tmp_path / "campaigns.db", busy_timeout_seconds=5.0)


@pytest.fixture
def campaign(store: CampaignStore) -> CampaignState:
    """Create a 200-round campaign with 40-round chapters and 5 free rounds."""
    return store.create_campaign(
        "The Sunless Citadel",
        target_rounds=200,
        rounds_per_chapter=40,
        free_rounds_limit=5,
        story_bible="A sunken fortress and a fruit that grows in darkness.",
        campaign_id="camp-1",
    )


# =============================================================================
# Provider Fixtures
# =============================================================================


class FakeProvider:
    """Language-model provider that replays scripted responses.

    Queue ``CompletionResponse`` objects or exceptions; each ``complete``
    call pops the next one. Requests are recorded for inspection.
    """

    def __init__(self, *responses: CompletionResponse | Exception) -> None:
        self.responses: list[CompletionResponse | Exception] = list(responses)
        self.requests: list[CompletionRequest] = []

    def queue(self, *responses: CompletionResponse | Exception) -> None:
        self.responses.extend(responses)

    def reply(self, content: str = "", *tool_calls: tuple[str, dict[str, Any] | str]) -> None:
        """Queue a response with narration and (name, arguments) tool calls."""
        self.responses.append(
            CompletionResponse(
                content=content,
                tool_calls=[
                    ToolCall(name=name, arguments=arguments, call_id=f"call-{i}")
                    for i, (name, arguments) in enumerate(tool_calls)
                ],
                model="fake-model",
                usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            )
        )

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        if not self.responses:
            return CompletionResponse(content="The world holds its breath.", model="fake-model")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provide a fake provider with no scripted responses."""
    return FakeProvider()
