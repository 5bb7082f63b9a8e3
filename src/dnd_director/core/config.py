"""Configuration management for the D&D Director engine.

Settings come from environment variables and ``.env`` files through
pydantic-settings. Nested sections are addressable with a double
underscore (``DND_DIRECTOR_AI__MODEL``) or through their own prefix.

Environment Variables:
    DND_DIRECTOR_OPENAI_API_KEY: OpenAI API key
    DND_DIRECTOR_MODEL: Chat completion model for both tiers
    DND_DIRECTOR_TIMEOUT_SECONDS: Provider call timeout
    DND_DIRECTOR_STORAGE_DATABASE_PATH: Path to the SQLite campaign store
    DND_DIRECTOR_GAME_FREE_ROUNDS_LIMIT: Free rounds granted per campaign
    DND_DIRECTOR_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_director.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Configuration for the language-model provider.

    Attributes:
        openai_api_key: OpenAI API key.
        base_url: Optional alternative endpoint (OpenRouter, a local proxy).
        model: Chat completion model used by both tiers.
        max_tokens: Completion token cap per turn.
        timeout_seconds: Bound on a single provider call.
        strategic_temperature: Sampling temperature of the Director tier.
        scene_temperature: Sampling temperature of the DM tier.
        presence_penalty: Presence penalty sent with every request.
        frequency_penalty: Frequency penalty sent with every request.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_DIRECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    base_url: str | None = Field(
        default=None,
        description="Alternative OpenAI-compatible endpoint",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Chat completion model",
    )
    max_tokens: int = Field(
        default=1200,
        ge=64,
        le=16000,
        description="Completion token cap",
    )
    timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        le=300,
        description="Provider call timeout",
    )
    strategic_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Director tier temperature",
    )
    scene_temperature: float = Field(
        default=0.8,
        ge=0.0,
        le=2.0,
        description="DM tier temperature",
    )
    presence_penalty: float = Field(default=0.1, ge=-2.0, le=2.0)
    frequency_penalty: float = Field(default=0.1, ge=-2.0, le=2.0)

    @model_validator(mode="after")
    def validate_tier_temperatures(self) -> "AIProviderSettings":
        """Ensure the strategic tier samples more conservatively than the scene tier.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the strategic temperature is not lower.
        """
        if self.strategic_temperature >= self.scene_temperature:
            raise ConfigurationError(
                f"strategic_temperature ({self.strategic_temperature}) must be lower "
                f"than scene_temperature ({self.scene_temperature})",
                config_key="strategic_temperature",
            )
        return self


class StorageSettings(BaseSettings):
    """Configuration for the SQLite campaign store.

    Attributes:
        database_path: Path to the SQLite database file.
        busy_timeout_seconds: How long a writer waits for the lock before
            the advance is reported as a retryable conflict.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_DIRECTOR_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path("data/dnd_director.db"),
        description="Path to SQLite database",
    )
    busy_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="SQLite lock wait",
    )


class GameSettings(BaseSettings):
    """Configuration for campaign progression and context assembly.

    Attributes:
        target_rounds: Default campaign length in rounds.
        rounds_per_chapter: Default chapter size in rounds.
        free_rounds_limit: Free rounds granted to a new campaign.
        context_window: History entries rendered into the context block.
        history_window: History entries replayed as chat messages.
        narration_requests_per_window: Narration requests allowed per key.
        narration_window_seconds: Length of the rate limit window.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_DIRECTOR_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    target_rounds: int = Field(default=200, ge=1, le=10000)
    rounds_per_chapter: int = Field(default=40, ge=1, le=1000)
    free_rounds_limit: int = Field(default=5, ge=0, le=1000)
    context_window: int = Field(default=4, ge=0, le=50)
    history_window: int = Field(default=6, ge=0, le=50)
    narration_requests_per_window: int = Field(default=12, ge=1)
    narration_window_seconds: float = Field(default=3600.0, gt=0)

    @model_validator(mode="after")
    def validate_chapter_size(self) -> "GameSettings":
        """Ensure a chapter fits inside the campaign.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If rounds_per_chapter exceeds target_rounds.
        """
        if self.rounds_per_chapter > self.target_rounds:
            raise ConfigurationError(
                f"rounds_per_chapter ({self.rounds_per_chapter}) cannot exceed "
                f"target_rounds ({self.target_rounds})",
                config_key="rounds_per_chapter",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Emit JSON log lines instead of console output.
        ai: Language-model provider settings.
        storage: Campaign store settings.
        game: Progression settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_DIRECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D Director",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    game: GameSettings = Field(default_factory=GameSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "StorageSettings",
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
