"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DndDirectorError: Base exception for all engine errors.
        ValidationError: Recoverable input errors.
        CreditExhaustedError: Paywall signal from round advancement.
        ExternalServiceError: Language-model provider failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_logging_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from dnd_director.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from dnd_director.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIQuotaError,
    AIResponseError,
    AITimeoutError,
    CampaignNotFoundError,
    ConfigurationError,
    CreditExhaustedError,
    DiceRollError,
    DndDirectorError,
    ExternalServiceError,
    GameEngineError,
    RequestThrottledError,
    StateConflictError,
    ToolArgumentError,
    ValidationError,
)
from dnd_director.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    mask_api_keys,
)


__all__ = [
    # Exceptions
    "DndDirectorError",
    "ConfigurationError",
    "ValidationError",
    "DiceRollError",
    "ToolArgumentError",
    "GameEngineError",
    "CampaignNotFoundError",
    "StateConflictError",
    "CreditExhaustedError",
    "RequestThrottledError",
    "ExternalServiceError",
    "AIQuotaError",
    "AIAuthenticationError",
    "AITimeoutError",
    "AIConnectionError",
    "AIResponseError",
    # Configuration
    "AIProviderSettings",
    "StorageSettings",
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "mask_api_keys",
    "get_logger",
    "bind_context",
    "clear_context",
]
