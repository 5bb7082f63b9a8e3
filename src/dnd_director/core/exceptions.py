"""Custom exception hierarchy for the D&D Director engine.

All exceptions inherit from DndDirectorError, so callers at a service
boundary can catch one type while still reading domain context from
``details``. The hierarchy mirrors how failures are handled:

- ValidationError and its children are always recoverable locally and
  surface as user-readable messages (bad dice notation, bad tool arguments).
- GameEngineError covers campaign state problems, including the two
  expected signals CreditExhaustedError (paywall) and StateConflictError
  (retryable).
- ExternalServiceError covers the language-model provider and is turned
  into an apology narration by the orchestrator.

Example:
    >>> from dnd_director.core.exceptions import DiceRollError
    >>> raise DiceRollError("Unsupported die size d7", expression="1d7")
"""

from __future__ import annotations

from typing import Any


class DndDirectorError(Exception):
    """Base exception for all D&D Director errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndDirectorError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndDirectorError):
    """Raised when user or model supplied data fails validation.

    This includes out-of-range ability scores and levels, malformed dice
    notation and malformed tool arguments.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class DiceRollError(ValidationError):
    """Raised when a dice notation string cannot be parsed or is out of bounds.

    No dice are rolled when this is raised.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class ToolArgumentError(ValidationError):
    """Raised when a model-issued tool call names an unknown tool or has bad arguments."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if tool_name:
            combined_details["tool_name"] = tool_name
        super().__init__(message, details=combined_details)


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(DndDirectorError):
    """Base exception for campaign state and progression errors."""


class CampaignNotFoundError(GameEngineError):
    """Raised when a campaign identifier does not exist in the store."""

    def __init__(
        self,
        message: str,
        *,
        campaign_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if campaign_id:
            combined_details["campaign_id"] = campaign_id
        super().__init__(message, details=combined_details)


class StateConflictError(GameEngineError):
    """Raised when the store could not serialize a progress/ledger mutation.

    The mutation was not applied. Callers may re-issue the request.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        campaign_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if campaign_id:
            combined_details["campaign_id"] = campaign_id
        super().__init__(message, details=combined_details)


class CreditExhaustedError(GameEngineError):
    """Raised when a round advance is requested with no free rounds and no credits.

    This is an expected outcome, not a failure: callers should show a
    paywall rather than a generic error. No state was mutated.
    """

    paywall = True

    def __init__(
        self,
        message: str,
        *,
        campaign_id: str | None = None,
        free_rounds_remaining: int | None = None,
        credits_balance: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize credit exhaustion error with ledger context.

        Args:
            message: Human-readable error description.
            campaign_id: Campaign whose ledger is exhausted.
            free_rounds_remaining: Free rounds left (always 0 when raised).
            credits_balance: Paid credits left (always 0 when raised).
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if campaign_id:
            combined_details["campaign_id"] = campaign_id
        if free_rounds_remaining is not None:
            combined_details["free_rounds_remaining"] = free_rounds_remaining
        if credits_balance is not None:
            combined_details["credits_balance"] = credits_balance
        super().__init__(message, details=combined_details)


class RequestThrottledError(GameEngineError):
    """Raised when a caller exceeds the narration request rate limit."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = round(retry_after_seconds, 1)
        super().__init__(message, details=combined_details)


# =============================================================================
# External Service Exceptions
# =============================================================================


class ExternalServiceError(DndDirectorError):
    """Base exception for language-model provider failures.

    The orchestrator catches this at its boundary and answers with a fixed
    apology instead of propagating it.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize external service error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider (e.g., 'openai').
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIQuotaError(ExternalServiceError):
    """Raised when the provider account has run out of quota."""


class AIAuthenticationError(ExternalServiceError):
    """Raised when the provider rejects the configured credentials."""


class AITimeoutError(ExternalServiceError):
    """Raised when the provider does not answer within the configured timeout."""


class AIConnectionError(ExternalServiceError):
    """Raised when the provider cannot be reached."""


class AIResponseError(ExternalServiceError):
    """Raised when the provider answers with an error status or an unusable body."""


__all__ = [
    # Base exception
    "DndDirectorError",
    # Configuration & validation
    "ConfigurationError",
    "ValidationError",
    "DiceRollError",
    "ToolArgumentError",
    # Game engine
    "GameEngineError",
    "CampaignNotFoundError",
    "StateConflictError",
    "CreditExhaustedError",
    "RequestThrottledError",
    # External services
    "ExternalServiceError",
    "AIQuotaError",
    "AIAuthenticationError",
    "AITimeoutError",
    "AIConnectionError",
    "AIResponseError",
]
