"""Tests for the exception hierarchy."""

from __future__ import annotations

from dnd_director.core.exceptions import (
    AIQuotaError,
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


class TestDndDirectorError:
    """Tests for the base DndDirectorError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = DndDirectorError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = DndDirectorError("Test error", details={"key": "value", "count": 42})
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(DndDirectorError("Test", details={"x": 1}))
        assert "DndDirectorError" in repr_str
        assert "x" in repr_str


class TestValidationExceptions:
    """Tests for validation-related exceptions."""

    def test_validation_error_context(self) -> None:
        """Test field and value land in details."""
        exc = ValidationError("Bad level", field_name="level", invalid_value=42)
        assert exc.details == {"field_name": "level", "invalid_value": 42}

    def test_dice_roll_error(self) -> None:
        """Test DiceRollError carries the expression."""
        exc = DiceRollError("Unsupported die size d7", expression="1d7")
        assert exc.details["expression"] == "1d7"
        assert isinstance(exc, ValidationError)

    def test_tool_argument_error(self) -> None:
        """Test ToolArgumentError carries the tool name."""
        exc = ToolArgumentError("Arguments must be a JSON object", tool_name="roll_dice")
        assert exc.details["tool_name"] == "roll_dice"
        assert isinstance(exc, ValidationError)

    def test_configuration_error(self) -> None:
        """Test ConfigurationError carries the key."""
        exc = ConfigurationError("Missing key", config_key="DND_DIRECTOR_OPENAI_API_KEY")
        assert exc.details["config_key"] == "DND_DIRECTOR_OPENAI_API_KEY"


class TestGameEngineExceptions:
    """Tests for game engine exceptions."""

    def test_credit_exhausted_is_paywall(self) -> None:
        """Test the paywall signal and its ledger context."""
        exc = CreditExhaustedError(
            "No free rounds or credits remaining",
            campaign_id="c-1",
            free_rounds_remaining=0,
            credits_balance=0,
        )
        assert exc.paywall is True
        assert exc.details == {"campaign_id": "c-1", "free_rounds_remaining": 0, "credits_balance": 0}
        assert isinstance(exc, GameEngineError)

    def test_state_conflict_is_retryable(self) -> None:
        """Test StateConflictError is marked retryable."""
        exc = StateConflictError("busy", campaign_id="c-1")
        assert exc.retryable is True
        assert exc.details["campaign_id"] == "c-1"

    def test_campaign_not_found(self) -> None:
        """Test CampaignNotFoundError context."""
        exc = CampaignNotFoundError("Campaign not found", campaign_id="missing")
        assert exc.details["campaign_id"] == "missing"

    def test_request_throttled_rounds_retry_after(self) -> None:
        """Test the retry hint is rounded for display."""
        exc = RequestThrottledError("slow down", retry_after_seconds=12.3456)
        assert exc.details["retry_after_seconds"] == 12.3


class TestExternalServiceExceptions:
    """Tests for provider exceptions."""

    def test_model_and_provider_context(self) -> None:
        """Test model and provider land in details."""
        exc = AIQuotaError("Out of quota", model="gpt-4o-mini", provider="openai")
        assert exc.details == {"model": "gpt-4o-mini", "provider": "openai"}

    def test_inheritance(self) -> None:
        """Test exception inheritance chain."""
        exc = AITimeoutError("slow")
        assert isinstance(exc, ExternalServiceError)
        assert isinstance(exc, DndDirectorError)
        assert isinstance(exc, Exception)
