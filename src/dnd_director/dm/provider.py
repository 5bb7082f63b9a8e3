"""Language-model provider contract and its OpenAI implementation.

The orchestrator only knows ``LanguageModelProvider.complete``. Tests pass a
scripted fake; production uses ``OpenAIChatProvider``. Every SDK failure is
classified into the ExternalServiceError family here so the orchestrator
never sees an openai exception type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from dnd_director.core.config import AIProviderSettings, get_settings
from dnd_director.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIQuotaError,
    AIResponseError,
    AITimeoutError,
    ConfigurationError,
)
from dnd_director.core.logging import get_logger
from dnd_director.dm.tools.base import ToolCall

logger = get_logger(__name__)

PROVIDER_NAME = "openai"


# =============================================================================
# Contract
# =============================================================================


@dataclass
class CompletionRequest:
    """One chat completion with function calling."""

    messages: list[dict[str, Any]]
    tools: list[dict[str, Any]] = field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 1200
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    model: str | None = None


@dataclass
class CompletionResponse:
    """What the provider returned: narration text and/or tool calls."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    model: str | None = None
    usage: dict[str, int] | None = None


class LanguageModelProvider(Protocol):
    async def complete(self, request: CompletionRequest) -> CompletionResponse: ...


# =============================================================================
# OpenAI
# =============================================================================


class OpenAIChatProvider:
    """Chat completions over ``openai.AsyncOpenAI``.

    The client is created on first use so constructing the provider never
    needs a key.
    """

    def __init__(
        self,
        settings: AIProviderSettings | None = None,
        *,
        client: Any = None,
    ) -> None:
        self.settings = settings or get_settings().ai
        self._client = client

    def _get_client(self) -> Any:
        """Get or create the async OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            key = self.settings.openai_api_key
            if key is None or not key.get_secret_value():
                raise ConfigurationError(
                    "OpenAI API key not configured",
                    config_key="DND_DIRECTOR_OPENAI_API_KEY",
                )
            self._client = AsyncOpenAI(
                api_key=key.get_secret_value(),
                base_url=self.settings.base_url,
                timeout=self.settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send one completion request.

        Raises:
            AIQuotaError: The account is out of quota.
            AIAuthenticationError: The key was rejected.
            AITimeoutError: The SDK timed out.
            AIConnectionError: The endpoint could not be reached.
            AIResponseError: Any other API error, or an empty response.
        """
        from openai import (
            APIConnectionError,
            APIError,
            APIStatusError,
            APITimeoutError,
            AuthenticationError,
            PermissionDeniedError,
            RateLimitError,
        )

        client = self._get_client()
        model = request.model or self.settings.model
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": request.messages,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "presence_penalty": request.presence_penalty,
            "frequency_penalty": request.frequency_penalty,
        }
        if request.tools:
            kwargs["tools"] = request.tools
            kwargs["tool_choice"] = "auto"

        try:
            response = await client.chat.completions.create(**kwargs)
        except RateLimitError as exc:
            if getattr(exc, "code", None) == "insufficient_quota":
                raise AIQuotaError(
                    "AI service unavailable due to quota limits",
                    model=model,
                    provider=PROVIDER_NAME,
                ) from exc
            raise AIResponseError(
                f"Rate limited by provider: {exc.message}",
                model=model,
                provider=PROVIDER_NAME,
            ) from exc
        except (AuthenticationError, PermissionDeniedError) as exc:
            raise AIAuthenticationError(
                "Invalid API key configuration",
                model=model,
                provider=PROVIDER_NAME,
            ) from exc
        except APITimeoutError as exc:
            raise AITimeoutError("Provider request timed out", model=model, provider=PROVIDER_NAME) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to provider: {exc}",
                model=model,
                provider=PROVIDER_NAME,
            ) from exc
        except APIStatusError as exc:
            raise AIResponseError(
                f"Provider API error: {exc.message}",
                model=model,
                provider=PROVIDER_NAME,
                details={"status_code": exc.status_code},
            ) from exc
        except APIError as exc:
            raise AIResponseError(
                f"Provider API error: {exc.message}",
                model=model,
                provider=PROVIDER_NAME,
            ) from exc

        if not response.choices:
            raise AIResponseError("Provider returned no choices", model=model, provider=PROVIDER_NAME)

        message = response.choices[0].message
        tool_calls = [
            ToolCall(name=call.function.name, arguments=call.function.arguments or "", call_id=call.id)
            for call in (message.tool_calls or [])
        ]
        usage = None
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "Completion received",
            model=response.model,
            tool_calls=len(tool_calls),
            total_tokens=usage["total_tokens"] if usage else None,
        )
        return CompletionResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            model=response.model,
            usage=usage,
        )


__all__ = [
    "PROVIDER_NAME",
    "CompletionRequest",
    "CompletionResponse",
    "LanguageModelProvider",
    "OpenAIChatProvider",
]
