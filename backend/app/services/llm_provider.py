"""Generative text provider interface and its Anthropic implementation."""

import asyncio
import json
import logging
import re
from typing import Any, Protocol

from anthropic import APIConnectionError, APIError, APIStatusError, AsyncAnthropic, RateLimitError

from app.config import Settings
from app.errors import MalformedGenerativeOutput, ProviderTransportError

logger = logging.getLogger(__name__)

# Transient error types that warrant retrying
_RETRYABLE_ERRORS = (APIConnectionError, RateLimitError)
_OVERLOADED_STATUS = 529

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class GenerativeProvider(Protocol):
    """Anything that turns a system prompt plus messages into text."""

    async def complete(self, system_prompt: str, messages: list[dict]) -> str: ...


async def _retry_anthropic(coro_factory, *, max_attempts: int = 3, base_delay: float = 1.0):
    """
    Retry an Anthropic API call with exponential backoff.

    Only connection errors, rate limits and 529 (overloaded) are retried;
    anything else is raised on the first failure.
    """
    for attempt in range(max_attempts):
        try:
            return await coro_factory()
        except _RETRYABLE_ERRORS as e:
            if attempt >= max_attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Anthropic API transient error (attempt %d/%d), retrying in %.1fs: %s",
                attempt + 1, max_attempts, delay, str(e),
            )
            await asyncio.sleep(delay)
        except APIStatusError as e:
            if e.status_code != _OVERLOADED_STATUS or attempt >= max_attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Anthropic API overloaded (attempt %d/%d), retrying in %.1fs",
                attempt + 1, max_attempts, delay,
            )
            await asyncio.sleep(delay)
    raise RuntimeError("max_attempts must be at least 1")


class AnthropicProvider:
    """Claude-backed provider. One instance per process is enough."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int,
        max_attempts: int = 3,
        client: AsyncAnthropic | None = None,
    ):
        self.client = client or AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.max_attempts = max_attempts

    async def complete(self, system_prompt: str, messages: list[dict]) -> str:
        """
        Run one completion and return its text.

        Raises:
            ProviderTransportError: the API failed after bounded retries.
        """
        try:
            message = await _retry_anthropic(
                lambda: self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=system_prompt,
                    messages=messages,
                ),
                max_attempts=self.max_attempts,
            )
        except APIStatusError as e:
            logger.error("Anthropic API returned status %d: %s", e.status_code, e.message)
            raise ProviderTransportError(
                provider_status=e.status_code, provider_message=e.message
            ) from e
        except APIError as e:
            logger.error("Anthropic API request failed: %s", str(e))
            raise ProviderTransportError(provider_message=str(e)) from e

        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )


def create_generative_provider(settings: Settings) -> GenerativeProvider | None:
    """Build the configured provider, or None when no API key is set."""
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; generative features are disabled")
        return None
    return AnthropicProvider(
        api_key=settings.anthropic_api_key,
        model=settings.llm_model,
        max_tokens=settings.llm_max_tokens,
        max_attempts=settings.llm_max_attempts,
    )


def parse_json_object(raw: str | None) -> dict[str, Any]:
    """
    Extract the JSON object from a model response.

    Tolerates code fences and stray prose around the object by parsing from
    the first ``{`` to the last ``}``.

    Raises:
        MalformedGenerativeOutput: no JSON object could be parsed.
    """
    if not raw:
        raise MalformedGenerativeOutput()
    text = _CODE_FENCE.sub("", raw.strip())
    try:
        start = text.index("{")
        end = text.rindex("}") + 1
        parsed = json.loads(text[start:end])
    except (ValueError, json.JSONDecodeError) as e:
        raise MalformedGenerativeOutput() from e
    if not isinstance(parsed, dict):
        raise MalformedGenerativeOutput()
    return parsed
