"""AI split providers.

Every provider sends the split policy prompt plus the message text to one
external model and returns the raw response text. Validation of that text
is the caller's job (see splitter.validator).

Providers are coroutines and make exactly one request per call: no
retries. The OpenAI and Gemini providers post JSON with an httpx
AsyncClient, the Anthropic provider uses anthropic.AsyncAnthropic with
max_retries=0. The AI splitter awaits them under asyncio.wait_for, so a
provider that misses the split deadline is cancelled mid-request instead of
running on in the background.

Error handling:
- Network errors, non-2xx responses and malformed response shapes raise
  SplitProviderError
- The anthropic SDK raises anthropic.APIError subclasses, which the AI
  splitter handles alongside SplitProviderError

Usage:
    from taskcapture.splitter.providers import build_providers

    providers = build_providers(config)   # skips providers without an API key
    raw = await providers[0].complete("buy milk; call mom")
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

import anthropic
import httpx

from taskcapture.config_schema import ProviderName
from taskcapture.core.errors import SplitProviderError
from taskcapture.core.logging import get_logger
from taskcapture.splitter.prompts import SPLIT_SYSTEM_PROMPT, build_gemini_prompt

if TYPE_CHECKING:
    from taskcapture.config_schema import AppConfig

logger = get_logger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)

API_KEY_ENV: dict[ProviderName, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

MAX_OUTPUT_TOKENS = 500
TEMPERATURE = 0.1


class SplitProvider(Protocol):
    """A single AI provider for multi-item splitting."""

    name: ProviderName

    async def complete(self, text: str) -> str:
        """Return the provider's raw response text for the message."""
        ...


# ---------------------------------------------------------------------------
# HTTP providers (httpx)
# ---------------------------------------------------------------------------


class _HttpSplitProvider:
    """Shared POST handling for JSON-over-HTTP providers.

    A shared AsyncClient may be injected (connection reuse, tests); without
    one every call opens and closes its own client.
    """

    name: ProviderName

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client = client

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> dict[str, Any]:
        if self._client is not None:
            return await self._send(self._client, url, payload, headers)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, url, payload, headers)

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> dict[str, Any]:
        try:
            response = await client.post(
                url,
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise SplitProviderError(
                f"{self.name} request failed: {type(e).__name__}",
                provider=self.name,
            ) from e

        if not response.is_success:
            raise SplitProviderError(
                f"{self.name} returned HTTP {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SplitProviderError(
                f"{self.name} returned a non-JSON body",
                provider=self.name,
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise SplitProviderError(f"{self.name} returned an unexpected body", provider=self.name)
        return data


class OpenAISplitProvider(_HttpSplitProvider):
    """OpenAI chat completions with JSON-object response format."""

    name: ProviderName = "openai"

    async def complete(self, text: str) -> str:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SPLIT_SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        data = await self._post(OPENAI_URL, payload, headers)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise SplitProviderError(
                "openai response has no message content", provider=self.name
            ) from e

        if not isinstance(content, str) or not content:
            raise SplitProviderError("openai response has no message content", provider=self.name)
        return content


class GeminiSplitProvider(_HttpSplitProvider):
    """Gemini generateContent with an application/json response."""

    name: ProviderName = "gemini"

    async def complete(self, text: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": build_gemini_prompt(text)}]}],
            "generationConfig": {
                "temperature": TEMPERATURE,
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
                "responseMimeType": "application/json",
            },
        }
        # Key goes in a header so it never appears in logged URLs
        headers = {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }
        data = await self._post(GEMINI_URL_TEMPLATE.format(model=self._model), payload, headers)

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise SplitProviderError(
                "gemini response has no candidate text", provider=self.name
            ) from e

        if not isinstance(content, str) or not content:
            raise SplitProviderError("gemini response has no candidate text", provider=self.name)
        return content


# ---------------------------------------------------------------------------
# Anthropic provider (SDK)
# ---------------------------------------------------------------------------


class AnthropicSplitProvider:
    """Anthropic messages API through the official async SDK."""

    name: ProviderName = "anthropic"

    def __init__(self, client: anthropic.AsyncAnthropic, model: str):
        """Initialize the provider.

        Args:
            client: Async Anthropic client (should be configured with
                max_retries=0 and the split timeout; see build_providers)
            model: Model name
        """
        self._client = client
        self._model = model

    async def complete(self, text: str) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=MAX_OUTPUT_TOKENS,
            temperature=TEMPERATURE,
            system=SPLIT_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": text}],
        )

        parts = [
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
            and isinstance(getattr(block, "text", None), str)
        ]
        content = "".join(parts).strip()
        if not content:
            raise SplitProviderError("anthropic response has no text content", provider=self.name)
        return content


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_providers(
    config: AppConfig,
    env: Mapping[str, str] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> list[SplitProvider]:
    """Build the configured providers in order, skipping any without an API key.

    Args:
        config: Application configuration (splitter.providers order,
            splitter.timeout_ms, models)
        env: Environment to read API keys from (defaults to os.environ)
        http_client: Shared AsyncClient for the HTTP providers

    Returns:
        Providers in configured order; empty when no key is set
    """
    env = os.environ if env is None else env
    timeout = config.splitter.timeout_ms / 1000
    providers: list[SplitProvider] = []

    for name in config.splitter.providers:
        api_key = env.get(API_KEY_ENV[name], "").strip()
        if not api_key:
            logger.debug("split_provider_skipped", provider=name, reason="missing_api_key")
            continue

        if name == "openai":
            providers.append(
                OpenAISplitProvider(api_key, config.models.openai, timeout, client=http_client)
            )
        elif name == "gemini":
            providers.append(
                GeminiSplitProvider(api_key, config.models.gemini, timeout, client=http_client)
            )
        else:
            client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0, timeout=timeout)
            providers.append(AnthropicSplitProvider(client, config.models.anthropic))

    return providers
