"""Tests for the AI splitter's sequential provider fallback."""

import asyncio
from typing import Any

import anthropic
import httpx
import pytest

from taskcapture.core.errors import SplitProviderError
from taskcapture.splitter.ai_splitter import AiSplitter


class SlowProvider:
    """Provider that sleeps past any test timeout and records cancellation."""

    def __init__(self, name: str = "openai", delay: float = 5.0):
        self.name = name
        self.delay = delay
        self.calls = 0
        self.cancelled = False
        self.finished = False

    async def complete(self, text: str) -> str:
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        return '{"isMulti": false, "items": [{"content": "late"}]}'


class TestAiSplitterSuccess:
    """Tests for providers that return valid responses."""

    @pytest.mark.asyncio
    async def test_first_provider_wins(self, make_provider: Any, split_response: Any) -> None:
        """Test that a valid first response is used and later providers are not called."""
        first = make_provider("openai", split_response("buy milk", "call mom"))
        second = make_provider("gemini", split_response("unused"))

        attempt = await AiSplitter([first, second]).split("buy milk; call mom")

        assert attempt.provider == "openai"
        assert attempt.result.contents == ["buy milk", "call mom"]
        assert attempt.result.source == "ai"
        assert attempt.failures == ()
        assert attempt.is_fallback is False
        assert second.calls == []

    @pytest.mark.asyncio
    async def test_provider_receives_text(self, make_provider: Any, split_response: Any) -> None:
        """Test that the provider is called once with the message text."""
        provider = make_provider("gemini", split_response("a"))

        await AiSplitter([provider]).split("a")

        assert provider.calls == ["a"]


class TestAiSplitterFallback:
    """Tests for provider failures and the deterministic fallback."""

    @pytest.mark.asyncio
    async def test_error_falls_through(self, make_provider: Any, split_response: Any) -> None:
        """Test that a provider error moves on to the next provider."""
        failing = make_provider("openai", error=SplitProviderError("HTTP 500", "openai", 500))
        working = make_provider("gemini", split_response("a", "b"))

        attempt = await AiSplitter([failing, working]).split("a; b")

        assert attempt.provider == "gemini"
        assert attempt.failures == ("openai:provider_error",)
        assert len(failing.calls) == 1

    @pytest.mark.asyncio
    async def test_invalid_response_falls_through(
        self, make_provider: Any, split_response: Any
    ) -> None:
        """Test that a schema-invalid response is not used."""
        invalid = make_provider("openai", '{"isMulti": true, "items": []}')
        garbage = make_provider("anthropic", "Sure! Here are your tasks:")
        working = make_provider("gemini", split_response("a"))

        attempt = await AiSplitter([invalid, garbage, working]).split("a")

        assert attempt.provider == "gemini"
        assert attempt.failures == ("openai:empty_items", "anthropic:invalid_json")

    @pytest.mark.asyncio
    async def test_anthropic_api_error(self, make_provider: Any, split_response: Any) -> None:
        """Test that SDK errors are handled like provider errors."""
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        failing = make_provider(
            "anthropic", error=anthropic.APIConnectionError(request=request)
        )
        working = make_provider("openai", split_response("a"))

        attempt = await AiSplitter([failing, working]).split("a")

        assert attempt.provider == "openai"
        assert attempt.failures == ("anthropic:api_error",)

    @pytest.mark.asyncio
    async def test_unexpected_error(self, make_provider: Any, split_response: Any) -> None:
        """Test that an unexpected exception does not escape."""
        broken = make_provider("openai", error=RuntimeError("boom"))
        working = make_provider("gemini", split_response("a"))

        attempt = await AiSplitter([broken, working]).split("a")

        assert attempt.provider == "gemini"
        assert attempt.failures == ("openai:unexpected_error",)

    @pytest.mark.asyncio
    async def test_timeout_falls_through(self, make_provider: Any, split_response: Any) -> None:
        """Test that a slow provider is abandoned after the timeout."""
        slow = SlowProvider("openai")
        working = make_provider("gemini", split_response("a"))

        attempt = await AiSplitter([slow, working], timeout=0.05).split("a")

        assert attempt.provider == "gemini"
        assert attempt.failures == ("openai:timeout",)
        assert slow.calls == 1

    @pytest.mark.asyncio
    async def test_timeout_cancels_request(self) -> None:
        """Test that a provider past the deadline is cancelled, not left running."""
        slow = SlowProvider("openai", delay=0.5)

        attempt = await AiSplitter([slow], timeout=0.05).split("a")
        # Longer than the provider's own delay: it must not complete later
        await asyncio.sleep(0.6)

        assert attempt.is_fallback is True
        assert attempt.failures == ("openai:timeout",)
        assert slow.cancelled is True
        assert slow.finished is False

    @pytest.mark.asyncio
    async def test_all_fail_returns_input(self, make_provider: Any) -> None:
        """Test the single-item fallback when every provider fails."""
        providers = [
            make_provider("openai", error=SplitProviderError("down", "openai")),
            make_provider("gemini", "not json"),
        ]
        text = "  buy milk; call mom  "

        attempt = await AiSplitter(providers).split(text)

        assert attempt.is_fallback is True
        assert attempt.provider == "none"
        assert attempt.result.source == "parser"
        assert attempt.result.contents == [text]
        assert attempt.result.items[0].confidence == 1.0
        assert attempt.failures == ("openai:provider_error", "gemini:invalid_json")

    @pytest.mark.asyncio
    async def test_no_retries(self, make_provider: Any) -> None:
        """Test that each provider is called exactly once."""
        providers = [
            make_provider("openai", error=SplitProviderError("down", "openai")),
            make_provider("gemini", error=SplitProviderError("down", "gemini")),
        ]

        await AiSplitter(providers).split("a")

        assert [len(p.calls) for p in providers] == [1, 1]

    @pytest.mark.asyncio
    async def test_no_providers(self) -> None:
        """Test that an empty provider list returns the fallback."""
        splitter = AiSplitter([])

        attempt = await splitter.split("buy milk")

        assert splitter.has_providers is False
        assert attempt.provider == "none"
        assert attempt.result.contents == ["buy milk"]
        assert attempt.failures == ()

    @pytest.mark.asyncio
    async def test_to_dict(self, make_provider: Any) -> None:
        """Test the JSON shape of a fallback attempt."""
        provider = make_provider("openai", "{}")

        attempt = await AiSplitter([provider]).split("a")

        assert attempt.to_dict() == {
            "provider": "none",
            "result": {
                "is_multi": False,
                "items": [{"content": "a", "confidence": 1.0}],
                "source": "parser",
            },
            "failures": ["openai:missing_is_multi"],
        }
