"""AI-assisted multi-item splitting with sequential provider fallback.

Providers are tried one at a time in configured order. Each provider
coroutine is awaited under asyncio.wait_for with the split timeout, which
cancels the in-flight request when the deadline passes. A provider that
times out, errors or returns a response the validator rejects is abandoned
immediately for the next one. There are no retries.

When every provider fails (or none is configured) the result is the
deterministic single-item fallback: the unmodified input, confidence 1.0,
source 'parser', provider 'none'. Nothing here raises to the caller.

Usage:
    from taskcapture.splitter.ai_splitter import AiSplitter
    from taskcapture.splitter.providers import build_providers

    splitter = AiSplitter(build_providers(config), timeout=3.0)
    attempt = await splitter.split("buy milk; call mom")
    attempt.provider          # "openai", "gemini", "anthropic" or "none"
    attempt.result.contents   # ["buy milk", "call mom"]
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import anthropic

from taskcapture.core.errors import SplitProviderError
from taskcapture.core.logging import get_logger
from taskcapture.splitter.models import ProviderLabel, SplitResult, single_item_result
from taskcapture.splitter.providers import SplitProvider
from taskcapture.splitter.validator import InvalidSplit, validate_split_json

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0


@dataclass(frozen=True, slots=True)
class SplitAttempt:
    """Outcome of one AI split call.

    Attributes:
        result: Validated AI result, or the single-item fallback
        provider: Provider that produced the result ('none' for the fallback)
        failures: '<provider>:<reason>' for every provider that was abandoned
    """

    result: SplitResult
    provider: ProviderLabel
    failures: tuple[str, ...] = ()

    @property
    def is_fallback(self) -> bool:
        return self.provider == "none"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {
            "provider": self.provider,
            "result": self.result.to_dict(),
        }
        if self.failures:
            result["failures"] = list(self.failures)
        return result


class AiSplitter:
    """Sequential provider fallback around the split validator."""

    def __init__(
        self,
        providers: Sequence[SplitProvider],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize the splitter.

        Args:
            providers: Providers in the order they should be tried
            timeout: Per-provider timeout in seconds
        """
        self._providers = list(providers)
        self._timeout = timeout

    @property
    def has_providers(self) -> bool:
        return bool(self._providers)

    async def split(self, text: str) -> SplitAttempt:
        """Ask each provider in turn for a split of the text.

        Args:
            text: Message text (without any explicit folder prefix)

        Returns:
            SplitAttempt from the first provider with a valid response, or
            the single-item fallback
        """
        failures: list[str] = []

        for provider in self._providers:
            outcome = await self._try_provider(provider, text)
            if isinstance(outcome, SplitResult):
                return SplitAttempt(
                    result=outcome,
                    provider=provider.name,
                    failures=tuple(failures),
                )
            failures.append(f"{provider.name}:{outcome}")

        if self._providers:
            logger.info("split_providers_exhausted", failures=failures)

        return SplitAttempt(
            result=single_item_result(text),
            provider="none",
            failures=tuple(failures),
        )

    async def _try_provider(self, provider: SplitProvider, text: str) -> SplitResult | str:
        """Run one provider; return its validated result or a failure reason."""
        start_time = time.monotonic()

        try:
            raw = await asyncio.wait_for(
                provider.complete(text),
                timeout=self._timeout,
            )
        except TimeoutError:
            logger.warning(
                "split_provider_failed",
                provider=provider.name,
                reason="timeout",
                timeout_seconds=self._timeout,
            )
            return "timeout"
        except SplitProviderError as e:
            logger.warning(
                "split_provider_failed",
                provider=provider.name,
                reason="provider_error",
                status_code=e.status_code,
                error=str(e),
            )
            return "provider_error"
        except anthropic.APIError as e:
            logger.warning(
                "split_provider_failed",
                provider=provider.name,
                reason="api_error",
                status_code=getattr(e, "status_code", None),
                error=type(e).__name__,
            )
            return "api_error"
        except Exception as e:
            # A broken provider must never block capture
            logger.warning(
                "split_provider_failed",
                provider=provider.name,
                reason="unexpected_error",
                error=f"{type(e).__name__}: {e}",
            )
            return "unexpected_error"

        duration_ms = int((time.monotonic() - start_time) * 1000)
        outcome = validate_split_json(raw)

        if isinstance(outcome, InvalidSplit):
            logger.warning(
                "split_provider_failed",
                provider=provider.name,
                reason=outcome.reason,
                duration_ms=duration_ms,
            )
            return outcome.reason

        logger.info(
            "split_provider_succeeded",
            provider=provider.name,
            item_count=len(outcome.result.items),
            duration_ms=duration_ms,
        )
        return outcome.result
