"""Split orchestration: deterministic list splitting with optional AI.

Modes (config splitter.mode):
- off: ListSplitter only; AI is never called
- shadow: AI and ListSplitter both run and are compared in a log event,
  but the ListSplitter result is always returned
- apply: the AI result is used when a provider returned a valid split;
  otherwise (including the all-providers-failed fallback) the ListSplitter
  result is used

The explicit folder prefix is resolved once for the whole message and
reported on the result, so every item can be classified with it. Text
longer than the note threshold is never sent to a provider.

Usage:
    from taskcapture.splitter.orchestrator import SplitOrchestrator

    orchestrator = SplitOrchestrator.from_config(config)
    split = await orchestrator.split("work: 1. fix bug\\n2. deploy")
    split.items             # ["fix bug", "deploy"]
    split.explicit_folder   # "work"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from taskcapture.capture.folders import DEFAULT_FOLDER_ALIASES, FolderAliasTable
from taskcapture.capture.prefix import resolve_explicit_folder
from taskcapture.config_schema import SplitMode
from taskcapture.core.logging import get_logger
from taskcapture.splitter.ai_splitter import AiSplitter, SplitAttempt
from taskcapture.splitter.list_splitter import (
    NOTE_LENGTH_THRESHOLD,
    split_items,
    split_prefixed_items,
)
from taskcapture.splitter.models import ProviderLabel, SplitSource
from taskcapture.splitter.providers import build_providers

if TYPE_CHECKING:
    import httpx

    from taskcapture.config_schema import AppConfig

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OrchestratedSplit:
    """Items for one message and how they were obtained.

    Attributes:
        items: Ordered item texts (without the folder prefix)
        source: 'ai' when the items came from a provider, else 'parser'
        provider: Provider consulted ('none' when no provider answered)
        explicit_folder: Message-level folder to reapply to every item
        ai_attempt: The AI call outcome in shadow/apply mode
    """

    items: list[str]
    source: SplitSource
    provider: ProviderLabel
    explicit_folder: str | None = None
    ai_attempt: SplitAttempt | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {
            "items": list(self.items),
            "source": self.source,
            "provider": self.provider,
        }
        if self.explicit_folder:
            result["explicit_folder"] = self.explicit_folder
        if self.ai_attempt is not None:
            result["ai_attempt"] = self.ai_attempt.to_dict()
        return result


class SplitOrchestrator:
    """Chooses between ListSplitter and AiSplitter output by mode."""

    def __init__(
        self,
        ai_splitter: AiSplitter | None = None,
        mode: SplitMode = "off",
        aliases: FolderAliasTable = DEFAULT_FOLDER_ALIASES,
        note_length_threshold: int = NOTE_LENGTH_THRESHOLD,
    ):
        """Initialize the orchestrator.

        Args:
            ai_splitter: AI splitter (None behaves like mode 'off')
            mode: 'off', 'shadow' or 'apply'
            aliases: Default folder alias table
            note_length_threshold: Longer text is never split nor sent to AI
        """
        self._ai_splitter = ai_splitter
        self._mode = mode
        self._aliases = aliases
        self._note_length_threshold = note_length_threshold

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        aliases: FolderAliasTable = DEFAULT_FOLDER_ALIASES,
        env: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> SplitOrchestrator:
        """Build an orchestrator (and its providers) from configuration."""
        ai_splitter = None
        if config.splitter.mode != "off":
            providers = build_providers(config, env=env, http_client=http_client)
            ai_splitter = AiSplitter(providers, timeout=config.splitter.timeout_ms / 1000)

        return cls(
            ai_splitter=ai_splitter,
            mode=config.splitter.mode,
            aliases=aliases,
            note_length_threshold=config.capture.note_length_threshold,
        )

    @property
    def mode(self) -> SplitMode:
        return self._mode

    async def split(
        self,
        text: str,
        aliases: FolderAliasTable | None = None,
    ) -> OrchestratedSplit:
        """Split a raw message into items.

        Args:
            text: Raw message text (may start with a folder prefix)
            aliases: Alias table for this call (defaults to the orchestrator's)

        Returns:
            OrchestratedSplit; never raises on provider failures
        """
        match = resolve_explicit_folder(text, aliases or self._aliases)
        if match is None:
            explicit_folder = None
            body = text.strip()
            parser_items = split_items(body, self._note_length_threshold)
        else:
            explicit_folder = match.folder
            body = match.list_body
            parser_items = split_prefixed_items(match, self._note_length_threshold)

        if (
            self._mode == "off"
            or self._ai_splitter is None
            or not parser_items
            or len(body) > self._note_length_threshold
        ):
            return OrchestratedSplit(
                items=parser_items,
                source="parser",
                provider="none",
                explicit_folder=explicit_folder,
            )

        attempt = await self._ai_splitter.split(body)

        if self._mode == "shadow":
            ai_items = attempt.result.contents
            logger.info(
                "split_shadow_compare",
                provider=attempt.provider,
                ai_item_count=0 if attempt.is_fallback else len(ai_items),
                parser_item_count=len(parser_items),
                agree=not attempt.is_fallback and ai_items == parser_items,
                failures=list(attempt.failures),
            )
            return OrchestratedSplit(
                items=parser_items,
                source="parser",
                provider=attempt.provider,
                explicit_folder=explicit_folder,
                ai_attempt=attempt,
            )

        if attempt.is_fallback:
            logger.info("split_ai_fallback_to_parser", parser_item_count=len(parser_items))
            return OrchestratedSplit(
                items=parser_items,
                source="parser",
                provider="none",
                explicit_folder=explicit_folder,
                ai_attempt=attempt,
            )

        return OrchestratedSplit(
            items=attempt.result.contents,
            source="ai",
            provider=attempt.provider,
            explicit_folder=explicit_folder,
            ai_attempt=attempt,
        )
