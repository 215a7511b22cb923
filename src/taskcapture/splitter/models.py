"""Multi-item split contract types.

A split turns one message into an ordered list of item candidates. Every
split result, whether it came from an AI provider or from the deterministic
list parser, obeys the same bounds: 1..MAX_SPLIT_ITEMS items, each with
content of at most MAX_ITEM_LENGTH characters, and is_multi true exactly
when there is more than one item.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

MAX_SPLIT_ITEMS = 10
MAX_ITEM_LENGTH = 500

SplitSource = Literal["ai", "parser"]
ProviderLabel = Literal["openai", "anthropic", "gemini", "none"]


@dataclass(frozen=True, slots=True)
class SplitCandidate:
    """One item of a split.

    Attributes:
        content: Item text (trimmed, 1..MAX_ITEM_LENGTH chars)
        confidence: Provider confidence in [0, 1]
        folder: Folder hint from the provider; carried but never routed on
        reason: Optional explanation from the provider
    """

    content: str
    confidence: float = 1.0
    folder: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {
            "content": self.content,
            "confidence": self.confidence,
        }
        if self.folder:
            result["folder"] = self.folder
        if self.reason:
            result["reason"] = self.reason
        return result


@dataclass(frozen=True, slots=True)
class SplitResult:
    """Ordered split items plus where they came from."""

    items: tuple[SplitCandidate, ...]
    source: SplitSource

    def __post_init__(self) -> None:
        if not 1 <= len(self.items) <= MAX_SPLIT_ITEMS:
            raise ValueError(
                f"A split must have 1..{MAX_SPLIT_ITEMS} items, got {len(self.items)}"
            )

    @property
    def is_multi(self) -> bool:
        return len(self.items) > 1

    @property
    def contents(self) -> list[str]:
        return [item.content for item in self.items]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        return {
            "is_multi": self.is_multi,
            "items": [item.to_dict() for item in self.items],
            "source": self.source,
        }


def single_item_result(content: str) -> SplitResult:
    """Deterministic fallback: the whole input as one parser item."""
    return SplitResult(items=(SplitCandidate(content=content, confidence=1.0),), source="parser")
