"""Multi-item splitting components.

This package splits one message into several capture items:
- Deterministic list splitter (numbered, bulleted, checkbox, semicolon lists)
- Split contract types and the strict AI response validator
- AI split providers (OpenAI, Gemini, Anthropic) with sequential fallback
- Orchestrator selecting parser or AI output by mode (off/shadow/apply)
"""

from taskcapture.splitter.ai_splitter import AiSplitter, SplitAttempt
from taskcapture.splitter.list_splitter import (
    split_items,
    split_multi_capture,
    split_prefixed_items,
)
from taskcapture.splitter.models import (
    MAX_ITEM_LENGTH,
    MAX_SPLIT_ITEMS,
    SplitCandidate,
    SplitResult,
    single_item_result,
)
from taskcapture.splitter.orchestrator import OrchestratedSplit, SplitOrchestrator
from taskcapture.splitter.providers import (
    AnthropicSplitProvider,
    GeminiSplitProvider,
    OpenAISplitProvider,
    SplitProvider,
    build_providers,
)
from taskcapture.splitter.validator import (
    InvalidSplit,
    ValidSplit,
    validate_split_json,
    validate_split_object,
)

__all__ = [
    # Contract
    "MAX_ITEM_LENGTH",
    "MAX_SPLIT_ITEMS",
    "SplitCandidate",
    "SplitResult",
    "single_item_result",
    # List splitter
    "split_items",
    "split_multi_capture",
    "split_prefixed_items",
    # Validator
    "InvalidSplit",
    "ValidSplit",
    "validate_split_json",
    "validate_split_object",
    # Providers
    "AnthropicSplitProvider",
    "GeminiSplitProvider",
    "OpenAISplitProvider",
    "SplitProvider",
    "build_providers",
    # AI splitter
    "AiSplitter",
    "SplitAttempt",
    # Orchestrator
    "OrchestratedSplit",
    "SplitOrchestrator",
]
