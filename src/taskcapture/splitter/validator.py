"""Schema validation of untrusted AI split responses.

Provider output is parsed as JSON and validated against a strict Pydantic
schema. The validator never raises: it returns either ValidSplit (with a
normalized SplitResult) or InvalidSplit (with a stable reason code).

Rejected (reason code):
- not JSON (invalid_json)
- not a JSON object (not_object)
- isMulti missing or not a boolean (missing_is_multi)
- items missing or not an array (missing_items)
- items empty (empty_items)
- more than MAX_SPLIT_ITEMS items (too_many_items)
- any item not an object, or with missing, non-string or blank content
  (invalid_item)

Accepted items are normalized: content trimmed and capped at
MAX_ITEM_LENGTH, confidence clamped to [0, 1] (0.5 when absent or not a
number), non-string folder/reason dropped.

Usage:
    from taskcapture.splitter.validator import ValidSplit, validate_split_json

    outcome = validate_split_json(raw_text)
    if isinstance(outcome, ValidSplit):
        items = outcome.result.contents
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    field_validator,
)

from taskcapture.splitter.models import (
    MAX_ITEM_LENGTH,
    MAX_SPLIT_ITEMS,
    SplitCandidate,
    SplitResult,
)

DEFAULT_CONFIDENCE = 0.5

SplitRejection = Literal[
    "invalid_json",
    "not_object",
    "missing_is_multi",
    "missing_items",
    "empty_items",
    "too_many_items",
    "invalid_item",
]


@dataclass(frozen=True, slots=True)
class ValidSplit:
    """Provider response accepted; result is normalized."""

    result: SplitResult


@dataclass(frozen=True, slots=True)
class InvalidSplit:
    """Provider response rejected with a stable reason code."""

    reason: SplitRejection


SplitValidation = ValidSplit | InvalidSplit


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------


class _SplitItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: StrictStr
    folder: Any = None
    confidence: Any = None
    reason: Any = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Item content cannot be blank")
        return v


class _SplitResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    is_multi: StrictBool = Field(alias="isMulti")
    items: list[_SplitItem] = Field(min_length=1, max_length=MAX_SPLIT_ITEMS)


def _rejection_reason(error: ValidationError) -> SplitRejection:
    """Map Pydantic errors to the highest-priority reason code."""
    found: set[SplitRejection] = set()
    for err in error.errors():
        loc = err["loc"]
        if loc[0] == "isMulti":
            found.add("missing_is_multi")
        elif len(loc) > 1:
            found.add("invalid_item")
        elif err["type"] == "too_short":
            found.add("empty_items")
        elif err["type"] == "too_long":
            found.add("too_many_items")
        else:
            found.add("missing_items")

    for reason in ("missing_is_multi", "missing_items", "empty_items", "too_many_items"):
        if reason in found:
            return reason
    return "invalid_item"


def _normalize_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(value):
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, float(value)))


def _normalize_item(item: _SplitItem) -> SplitCandidate:
    return SplitCandidate(
        content=item.content.strip()[:MAX_ITEM_LENGTH],
        confidence=_normalize_confidence(item.confidence),
        folder=item.folder if isinstance(item.folder, str) else None,
        reason=item.reason if isinstance(item.reason, str) else None,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_split_object(parsed: Any) -> SplitValidation:
    """Validate an already-decoded split response."""
    if not isinstance(parsed, dict):
        return InvalidSplit("not_object")

    try:
        response = _SplitResponse.model_validate(parsed)
    except ValidationError as e:
        return InvalidSplit(_rejection_reason(e))

    items = tuple(_normalize_item(item) for item in response.items)
    return ValidSplit(SplitResult(items=items, source="ai"))


def validate_split_json(raw: str) -> SplitValidation:
    """Validate a raw provider response string.

    Args:
        raw: Text returned by the AI provider

    Returns:
        ValidSplit with the normalized result, or InvalidSplit with a reason
    """
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return InvalidSplit("invalid_json")

    return validate_split_object(parsed)
