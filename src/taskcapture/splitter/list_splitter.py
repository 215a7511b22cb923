"""Deterministic multi-item splitting (no AI).

Rules, in order:
1. Note-length guard: text longer than the note threshold is never split
2. Structured list: at least 2 non-blank lines, >= 80% of them starting with
   a bullet ('-', '*', '•'), number ('1.', '1)') or checkbox ('[ ]', '[x]');
   every line loses its marker and becomes one item
3. Semicolon list: single-line text only, at least 2 segments, none longer
   than MAX_SEMICOLON_SEGMENT characters
4. Otherwise the whole text is one item; blank text gives no items

Overflow: a split with more than MAX_SPLIT_ITEMS items keeps the first
MAX_SPLIT_ITEMS - 1 and joins the rest with newlines into the last slot, so
no content is dropped.

Usage:
    from taskcapture.splitter.list_splitter import split_multi_capture

    split_multi_capture("работа: 1. fix bug\\n2. deploy")   # ["fix bug", "deploy"]
"""

from __future__ import annotations

import regex

from taskcapture.capture.folders import DEFAULT_FOLDER_ALIASES, FolderAliasTable
from taskcapture.capture.prefix import ExplicitFolderMatch, resolve_explicit_folder
from taskcapture.core.logging import get_logger
from taskcapture.splitter.models import MAX_SPLIT_ITEMS

logger = get_logger(__name__)

NOTE_LENGTH_THRESHOLD = 500
MAX_SEMICOLON_SEGMENT = 120
LIST_MARKER_RATIO = 0.8
REGEX_TIMEOUT = 1.0

# Optional bullet before a checkbox, a bare bullet, or a number with '.' or ')'
LIST_MARKER_PATTERN = regex.compile(
    r"^(?:(?:[-*•]\s*)?\[[ xXхХ]\]|[-*•]|\d{1,3}[.)])(?:\s+|$)"
)


def _strip_marker(line: str) -> tuple[bool, str]:
    """Remove a list marker from a trimmed line.

    Returns:
        Tuple of (had_marker, remaining text)
    """
    try:
        match = LIST_MARKER_PATTERN.match(line, timeout=REGEX_TIMEOUT)
    except TimeoutError:
        logger.warning("list_marker_timeout", line_length=len(line))
        return (False, line)
    if match is None:
        return (False, line)
    return (True, line[match.end() :].strip())


def _apply_overflow(items: list[str]) -> list[str]:
    if len(items) <= MAX_SPLIT_ITEMS:
        return items
    head = items[: MAX_SPLIT_ITEMS - 1]
    tail = "\n".join(items[MAX_SPLIT_ITEMS - 1 :])
    logger.debug("split_overflow_joined", item_count=len(items), joined=len(items) - len(head))
    return [*head, tail]


def _split_structured_list(text: str) -> list[str] | None:
    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return None

    stripped = [_strip_marker(line) for line in lines]
    marked = sum(1 for had_marker, _ in stripped if had_marker)
    if marked / len(lines) < LIST_MARKER_RATIO:
        return None

    items = [content for _, content in stripped if content]
    return items if len(items) >= 2 else None


def _split_semicolon_list(text: str) -> list[str] | None:
    if "\n" in text or ";" not in text:
        return None

    segments = [segment.strip() for segment in text.split(";")]
    segments = [segment for segment in segments if segment]
    if len(segments) < 2:
        return None
    if any(len(segment) > MAX_SEMICOLON_SEGMENT for segment in segments):
        return None
    return segments


def split_items(text: str, note_length_threshold: int = NOTE_LENGTH_THRESHOLD) -> list[str]:
    """Split already prefix-stripped text into item strings.

    Args:
        text: Message text without any explicit folder prefix
        note_length_threshold: Longer text is returned whole

    Returns:
        Ordered items; empty for blank text
    """
    trimmed = text.strip()
    if not trimmed:
        return []

    if len(trimmed) > note_length_threshold:
        return [trimmed]

    items = _split_structured_list(trimmed)
    if items is None:
        items = _split_semicolon_list(trimmed)
    if items is None:
        return [trimmed]

    return _apply_overflow(items)


def split_prefixed_items(
    match: ExplicitFolderMatch,
    note_length_threshold: int = NOTE_LENGTH_THRESHOLD,
) -> list[str]:
    """Split the text following an explicit folder prefix.

    The fully stripped content is tried first. When it is not a list, the
    body that kept a leading marker ("работа: - one\\n- two") gets a second
    chance; a single item always comes from the fully stripped content so
    no stray separator survives.
    """
    items = split_items(match.stripped_content, note_length_threshold)
    if len(items) > 1:
        return items

    list_items = split_items(match.list_body, note_length_threshold)
    return list_items if len(list_items) > 1 else items


def split_multi_capture(
    text: str,
    aliases: FolderAliasTable = DEFAULT_FOLDER_ALIASES,
    note_length_threshold: int = NOTE_LENGTH_THRESHOLD,
) -> list[str]:
    """Split a raw message into items, ignoring any explicit folder prefix.

    The folder prefix is resolved for the message as a whole; callers that
    need it (to reapply to each item) use resolve_explicit_folder directly
    or go through the SplitOrchestrator.

    Args:
        text: Raw message text
        aliases: Folder alias table for prefix detection
        note_length_threshold: Longer text is returned whole

    Returns:
        Ordered item strings; empty for blank text
    """
    match = resolve_explicit_folder(text, aliases)
    if match is None:
        return split_items(text, note_length_threshold)
    return split_prefixed_items(match, note_length_threshold)
