"""Explicit folder prefix detection.

A message may start with a word naming its destination folder
("работа: сделать отчет", "ideas startup plan"). This module decides
whether such a prefix is present, conservatively:

1. Full alias, longest first, case/locale-folded, and only when followed by
   a separator (whitespace, ':', '-', or end of text). "работаю" does not
   match "работа".
2. Otherwise the leading token (up to the first whitespace, ':' or '-') is
   tried as a partial alias. It must be at least MIN_PARTIAL_LENGTH
   characters and every alias starting with it must belong to one single
   folder. "раб" -> work; "alp" with both "alpha" and "alpine" -> no match.

An ambiguous or unknown prefix is not an error: it is reported as "no
prefix" and the message falls through to the remaining capture rules.
"""

from __future__ import annotations

from dataclasses import dataclass

import regex

from taskcapture.capture.folders import (
    DEFAULT_FOLDER_ALIASES,
    FolderAliasTable,
    normalize_alias,
)
from taskcapture.core.logging import get_logger

logger = get_logger(__name__)

# Below this length a partial token is too likely to be an ordinary word
MIN_PARTIAL_LENGTH = 3

SEPARATOR_CHARS = frozenset(":-")

REGEX_TIMEOUT = 1.0

# Leading token for partial matching: everything up to whitespace, ':' or '-'
LEADING_TOKEN_PATTERN = regex.compile(r"^[^\s:\-]+")

# Every separator and space left behind after the alias ("работа:- отчет")
SEPARATOR_RUN_PATTERN = regex.compile(r"^[\s:\-]*")

# One separator only, so a list marker right after it ("работа: - task") survives
LIST_SEPARATOR_PATTERN = regex.compile(r"^\s*[:\-]?\s*")


@dataclass(frozen=True, slots=True)
class ExplicitFolderMatch:
    """Result of a successful prefix resolution.

    Attributes:
        folder: Resolved folder slug
        stripped_content: Message text with the prefix and every following
            separator removed (what gets classified)
        list_body: Message text with the prefix and a single separator
            removed, keeping a leading list marker for the ListSplitter
    """

    folder: str
    stripped_content: str
    list_body: str


def _is_separator(char: str) -> bool:
    return char.isspace() or char in SEPARATOR_CHARS


def _build_match(slug: str, text: str, length: int) -> ExplicitFolderMatch:
    remainder = text[length:]
    return ExplicitFolderMatch(
        folder=slug,
        stripped_content=SEPARATOR_RUN_PATTERN.sub("", remainder, timeout=REGEX_TIMEOUT).strip(),
        list_body=LIST_SEPARATOR_PATTERN.sub("", remainder, timeout=REGEX_TIMEOUT).strip(),
    )


def resolve_explicit_folder(
    text: str,
    aliases: FolderAliasTable = DEFAULT_FOLDER_ALIASES,
) -> ExplicitFolderMatch | None:
    """Detect an explicit destination folder at the start of a message.

    Args:
        text: Message text (leading whitespace is ignored)
        aliases: Folder alias table to resolve against

    Returns:
        ExplicitFolderMatch if the message starts with an unambiguous folder
        prefix, None otherwise
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    folded = normalize_alias(trimmed)

    for alias in aliases.by_length:
        if not folded.startswith(alias):
            continue
        if len(folded) > len(alias) and not _is_separator(folded[len(alias)]):
            continue
        slug = aliases[alias]
        logger.debug("explicit_folder_resolved", folder=slug, match_type="full")
        return _build_match(slug, trimmed, len(alias))

    token_match = LEADING_TOKEN_PATTERN.match(folded, timeout=REGEX_TIMEOUT)
    if token_match is None:
        return None

    token = token_match.group(0)
    if len(token) < MIN_PARTIAL_LENGTH:
        return None

    candidates = {aliases[alias] for alias in aliases.by_length if alias.startswith(token)}
    if len(candidates) != 1:
        if candidates:
            logger.debug(
                "explicit_folder_ambiguous",
                candidates=sorted(candidates),
                token_length=len(token),
            )
        return None

    slug = candidates.pop()
    logger.debug("explicit_folder_resolved", folder=slug, match_type="partial")
    return _build_match(slug, trimmed, len(token))
