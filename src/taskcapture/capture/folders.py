"""Folder alias table: which words at the start of a message name a folder.

The table maps a normalized alias to a folder slug. It is built by a pure
builder from the fixed system folders plus an account's custom folders;
every folder contributes both its slug and its display name. Later entries
override earlier ones, so a custom folder wins over a system alias with the
same spelling.

Usage:
    from taskcapture.capture.folders import FolderDefinition, build_folder_aliases

    aliases = build_folder_aliases([FolderDefinition("finance", "Финансы")])
    aliases.get("финансы")  # -> "finance"
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol


class _FolderLike(Protocol):
    slug: str
    display_name: str


@dataclass(frozen=True, slots=True)
class FolderDefinition:
    """A folder that contributes aliases to the table.

    Attributes:
        slug: Folder slug (the routing value)
        display_name: Name shown to the user
        extra_aliases: Additional words that route to this folder
    """

    slug: str
    display_name: str
    extra_aliases: tuple[str, ...] = ()


SYSTEM_FOLDERS: tuple[FolderDefinition, ...] = (
    FolderDefinition("work", "Работа"),
    FolderDefinition("personal", "Личное", extra_aliases=("лично", "дом", "home")),
    FolderDefinition("ideas", "Идеи", extra_aliases=("идея",)),
    FolderDefinition("media", "Медиа"),
    FolderDefinition("notes", "Заметки", extra_aliases=("заметка",)),
)


def normalize_alias(value: str) -> str:
    """Case- and locale-fold an alias or message prefix.

    Lowercases and folds the Russian 'ё' to 'е'. Both operations keep the
    string length, so a normalized prefix can be sliced off the original
    text by length.
    """
    return value.lower().replace("ё", "е")


@dataclass(frozen=True)
class FolderAliasTable(Mapping[str, str]):
    """Immutable mapping of normalized alias -> folder slug.

    Attributes:
        by_length: Aliases ordered longest first (ties broken alphabetically),
            the order in which full-alias prefix matching is attempted
    """

    _aliases: Mapping[str, str]
    by_length: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        frozen = MappingProxyType(dict(self._aliases))
        object.__setattr__(self, "_aliases", frozen)
        object.__setattr__(
            self,
            "by_length",
            tuple(sorted(frozen, key=lambda alias: (-len(alias), alias))),
        )

    def __getitem__(self, alias: str) -> str:
        return self._aliases[normalize_alias(alias)]

    def __contains__(self, alias: object) -> bool:
        return isinstance(alias, str) and normalize_alias(alias) in self._aliases

    def __iter__(self) -> Iterator[str]:
        return iter(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._aliases.items())))

    @property
    def slugs(self) -> frozenset[str]:
        """All folder slugs reachable through this table."""
        return frozenset(self._aliases.values())


def build_folder_aliases(
    custom_folders: Iterable[_FolderLike] = (),
    base: Iterable[FolderDefinition] = SYSTEM_FOLDERS,
) -> FolderAliasTable:
    """Build an alias table from base folders merged with custom folders.

    Args:
        custom_folders: Account folders (anything with slug and display_name,
            e.g. FolderDefinition or config FolderConfig)
        base: Folders applied first (defaults to the system folders)

    Returns:
        FolderAliasTable where custom entries override base entries
    """
    aliases: dict[str, str] = {}

    for folder in base:
        _add_folder(aliases, folder.slug, folder.display_name, folder.extra_aliases)

    for folder in custom_folders:
        extra = getattr(folder, "extra_aliases", ())
        _add_folder(aliases, folder.slug, folder.display_name, extra)

    return FolderAliasTable(aliases)


def _add_folder(
    aliases: dict[str, str],
    slug: str,
    display_name: str,
    extra_aliases: Iterable[str],
) -> None:
    for raw in (slug, display_name, *extra_aliases):
        alias = normalize_alias(raw.strip())
        if alias:
            aliases[alias] = slug


DEFAULT_FOLDER_ALIASES = build_folder_aliases()
