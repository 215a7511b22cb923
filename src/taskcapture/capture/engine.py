"""Capture classification engine.

Turns one raw message plus its media context into a CaptureResult: folder,
task-vs-note type, lifecycle status and extracted schedule.

Precedence (each step only decides what a higher step left open):
1. Explicit folder prefix -> folder, has_explicit_tag; never overridden
2. Content longer than the note threshold -> type 'note'
3. Media attachment (untagged) -> folder 'media'
4. http(s) URL, no media type yet (untagged) -> media_type 'link', folder 'media'
5. Untagged note -> folder 'notes' (overrides 3-4, not 1)
6. Status 'active' for a note in 'notes', otherwise 'inbox'
7. Date/time extraction on the content; a concrete date activates a task
8. needs_ai_classification only when nothing above decided the folder

The ordering is load-bearing: a long message with an explicit prefix keeps
its folder and becomes a note, but stays in 'inbox' because step 5 does not
fire for tagged messages.

Usage:
    from taskcapture.capture.engine import CaptureContext, ClassificationEngine

    engine = ClassificationEngine(timezone="Europe/Moscow")
    result = engine.process_message("работа: отчет завтра в 10:00")
    result.folder   # "work"
    result.status   # "active"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

import regex

from taskcapture.capture.dates import RecurrenceRule, extract_datetime
from taskcapture.capture.folders import DEFAULT_FOLDER_ALIASES, FolderAliasTable
from taskcapture.capture.prefix import resolve_explicit_folder
from taskcapture.core.logging import get_logger

logger = get_logger(__name__)

TaskType = Literal["task", "note"]
TaskStatus = Literal["inbox", "active"]
MediaType = Literal["photo", "document", "voice", "link"]

NOTE_LENGTH_THRESHOLD = 500
DEFAULT_FOLDER = "personal"
MEDIA_FOLDER = "media"
NOTES_FOLDER = "notes"

URL_PATTERN = regex.compile(r"https?://\S+")
REGEX_TIMEOUT = 1.0


@dataclass(frozen=True, slots=True)
class CaptureContext:
    """Per-message input beyond the text itself.

    Attributes:
        has_media: Whether a media attachment came with the message
        media_type: Attachment type ('photo', 'document', 'voice') if known
        folder_aliases: Alias table overriding the engine's table
        timezone: IANA timezone overriding the engine's default
        now: Reference instant for relative dates (defaults to now)
    """

    has_media: bool = False
    media_type: MediaType | None = None
    folder_aliases: FolderAliasTable | None = None
    timezone: str | None = None
    now: datetime | None = None


@dataclass(frozen=True, slots=True)
class CaptureResult:
    """Folder/type/status/schedule decision for one message."""

    content: str
    folder: str
    type: TaskType
    status: TaskStatus
    media_type: MediaType | None
    needs_ai_classification: bool
    has_explicit_tag: bool
    scheduled_date: str | None = None
    scheduled_time: str | None = None
    deadline: int | None = None
    recurrence_rule: RecurrenceRule | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output (unset schedule fields omitted)."""
        result: dict[str, Any] = {
            "content": self.content,
            "folder": self.folder,
            "type": self.type,
            "status": self.status,
            "needs_ai_classification": self.needs_ai_classification,
            "has_explicit_tag": self.has_explicit_tag,
        }
        if self.media_type:
            result["media_type"] = self.media_type
        if self.scheduled_date:
            result["scheduled_date"] = self.scheduled_date
        if self.scheduled_time:
            result["scheduled_time"] = self.scheduled_time
        if self.deadline is not None:
            result["deadline"] = self.deadline
        if self.recurrence_rule:
            result["recurrence_rule"] = self.recurrence_rule
        return result


def _contains_url(text: str) -> bool:
    try:
        return URL_PATTERN.search(text, timeout=REGEX_TIMEOUT) is not None
    except TimeoutError:
        logger.warning("url_detection_timeout", text_length=len(text))
        return False


class ClassificationEngine:
    """Applies the fixed capture precedence to single messages.

    The engine holds no mutable state; one instance can serve any number of
    concurrent callers.

    Attributes:
        _aliases: Default folder alias table
        _timezone: Default IANA timezone
        _note_length_threshold: Content length above which a message is a note
        _default_folder: Folder for plain text nothing else decides
    """

    def __init__(
        self,
        aliases: FolderAliasTable = DEFAULT_FOLDER_ALIASES,
        timezone: str = "UTC",
        note_length_threshold: int = NOTE_LENGTH_THRESHOLD,
        default_folder: str = DEFAULT_FOLDER,
    ):
        self._aliases = aliases
        self._timezone = timezone
        self._note_length_threshold = note_length_threshold
        self._default_folder = default_folder

    def process_message(
        self,
        text: str,
        context: CaptureContext | None = None,
        explicit_folder: str | None = None,
    ) -> CaptureResult:
        """Classify one message.

        Args:
            text: Raw message text (or one split item)
            context: Media, alias, timezone and clock context
            explicit_folder: Folder already resolved for the whole message
                (e.g. before splitting); applied as an explicit tag and
                prefix resolution is skipped

        Returns:
            CaptureResult for the message
        """
        context = context or CaptureContext()
        aliases = context.folder_aliases or self._aliases

        content = text
        folder = self._default_folder
        task_type: TaskType = "task"
        media_type = context.media_type
        has_explicit_tag = False

        # 1. explicit folder
        if explicit_folder:
            folder = explicit_folder
            has_explicit_tag = True
        else:
            match = resolve_explicit_folder(text, aliases)
            if match is not None:
                folder = match.folder
                content = match.stripped_content
                has_explicit_tag = True
        decided = has_explicit_tag

        # 2. long content
        if len(content) > self._note_length_threshold:
            task_type = "note"

        # 3. media attachment
        if context.has_media and not has_explicit_tag:
            folder = MEDIA_FOLDER
            decided = True

        # 4. link
        if media_type is None and _contains_url(content):
            media_type = "link"
            if not has_explicit_tag:
                folder = MEDIA_FOLDER
                decided = True

        # 5. untagged note
        if task_type == "note" and not has_explicit_tag:
            folder = NOTES_FOLDER
            decided = True

        # 6. status
        status: TaskStatus = (
            "active" if task_type == "note" and folder == NOTES_FOLDER else "inbox"
        )

        # 7. schedule
        parsed = extract_datetime(
            content,
            now=context.now,
            timezone=context.timezone or self._timezone,
        )
        content = parsed.stripped_content
        if parsed.scheduled_date is not None and task_type != "note":
            status = "active"
            decided = True

        # 8. handoff to the folder classifier
        needs_ai = not decided

        logger.debug(
            "capture_classified",
            folder=folder,
            type=task_type,
            status=status,
            has_explicit_tag=has_explicit_tag,
            needs_ai_classification=needs_ai,
            content_length=len(content),
        )

        return CaptureResult(
            content=content,
            folder=folder,
            type=task_type,
            status=status,
            media_type=media_type,
            needs_ai_classification=needs_ai,
            has_explicit_tag=has_explicit_tag,
            scheduled_date=parsed.scheduled_date,
            scheduled_time=parsed.scheduled_time,
            deadline=parsed.deadline,
            recurrence_rule=parsed.recurrence_rule,
        )


_default_engine = ClassificationEngine()


def process_message(
    text: str,
    context: CaptureContext | None = None,
    explicit_folder: str | None = None,
) -> CaptureResult:
    """Classify one message with the default alias table and UTC."""
    return _default_engine.process_message(text, context, explicit_folder)
