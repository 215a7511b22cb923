"""Capture pipeline components.

This package turns a raw message into a structured capture:
- Folder alias table built from system and custom folders
- Explicit folder prefix resolution
- Date, time and recurrence extraction
- Recurrence next-occurrence helpers
- Classification engine applying the fixed capture precedence
"""

from taskcapture.capture.dates import DateParseResult, extract_datetime
from taskcapture.capture.engine import (
    CaptureContext,
    CaptureResult,
    ClassificationEngine,
    process_message,
)
from taskcapture.capture.folders import (
    DEFAULT_FOLDER_ALIASES,
    SYSTEM_FOLDERS,
    FolderAliasTable,
    FolderDefinition,
    build_folder_aliases,
)
from taskcapture.capture.prefix import ExplicitFolderMatch, resolve_explicit_folder
from taskcapture.capture.recurrence import (
    RecurringSchedule,
    build_next_recurring_schedule,
    next_occurrence,
    resolve_base_date,
)

__all__ = [
    # Folders
    "DEFAULT_FOLDER_ALIASES",
    "SYSTEM_FOLDERS",
    "FolderAliasTable",
    "FolderDefinition",
    "build_folder_aliases",
    # Prefix
    "ExplicitFolderMatch",
    "resolve_explicit_folder",
    # Dates
    "DateParseResult",
    "extract_datetime",
    # Recurrence
    "RecurringSchedule",
    "build_next_recurring_schedule",
    "next_occurrence",
    "resolve_base_date",
    # Engine
    "CaptureContext",
    "CaptureResult",
    "ClassificationEngine",
    "process_message",
]
