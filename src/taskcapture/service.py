"""Capture service: split a message, then classify every item.

This is the flow both the chat bot and the mini-app run for a new message:

1. Build the folder alias table (system + configured + per-call custom folders)
2. Media messages are never split; other messages go through the
   SplitOrchestrator, which also resolves the message-level folder prefix
3. Each item is classified by the ClassificationEngine with that folder
   reapplied, so splitting never loses the routing decision
4. Blank items are skipped, unless media is attached (the item content
   then becomes '[<media_type>]')

Each call binds a fresh capture correlation ID for logging.

Usage:
    from taskcapture.config import get_config
    from taskcapture.service import CaptureService

    service = CaptureService(get_config())
    results = await service.capture("work: 1. fix bug\\n2. deploy")
    [r.folder for r in results]   # ["work", "work"]
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from taskcapture.capture.engine import (
    CaptureContext,
    CaptureResult,
    ClassificationEngine,
    MediaType,
)
from taskcapture.capture.folders import FolderDefinition, build_folder_aliases
from taskcapture.capture.prefix import resolve_explicit_folder
from taskcapture.core.logging import get_logger, set_capture_id
from taskcapture.splitter.orchestrator import OrchestratedSplit, SplitOrchestrator

if TYPE_CHECKING:
    from taskcapture.config_schema import AppConfig

logger = get_logger(__name__)


class CaptureService:
    """Composes the split orchestrator and the classification engine.

    Attributes:
        _config: Application configuration
        _engine: Classification engine (timezone and thresholds from config)
        _orchestrator: Split orchestrator (mode and providers from config)
    """

    def __init__(
        self,
        config: AppConfig,
        orchestrator: SplitOrchestrator | None = None,
        engine: ClassificationEngine | None = None,
    ):
        self._config = config
        self._base_aliases = build_folder_aliases(config.folders)
        self._engine = engine or ClassificationEngine(
            aliases=self._base_aliases,
            timezone=config.timezone,
            note_length_threshold=config.capture.note_length_threshold,
            default_folder=config.capture.default_folder,
        )
        self._orchestrator = orchestrator or SplitOrchestrator.from_config(
            config, aliases=self._base_aliases
        )

    async def capture(
        self,
        text: str,
        media_type: MediaType | None = None,
        custom_folders: Iterable[FolderDefinition] = (),
        timezone: str | None = None,
        now: datetime | None = None,
    ) -> list[CaptureResult]:
        """Turn one incoming message into capture results.

        Args:
            text: Message text or media caption (may be empty for media)
            media_type: Attachment type if the message carries media
            custom_folders: Account folders in addition to configured ones
            timezone: User's IANA timezone (defaults to config.timezone)
            now: Reference instant for relative dates

        Returns:
            One CaptureResult per non-blank item, in order
        """
        capture_id = str(uuid.uuid4())
        set_capture_id(capture_id)

        aliases = build_folder_aliases([*self._config.folders, *custom_folders])
        has_media = media_type is not None

        if has_media:
            match = resolve_explicit_folder(text, aliases)
            split = OrchestratedSplit(
                items=[match.stripped_content if match else text.strip()],
                source="parser",
                provider="none",
                explicit_folder=match.folder if match else None,
            )
        else:
            split = await self._orchestrator.split(text, aliases)

        context = CaptureContext(
            has_media=has_media,
            media_type=media_type,
            folder_aliases=aliases,
            timezone=timezone,
            now=now,
        )

        results: list[CaptureResult] = []
        for item in split.items:
            if not item.strip():
                if not has_media:
                    continue
                item = f"[{media_type}]"

            results.append(
                self._engine.process_message(
                    item,
                    context,
                    explicit_folder=split.explicit_folder,
                )
            )

        logger.info(
            "capture_complete",
            item_count=len(results),
            split_source=split.source,
            split_provider=split.provider,
            has_explicit_folder=split.explicit_folder is not None,
            has_media=has_media,
        )
        return results


def create_capture_service(config: AppConfig | None = None) -> CaptureService:
    """Bootstrap a CaptureService for a long-running host (bot, mini-app).

    Loads the config singleton when none is given and configures logging
    from its logging section.
    """
    from taskcapture.config import get_config
    from taskcapture.core.logging import configure_logging

    config = config or get_config()
    configure_logging(log_level=config.logging.level, json_output=config.logging.json_output)
    return CaptureService(config)
