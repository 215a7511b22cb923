"""structlog setup for the task-capture core.

Every incoming message gets a capture_id bound into structlog's contextvars,
so the split decision, any AI attempts and the per-item classifications of
one message share it. Services emit JSON lines; the CLI renders to the
console on stderr so --json output on stdout stays parseable.

Usage:
    from taskcapture.core.logging import get_logger, set_capture_id

    logger = get_logger(__name__)
    set_capture_id(str(uuid.uuid4()))
    logger.info("capture_classified", folder="work", status="inbox")
"""

import logging
import sys
from typing import IO

import structlog

CAPTURE_ID_KEY = "capture_id"


def set_capture_id(capture_id: str | None) -> None:
    """Bind (or with None, clear) the capture_id for the current context."""
    if capture_id is None:
        structlog.contextvars.unbind_contextvars(CAPTURE_ID_KEY)
    else:
        structlog.contextvars.bind_contextvars(**{CAPTURE_ID_KEY: capture_id})


def get_capture_id() -> str | None:
    return structlog.contextvars.get_contextvars().get(CAPTURE_ID_KEY)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
    stream: IO[str] | None = None,
) -> None:
    """Configure structlog over stdlib logging.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_output: JSON lines when True, coloured console output when False
        stream: Where log lines go (default: stdout)
    """
    level = logging.getLevelName(log_level.upper())
    logging.basicConfig(format="%(message)s", stream=stream or sys.stdout, level=level)
    # basicConfig is a no-op once handlers exist; the level must still follow
    logging.getLogger().setLevel(level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module; pass __name__."""
    return structlog.get_logger(name)
