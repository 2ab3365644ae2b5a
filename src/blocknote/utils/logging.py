"""Structured logging setup for blocknote."""

import os
from pathlib import Path
from typing import Any, Optional

import structlog


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def resolve_log_level(level: Optional[str] = None) -> str:
    """Explicit level, else BLOCKNOTE_LOG_LEVEL, else INFO; unknown names become INFO."""
    level = (level or os.environ.get("BLOCKNOTE_LOG_LEVEL") or "INFO").upper()
    return level if level in LOG_LEVELS else "INFO"


def configure_logging(log_dir: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """
    Configure structlog to append JSON lines to ``<log_dir>/blocknote.log``.

    Sync engine events are the main traffic:
    - DEBUG: diff contents, debounce scheduling, cache reads/writes
    - INFO: sync outcomes, initial load source, connectivity changes
    - WARNING: local cache failures, remote unreachable, fallbacks
    - ERROR: remote write failures, config errors

    Args:
        log_dir: Directory for the log file (default: ~/.cache/blocknote/logs)
        level: Minimum level; overrides BLOCKNOTE_LOG_LEVEL

    Returns:
        Path of the log file

    Example:
        BLOCKNOTE_LOG_LEVEL=DEBUG blocknote sync
        tail -f ~/.cache/blocknote/logs/blocknote.log | jq .
    """
    log_dir = log_dir or Path.home() / ".cache" / "blocknote" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "blocknote.log"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level)),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )
    return log_file


def bind_command(command: Optional[str], **context: Any) -> None:
    """Tag every following log line with the running CLI command."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, **context)


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("sync_completed", upserted=3, deleted=1)
    """
    return structlog.get_logger(name)
