"""
Logging infrastructure for mapharvest.

Concurrent sessions interleave on one console, so every record emitted
inside a session carries the query (and batch chunk) it belongs to:
- Rich console lines are prefixed with ``[chunk N] [query]``
- JSON-lines log files carry ``query`` and ``chunk`` fields
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.text import Text

if TYPE_CHECKING:
    from rich.console import Console


ROOT_LOGGER = "mapharvest"
CONTEXT_FIELDS = ("query", "chunk")
PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Engine-side loggers that are noisy at INFO during long batches.
NOISY_LOGGERS = ("asyncio", "playwright")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "default",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


# =============================================================================
# JSON Formatter for File Logging
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the harvest context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json_dumps(entry)


# =============================================================================
# Rich Console Handler
# =============================================================================


class RichConsoleHandler(logging.Handler):
    """Console handler that tags lines with the chunk and query they came from."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def render(self, record: logging.LogRecord) -> Text:
        # Messages carry scraped page text, so build a Text instead of markup
        line = Text()
        context = _context(record)
        if "chunk" in context:
            line.append(f"[chunk {context['chunk']}] ", style="magenta")
        if "query" in context:
            line.append(f"[{context['query']}] ", style="cyan")
        line.append(self.format(record), style=LEVEL_STYLES.get(record.levelno, "default"))
        return line

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.console.print(self.render(record))
        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def _file_handler(log_file: Path | str, json_format: bool) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the ``mapharvest`` logger tree for a CLI run.

    Replaces any handlers from an earlier call, so it is safe to call once
    per command.

    Args:
        level: Console log level name
        log_file: Where to also write records (DEBUG and up)
        json_format: JSON lines instead of plain text in the file
        rich_console: Rich console output instead of a plain stream

    Returns:
        The ``mapharvest`` logger
    """
    numeric_level = logging.getLevelName(level.upper())
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else numeric_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if rich_console:
        console_handler: logging.Handler = RichConsoleHandler(level=numeric_level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        logger.addHandler(_file_handler(log_file, json_format))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the ``mapharvest`` tree (``mapharvest.<name>``)."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that tags records with the query being harvested."""

    def __init__(
        self,
        logger: logging.Logger,
        query: str | None = None,
        chunk: int | None = None,
    ):
        super().__init__(logger, {})
        self.query = query
        self.chunk = chunk

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        if self.query:
            extra.setdefault("query", self.query)
        if self.chunk is not None:
            extra.setdefault("chunk", self.chunk)
        kwargs["extra"] = extra
        return msg, kwargs


def get_contextual_logger(
    name: str | None = None,
    query: str | None = None,
    chunk: int | None = None,
) -> ContextualLogger:
    """Get a logger that tags every record with a query and chunk.

    Args:
        name: Logger name under ``mapharvest``
        query: Search text the records belong to
        chunk: 1-based batch chunk number

    Returns:
        ContextualLogger instance
    """
    return ContextualLogger(get_logger(name), query=query, chunk=chunk)
