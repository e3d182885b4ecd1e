"""
Logging for profilecrawl.

Console lines go through Rich and are prefixed with the crawl stage and
unit when a record carries them; the log file receives one JSON object
per record so a run can be filtered by keyword or profile afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.markup import escape
from rich.traceback import Traceback

if TYPE_CHECKING:
    from rich.console import Console


ROOT_LOGGER = "profilecrawl"

# Record attributes copied into JSON lines when present
CONTEXT_FIELDS = ("stage", "unit", "run_id", "url", "attempt")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "default",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, crawl context included."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json_dumps(entry)


class RichConsoleHandler(logging.Handler):
    """Print records to a Rich console, tagged ``[stage unit]``."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    @staticmethod
    def tag(record: logging.LogRecord) -> str:
        parts = [getattr(record, key, None) for key in ("stage", "unit")]
        label = " ".join(str(p) for p in parts if p)
        if not label:
            return ""
        return f"[cyan]{escape(f'[{label}]')}[/cyan] "

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = LEVEL_STYLES.get(record.levelno, "default")
            message = escape(self.format(record))
            self.console.print(
                f"{self.tag(record)}[{style}]{message}[/{style}]",
                markup=True,
                highlight=False,
            )
            if record.exc_info and record.exc_info[0] is not None:
                # Rendered from the record; no exception may be in flight here
                self.console.print(Traceback.from_exception(*record.exc_info))
        except Exception:
            self.handleError(record)


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the ``profilecrawl`` logger tree.

    Replaces any handlers from a previous call, so it is safe to run once
    per CLI invocation.

    Args:
        level: Console log level name
        log_file: Optional file receiving every record (DEBUG and up)
        json_format: Write the file as JSON lines instead of plain text
        rich_console: Use Rich for the console instead of a plain stream

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else numeric_level)
    logger.handlers.clear()

    console_handler: logging.Handler
    if rich_console:
        console_handler = RichConsoleHandler(level=numeric_level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT)
        )
        logger.addHandler(file_handler)

    return logger


class ContextualLogger(logging.LoggerAdapter):
    """Adapter stamping ``stage`` and ``unit`` onto every record.

    Extra fields passed at the call site (``url``, ``attempt``) are kept.
    """

    def __init__(self, logger: logging.Logger, stage: str | None = None, unit: str | None = None):
        super().__init__(logger, {})
        self.stage = stage
        self.unit = unit

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        if self.stage:
            extra.setdefault("stage", self.stage)
        if self.unit:
            extra.setdefault("unit", self.unit)
        kwargs["extra"] = extra
        return msg, kwargs


def get_contextual_logger(
    name: str | None = None,
    stage: str | None = None,
    unit: str | None = None,
) -> ContextualLogger:
    """Logger under ``profilecrawl.<name>`` carrying crawl context."""
    logger_name = f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER
    return ContextualLogger(logging.getLogger(logger_name), stage=stage, unit=unit)
