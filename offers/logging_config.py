"""Logging configuration for the offers pipeline.

Console output for humans plus a daily JSONL file of structured events
(fetches, dropped tiles, store failures, LLM calls) for later inspection.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from offers.config import LOG_DIR

__all__ = [
    "LOG_DIR",
    "setup_logging",
    "get_logger",
    "log_offers_event",
]

ROOT_LOGGER = "offers"


class JSONLFileHandler(logging.Handler):
    """Writes one JSON object per record to ``<prefix>_<YYYYMMDD>.jsonl``."""

    def __init__(self, log_dir: Path, prefix: str = "offers"):
        super().__init__()
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

    def _log_file(self) -> Path:
        return self.log_dir / f"{self.prefix}_{datetime.now().strftime('%Y%m%d')}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry: Dict[str, Any] = {
                "timestamp": datetime.now().isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if hasattr(record, "event_type"):
                entry["event_type"] = record.event_type
            if hasattr(record, "extra_data"):
                entry.update(record.extra_data)

            with open(self._log_file(), "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except Exception:
            self.handleError(record)


class ColoredConsoleHandler(logging.StreamHandler):
    """Console handler that colours the level name on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if hasattr(self.stream, "isatty") and self.stream.isatty():
            color = self.COLORS.get(record.levelname, "")
            if color:
                message = message.replace(
                    f"[{record.levelname}]", f"[{color}{record.levelname}{self.RESET}]", 1
                )
        return message


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``offers`` logger.

    Args:
        level: Console logging level (default: INFO)
        log_to_file: Whether to write the JSONL event file
        log_to_console: Whether to log to stderr
        log_dir: Custom log directory (default: LOG_DIR, env OFFERS_LOG_DIR)

    Returns:
        The configured ``offers`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_to_file else level)
    logger.handlers.clear()

    if log_to_console:
        console_handler = ColoredConsoleHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S",
        ))
        logger.addHandler(console_handler)

    if log_to_file:
        file_handler = JSONLFileHandler(log_dir or LOG_DIR)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return ``offers`` or a child logger ``offers.<name>``."""
    if name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_offers_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
) -> None:
    """Log a structured event.

    ``data["message"]`` (if present) becomes the log message; the remaining
    keys are written as extra fields of the JSONL entry.
    """
    logger = get_logger(logger_name)
    if not logger.isEnabledFor(level):
        return

    record = logger.makeRecord(
        logger.name,
        level,
        "(offers)",
        0,
        data.get("message", event_type),
        (),
        None,
    )
    record.event_type = event_type
    record.extra_data = {k: v for k, v in data.items() if k != "message"}
    logger.handle(record)
