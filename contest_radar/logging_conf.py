"""Logging setup: structlog events rendered as JSON by stdlib handlers.

Layout under ``<home>/logs``::

    radar.log            every event at INFO and above
    error.log            ERROR and above
    sources/<name>.log   one file per source adapter
"""

from __future__ import annotations

import logging
import logging.config
from collections import deque
from dataclasses import dataclass
from pathlib import Path

import structlog
from pythonjsonlogger.jsonlogger import JsonFormatter

from .config import ConfigLocator

APP_LOGGER = "contest_radar"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_LOGGING_INITIALISED = False


@dataclass(frozen=True)
class LogPaths:
    root: Path

    @property
    def main(self) -> Path:
        return self.root / "radar.log"

    @property
    def errors(self) -> Path:
        return self.root / "error.log"

    @property
    def sources(self) -> Path:
        return self.root / "sources"

    def source(self, name: str) -> Path:
        return self.sources / f"{name}.log"

    def ensure(self) -> "LogPaths":
        self.sources.mkdir(parents=True, exist_ok=True)
        self.main.touch(exist_ok=True)
        self.errors.touch(exist_ok=True)
        return self


def log_paths() -> LogPaths:
    """Log locations for the current home (``CONTEST_RADAR_HOME`` aware)."""

    return LogPaths(ConfigLocator().logs_dir)


def _dict_config(paths: LogPaths, level: str) -> dict:
    def file_handler(path: Path, handler_level: str) -> dict:
        return {
            "class": "logging.FileHandler",
            "level": handler_level,
            "filename": str(path),
            "encoding": "utf-8",
            "formatter": "json",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JsonFormatter, "fmt": JSON_FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
            "radar_file": file_handler(paths.main, "INFO"),
            "error_file": file_handler(paths.errors, "ERROR"),
        },
        "loggers": {
            APP_LOGGER: {
                "handlers": ["console", "radar_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def _raise_to_debug() -> None:
    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(logging.DEBUG)
    for handler in app_logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(logging.DEBUG)


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure logging once per process and return the application logger.

    Later calls are no-ops except that ``verbose=True`` still lowers the
    console threshold to DEBUG.
    """

    global _LOGGING_INITIALISED
    paths = log_paths().ensure()

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_dict_config(paths, "DEBUG" if verbose else "INFO"))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    elif verbose:
        _raise_to_debug()
    return structlog.get_logger(APP_LOGGER)


def source_logger(source_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound with ``source=<name>`` that also writes ``sources/<name>.log``."""

    configure_logging(verbose)
    path = log_paths().source(source_name)
    py_logger = logging.getLogger(f"{APP_LOGGER}.source.{source_name}")
    attached = any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == str(path)
        for handler in py_logger.handlers
    )
    if not attached:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(JsonFormatter(JSON_FORMAT))
        handler.setLevel(logging.INFO)
        py_logger.addHandler(handler)
    return structlog.get_logger(py_logger.name).bind(source=source_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if line_count <= 0 or not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return list(deque(stream, maxlen=line_count))


def available_source_logs() -> list[Path]:
    sources = log_paths().sources
    if not sources.exists():
        return []
    return sorted(sources.glob("*.log"))


__all__ = [
    "LogPaths",
    "available_source_logs",
    "configure_logging",
    "log_paths",
    "source_logger",
    "tail_log",
]
