from __future__ import annotations

import logging
import warnings
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Optional

import structlog

if TYPE_CHECKING:
    from vodiff.settings import LoggingSettings

# One past CRITICAL silences a logger entirely
DISABLED_LEVEL = logging.CRITICAL + 1


@dataclass
class LogRecordEntry:
    logger_name: str
    level: int
    level_name: str
    message: str
    created: float

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "LogRecordEntry":
        return cls(
            logger_name=record.name,
            level=record.levelno,
            level_name=record.levelname,
            message=record.getMessage(),
            created=record.created,
        )


class LogManager(logging.Handler):
    """Keeps the most recent log records in memory, oldest dropped first."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        super().__init__()
        self._records: Deque[LogRecordEntry] = deque(maxlen=max_entries)

    def emit(self, record: logging.LogRecord) -> None:
        self.add_record(record)

    def add_record(self, record: logging.LogRecord) -> None:
        self._records.append(LogRecordEntry.from_record(record))

    def get_records(self, min_level: int = logging.NOTSET) -> list[LogRecordEntry]:
        return [r for r in self._records if r.level >= min_level]

    def clear(self) -> None:
        self._records.clear()


_log_manager: Optional[LogManager] = None


def _warning_to_log(
    message: warnings.WarningMessage | str,
    category: type[Warning],
    filename: str,
    lineno: int,
    file: object | None = None,
    line: str | None = None,
) -> None:
    text = warnings.formatwarning(message, category, filename, lineno, line)
    logging.getLogger("py.warnings").warning(text.strip())


def init_log_manager(max_entries: Optional[int] = None) -> LogManager:
    """
    Attach the in-memory capture to the root logger, once per process.
    Python warnings are routed through logging so they are captured too.
    """
    global _log_manager
    if _log_manager is None:
        _log_manager = LogManager(max_entries=max_entries)

    root_logger = logging.getLogger()
    if _log_manager not in root_logger.handlers:
        root_logger.addHandler(_log_manager)

    warnings.showwarning = _warning_to_log
    return _log_manager


def apply_logging_settings(settings: "LoggingSettings") -> None:
    from vodiff.settings import LogLevel

    levels = {
        LogLevel.debug: logging.DEBUG,
        LogLevel.info: logging.INFO,
        LogLevel.warning: logging.WARNING,
        LogLevel.error: logging.ERROR,
        LogLevel.critical: logging.CRITICAL,
        LogLevel.disabled: DISABLED_LEVEL,
    }
    default_level = levels.get(settings.default_level, logging.INFO)

    for name in ("", "vodiff"):
        logging.getLogger(name).setLevel(default_level)
    for name, level in settings.enabled_loggers.items():
        logging.getLogger(name).setLevel(levels.get(level, default_level))


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
)

logger: structlog.BoundLogger = structlog.get_logger("vodiff")
