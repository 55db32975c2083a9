"""Structured JSON logging for the Water Lab Analysis service.

Every record is written as one JSON object carrying the service name and
the correlation ID of the request that produced it. Values passed through
``extra`` end up under the ``context`` key.
"""

import json
import logging
import logging.handlers
import os
import sys
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional


DEFAULT_SERVICE_NAME = "water-lab-analysis"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024

NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "aiosqlite",
    "asyncpg",
    "uvicorn.access",
    "httpx",
)

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "correlation_id"
}


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return uuid.uuid4().hex


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current request context."""
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIDFilter(logging.Filter):
    """Stamp records with the correlation ID of the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.utcfromtimestamp(record.created).isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = {
            key: value for key, value in vars(record).items()
            if key not in _STANDARD_ATTRIBUTES
        }
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            entry["error"] = {
                "type": record.exc_info[0].__name__,
                "detail": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str, ensure_ascii=False)


@dataclass
class LogSettings:
    """Where and how much to log."""
    level: str = "INFO"
    service_name: str = DEFAULT_SERVICE_NAME
    log_dir: Optional[Path] = None
    max_bytes: int = DEFAULT_MAX_BYTES
    backup_count: int = 5
    console: bool = True
    files: bool = True

    @classmethod
    def from_env(cls) -> "LogSettings":
        """Read settings from ``LOG_*`` and ``SERVICE_NAME`` variables."""
        log_dir = os.getenv("LOG_DIR")
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            service_name=os.getenv("SERVICE_NAME", DEFAULT_SERVICE_NAME),
            log_dir=Path(log_dir) if log_dir else None,
            max_bytes=int(os.getenv("LOG_MAX_FILE_SIZE", str(DEFAULT_MAX_BYTES))),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            console=_env_flag("LOG_ENABLE_CONSOLE", True),
            files=_env_flag("LOG_ENABLE_FILE", True)
        )

    def resolved_log_dir(self) -> Path:
        # Defaults to logs/ at the project root
        return self.log_dir or Path(__file__).resolve().parents[3] / "logs"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _build_handlers(settings: LogSettings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if settings.console:
        handlers.append(logging.StreamHandler(sys.stdout))

    if settings.files:
        log_dir = settings.resolved_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        for suffix, level in (("", None), ("-errors", logging.ERROR)):
            handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / f"{settings.service_name}{suffix}.log",
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
                encoding="utf-8"
            )
            if level is not None:
                handler.setLevel(level)
            handlers.append(handler)
    return handlers


def configure_logging(settings: LogSettings) -> None:
    """Replace the root logger's handlers with JSON handlers built from ``settings``."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(settings.level)

    formatter = JSONFormatter(settings.service_name)
    correlation_filter = CorrelationIDFilter()
    for handler in _build_handlers(settings):
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_env() -> LogSettings:
    """Configure logging from the environment and return the settings used."""
    settings = LogSettings.from_env()
    configure_logging(settings)
    return settings


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_extra(logger: logging.Logger, level: int, message: str, **extra) -> None:
    """Log a message with structured context fields."""
    logger.log(level, message, extra=extra)


def log_database_operation(logger: logging.Logger, operation: str, table: str, **extra) -> None:
    log_with_extra(logger, logging.DEBUG, f"{operation} {table}", db_operation=operation, db_table=table, **extra)


def log_business_rule_violation(logger: logging.Logger, rule: str, details: str, **extra) -> None:
    """Log a rejected request that broke a business rule."""
    log_with_extra(
        logger,
        logging.WARNING,
        f"Rule '{rule}' violated: {details}",
        business_rule=rule,
        **extra
    )


def log_side_effect_failure(logger: logging.Logger, effect: str, error: Exception, **extra) -> None:
    """Log a failed side effect that does not fail the operation itself."""
    log_with_extra(
        logger,
        logging.WARNING,
        f"{effect} failed: {error}",
        side_effect=effect,
        error_type=type(error).__name__,
        **extra
    )
