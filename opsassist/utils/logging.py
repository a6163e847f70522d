"""Logging setup with secret redaction and an optional audit trail."""

import logging
import os
import sys

from pydantic import BaseModel

from opsassist.utils.scrub import scrub_sensitive_data

AUDIT_LOGGER_NAME = "opsassist.audit"


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    audit_log_path: str | None = None


class ScrubFilter(logging.Filter):
    """Redacts secrets from a record before any handler formats it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = scrub_sensitive_data(record.getMessage())
        record.args = None
        return True


def setup_logging(config: LogConfig | None = None) -> None:
    """Configure console logging and, when a path is set, the audit file."""
    if config is None:
        config = LogConfig()

    console = logging.StreamHandler(sys.stdout)
    console.addFilter(ScrubFilter())
    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
        datefmt=config.date_format,
        handlers=[console],
        force=True,
    )

    for noisy in ("httpx", "asyncio", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    audit.setLevel(logging.INFO)
    for handler in list(audit.handlers):
        audit.removeHandler(handler)
        handler.close()
    if config.audit_log_path:
        file_handler = logging.FileHandler(config.audit_log_path, encoding="utf-8")
        file_handler.addFilter(ScrubFilter())
        file_handler.setFormatter(logging.Formatter(config.format, config.date_format))
        audit.addHandler(file_handler)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)
        level: Explicit level; LOG_LEVEL from the environment otherwise

    Returns:
        Logger with its level set
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    return logger


def audit_log(user_id: str, session_id: str, question: str) -> None:
    """Record who asked what, always at info level."""
    logging.getLogger(AUDIT_LOGGER_NAME).info(
        f"ask user={user_id} session={session_id} chars={len(question)} question={question[:200]!r}"
    )
