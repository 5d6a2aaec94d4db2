"""Structured logging setup using loguru."""
import sys
import threading
from pathlib import Path
from typing import Set

from loguru import logger as _logger

REDACTED = "********"

_secret_lock = threading.Lock()
_secret_values: Set[str] = set()


def register_secret(value) -> None:
    """Remember a secret value so it is masked in every log record."""
    if value is None:
        return
    text = str(value)
    # very short values would mask unrelated text
    if len(text) < 4:
        return
    with _secret_lock:
        _secret_values.add(text)


def clear_secrets() -> None:
    with _secret_lock:
        _secret_values.clear()


def redact(text: str) -> str:
    with _secret_lock:
        secrets = sorted(_secret_values, key=len, reverse=True)
    for secret in secrets:
        text = text.replace(secret, REDACTED)
    return text


def _redact_record(record) -> None:
    record["message"] = redact(record["message"])


def setup_logging(
    log_file: str = "botcore.log",
    level: str = "INFO",
    enable_console: bool = True,
) -> None:
    """Configure structured logging for the config core.

    Args:
        log_file: Path to log file; parent directories are created
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to log to stderr as well
    """
    _logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    _logger.add(
        str(log_path),
        format=log_format,
        level=level,
        rotation="100 MB",
        retention="7 days",
    )

    if enable_console:
        _logger.add(
            sys.stderr,
            format=log_format,
            level=level,
            colorize=True,
        )


# Every record passes through the redaction patcher, configured or not.
logger = _logger.patch(_redact_record)
