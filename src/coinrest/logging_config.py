import json
import logging
import sys
import threading
from pathlib import Path
from typing import Any, cast

from loguru import logger
from loguru._defaults import LOGURU_FORMAT

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "api_secret",
        "secret",
        "sign",
        "signature",
        "access-key",
        "access-signature",
        "access-nonce",
        "nonce",
        "key",
        "password",
        "token",
    }
)

# Literal credential values that must never reach a sink.
_registered_secrets: set[str] = set()
_secrets_lock = threading.Lock()


def register_secret(value: str | None) -> None:
    """Registers a credential value to be masked wherever it appears in logs."""
    if not value:
        return
    with _secrets_lock:
        _registered_secrets.add(value)


def redact(text: str) -> str:
    """Replaces every registered secret occurring in ``text``."""
    with _secrets_lock:
        secrets = sorted(_registered_secrets, key=len, reverse=True)
    for secret in secrets:
        if secret in text:
            text = text.replace(secret, REDACTED)
    return text


class InterceptHandler(logging.Handler):
    """A custom logging handler to intercept standard logging messages.

    This handler redirects standard logging messages (e.g. from httpx) to Loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Emits a log record to the Loguru logger.

        Args:
            record: The log record to emit.
        """
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = cast(Any, frame.f_back)
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter and sanitizer for log records.

    Values of sensitive keys in the record's 'extra' data are replaced with
    '***REDACTED***', as is any registered credential value that appears in
    the message or in a string 'extra' value.
    """
    for key, value in record["extra"].items():
        if key.lower() in SENSITIVE_KEYS:
            record["extra"][key] = REDACTED
        elif isinstance(value, str):
            record["extra"][key] = redact(value)

    record["message"] = redact(record["message"])
    return True


def _json_formatter(record: dict[str, Any]) -> str:
    """Custom formatter to structure log records as JSON."""
    log_object = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "source": {
            "name": record["name"],
            "file": f"{record['file'].name}:{record['line']}",
            "function": record["function"],
        },
        "extra": record["extra"],
    }
    # Stored in extra so the format string stays free of JSON braces.
    record["extra"]["serialized"] = json.dumps(log_object, default=str)
    return "{extra[serialized]}\n"


def setup_logging(
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_dir: Path | None = None,
) -> None:
    """Configures the application-wide Loguru logger.

    This function removes any default handlers, sets up a new console sink
    with a readable format, and an optional rotating file sink with
    structured JSON output. It also intercepts standard library logging.
    Every sink passes through the credential redaction filter.

    Args:
        console_level: The minimum log level for console output.
        file_level: The minimum log level for file output.
        log_dir: Directory to store log files. If None, file logging is disabled.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=console_level.upper(),
        format=LOGURU_FORMAT,
        colorize=True,
        filter=_sensitive_data_filter,
    )

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "coinrest_{time:YYYY-MM-DD}.log",
            level=file_level.upper(),
            format=_json_formatter,
            rotation="00:00",  # New file at midnight
            retention="7 days",
            compression="zip",
            filter=_sensitive_data_filter,
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logger.info("Logging configured successfully.")
