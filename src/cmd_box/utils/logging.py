"""Structured logging setup for cmd-box."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Module-level logger
logger = logging.getLogger("cmd_box")


class JSONFormatter(logging.Formatter):
    """JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add structured context if present
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_data.update(context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["module"] = record.module
        log_data["function"] = record.funcName
        log_data["line"] = record.lineno

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with colors."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with optional colors."""
        level = record.levelname
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if self.use_color:
            color = self.COLORS.get(level, "")
            return f"{color}{level:8}{self.RESET} {message}"
        return f"{level:8} {message}"


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
    use_color: bool = True,
) -> logging.Logger:
    """Configure logging for cmd-box.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file path for logging.
        json_format: Use JSON format for logs.
        use_color: Use colors in console output.

    Returns:
        Configured logger instance.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter(use_color=use_color))

    logger.addHandler(console_handler)

    # File handler (always JSON for parsing)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a module.

    Args:
        name: Module name (e.g., 'cmd_box.context').

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any,
) -> None:
    """Log a message with additional structured context.

    The context is attached to the record as ``record.context`` and
    merged into the output by JSONFormatter.

    Args:
        logger: Logger instance.
        level: Log level (e.g., logging.INFO).
        message: Log message.
        **context: Additional key-value pairs to include.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"context": context}, stacklevel=2)
