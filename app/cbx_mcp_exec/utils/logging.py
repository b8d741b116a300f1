# utils/logging.py

import logging
import shlex
import sys
from collections.abc import Sequence
from typing import Optional

PACKAGE_LOGGER = "cbx_mcp_exec"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Longest argument vector rendering written to a log line
MAX_LOGGED_COMMAND = 500


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure logging for the exec server.

    CRITICAL: Console output goes to stderr. With the stdio transport,
    stdout carries the JSON-RPC stream and must never see a log line.

    Args:
        level: Level name for this package's loggers
        log_file: Optional file that receives a copy of every record
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # Third-party libraries stay at WARNING unless we are debugging
    root_logger.setLevel(log_level if log_level == logging.DEBUG else logging.WARNING)
    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)

    get_logger(__name__).info("Logging configured with level: %s", level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified name."""
    return logging.getLogger(name)


def format_command_line(command: str, args: Sequence[str]) -> str:
    """Shell-quoted rendering of an argument vector, for log lines only."""
    line = shlex.join([command, *args])
    if len(line) > MAX_LOGGED_COMMAND:
        return line[:MAX_LOGGED_COMMAND] + "..."
    return line
