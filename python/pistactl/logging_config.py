"""
pistactl Logging Configuration

Provides centralized logging setup for pistactl.
Supports file rotation, environment variable configuration and a --debug switch.
"""

import logging
import os
import sys
import tempfile
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


_LOG_DIR_CACHE: tuple[str | None, Path] | None = None
_SHARED_HANDLERS: dict[str, logging.Handler] = {}
_CONFIGURED_LOGGERS: set[str] = set()
_DEBUG_ENABLED = False

PRIMARY_LOG_FILENAME = "pistactl.log"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> int:
    """
    Get log level from environment variable or default to INFO.

    Environment variable: PISTACTL_LOG_LEVEL
    Valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL

    Returns:
        int: Logging level constant from logging module
    """
    if _DEBUG_ENABLED:
        return logging.DEBUG

    level_name = os.getenv("PISTACTL_LOG_LEVEL", "INFO").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    return level_map.get(level_name, logging.INFO)


def get_log_directory() -> Path:
    """
    Get the log directory path.

    Default: ~/.pistactl/.logs/
    Can be overridden with PISTACTL_LOG_DIR environment variable.

    Returns:
        Path: Log directory path
    """
    global _LOG_DIR_CACHE

    log_dir_str = os.getenv("PISTACTL_LOG_DIR")
    if _LOG_DIR_CACHE is not None and _LOG_DIR_CACHE[0] == log_dir_str:
        return _LOG_DIR_CACHE[1]

    candidates: list[Path] = []
    if log_dir_str:
        candidates.append(Path(log_dir_str).expanduser())
    else:
        candidates.append(Path.home() / ".pistactl" / ".logs")

    # Fallback for restricted environments (e.g., read-only home).
    candidates.append(Path(tempfile.gettempdir()) / "pistactl-logs")

    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
        except OSError:
            continue
        if os.access(candidate, os.W_OK):
            _LOG_DIR_CACHE = (log_dir_str, candidate)
            return candidate

    # Keep callers deterministic; the file handler will fail and fall back to stderr.
    _LOG_DIR_CACHE = (log_dir_str, candidates[0])
    return candidates[0]


def get_primary_log_path() -> Path:
    """Get canonical log file path (~/.pistactl/.logs/pistactl.log by default)."""
    return get_log_directory() / PRIMARY_LOG_FILENAME


def _formatter() -> logging.Formatter:
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _file_handler(max_bytes: int) -> Optional[logging.Handler]:
    handler = _SHARED_HANDLERS.get("file")
    if handler is not None:
        return handler
    try:
        handler = RotatingFileHandler(
            get_primary_log_path(), maxBytes=max_bytes, backupCount=0, encoding="utf-8"
        )
    except OSError as e:
        # Don't let logging setup break the application
        print(f"Warning: Failed to set up file logging: {e}", file=sys.stderr)
        return None
    handler.setLevel(logging.DEBUG)  # Capture all levels to file
    handler.setFormatter(_formatter())
    _SHARED_HANDLERS["file"] = handler
    return handler


def _console_handler() -> logging.Handler:
    handler = _SHARED_HANDLERS.get("console")
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_formatter())
        _SHARED_HANDLERS["console"] = handler
    handler.setLevel(get_log_level())
    return handler


def setup_logger(
    name: str,
    log_file: Optional[str] = PRIMARY_LOG_FILENAME,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    console_output: bool = False,
) -> logging.Logger:
    """
    Set up a logger with file rotation and optional console output.

    Args:
        name: Logger name (e.g., 'pistactl.tmux', 'pistactl.slots')
        log_file: Log filename hint. Only `pistactl.log` is persisted to file.
        max_bytes: Maximum size of the log file before rotation (default: 10MB)
        console_output: Whether to also output to stderr (default: False)

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logger('pistactl.slots')
        >>> logger.info("Slot started")
        >>> logger.debug("Writing wrapper: %s", path)
    """
    logger = logging.getLogger(name)
    _CONFIGURED_LOGGERS.add(name)

    if logger.handlers:
        # Keep logger level in sync with env var, but avoid duplicating handlers.
        logger.setLevel(get_log_level())
        return logger

    logger.setLevel(get_log_level())
    logger.propagate = False  # Don't propagate to root logger

    if log_file and log_file == PRIMARY_LOG_FILENAME:
        handler = _file_handler(max_bytes)
        if handler is not None:
            logger.addHandler(handler)

    if console_output or _DEBUG_ENABLED:
        logger.addHandler(_console_handler())

    return logger


def configure_logging(debug: bool) -> None:
    """Apply the --debug switch to every pistactl logger created so far.

    In debug mode all loggers go to DEBUG and also echo to stderr.
    """
    global _DEBUG_ENABLED

    _DEBUG_ENABLED = debug
    console = _console_handler()
    for name in sorted(_CONFIGURED_LOGGERS):
        logger = logging.getLogger(name)
        logger.setLevel(get_log_level())
        if debug and console not in logger.handlers:
            logger.addHandler(console)
        elif not debug and console in logger.handlers:
            logger.removeHandler(console)
