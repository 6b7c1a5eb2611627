# core/logging_setup.py
"""
Logging setup for pipesplit with custom COORD level.

Usage in modules:
    from pipesplit.core.logging_setup import get_logger
    logger = get_logger(__name__)

    logger.error("Error message")
    logger.warning("Warning message")
    logger.info("Progress message")
    logger.coord("Split point / connector origin detail")
    logger.debug("Debug detail")

Default display levels: ERROR, WARNING, INFO
To include split geometry: set_display_levels(["ERROR", "WARNING", "INFO", "COORD"])
To see everything: set_display_levels(["ERROR", "WARNING", "INFO", "COORD", "DEBUG"])

The log directory defaults to ~/.pipesplit and can be moved with the
PIPESPLIT_LOG_DIR environment variable. Handlers are installed by the Driver
through setup_logging; importing pipesplit as a library leaves the root
logger alone.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import List, Union, Optional

# Custom COORD level between INFO (20) and WARNING (30)
COORD_LEVEL = 25
logging.addLevelName(COORD_LEVEL, "COORD")

DEFAULT_DISPLAY_LEVELS = ["ERROR", "WARNING", "INFO"]
LOG_FILE_NAME = "pipesplit.log"

# Global to track if we've configured the root logger
_root_configured = False


def coord(self, message, *args, **kwargs):
    """Log with COORD level for points, fractions and connector origins"""
    if self.isEnabledFor(COORD_LEVEL):
        self._log(COORD_LEVEL, message, args, **kwargs)


logging.Logger.coord = coord


def _level_number(level: Union[int, str]) -> Optional[int]:
    if not isinstance(level, str):
        return int(level)
    level_upper = level.upper()
    if level_upper == "COORD":
        return COORD_LEVEL
    level_num = logging.getLevelName(level_upper)
    if isinstance(level_num, str):  # Unknown level name
        return None
    return level_num


class LevelFilter(logging.Filter):
    """
    Filter that only allows specific log levels.
    Unlike setLevel(), this can skip intermediate levels.
    Example: Allow ERROR, WARNING, INFO but skip DEBUG and COORD
    """

    def __init__(self, allowed_levels: List[Union[int, str]]):
        super().__init__()
        self.allowed_levels = set()
        for level in allowed_levels:
            level_num = _level_number(level)
            if level_num is not None:
                self.allowed_levels.add(level_num)

    def filter(self, record):
        return record.levelno in self.allowed_levels


def _get_log_directory() -> Path:
    """Get or create the log directory"""
    override = os.environ.get("PIPESPLIT_LOG_DIR")
    log_dir = Path(override) if override else Path.home() / ".pipesplit"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(
        display_levels: Optional[List[str]] = None,
        log_dir: Optional[Path] = None,
        clear_log: bool = True
) -> Path:
    """
    Configure root logger with file and console handlers.

    Args:
        display_levels: Level names to display (e.g., ["ERROR", "WARNING", "INFO"]).
                        If None, uses DEFAULT_DISPLAY_LEVELS
        log_dir: Directory for log file (default: ~/.pipesplit)
        clear_log: If True, clear log file on startup

    Returns:
        Path to log file
    """
    global _root_configured

    if display_levels is None:
        display_levels = DEFAULT_DISPLAY_LEVELS

    if log_dir is None:
        log_dir = _get_log_directory()

    log_path = Path(log_dir) / LOG_FILE_NAME

    # Only configure once (idempotent)
    if _root_configured:
        return log_path

    if clear_log:
        log_path.write_text("", encoding="utf-8")

    root = logging.getLogger()
    root.setLevel(1)  # Pass everything to handlers, let filter decide

    # Remove any existing handlers (in case of reload)
    root.handlers.clear()

    level_filter = LevelFilter(display_levels)

    # File handler - detailed format
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(1)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )
    file_handler.addFilter(level_filter)
    root.addHandler(file_handler)

    # Console handler - simple format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(1)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.addFilter(level_filter)
    root.addHandler(console_handler)

    _root_configured = True

    return log_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.
    Does not touch the root logger; the Driver (or the host application)
    calls setup_logging.

    Usage:
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def set_display_levels(levels: List[str]):
    """
    Change which log levels are displayed at runtime.

    Args:
        levels: Level names (e.g., ["ERROR", "WARNING", "INFO", "COORD", "DEBUG"])

    Example:
        # Show only errors and warnings
        set_display_levels(["ERROR", "WARNING"])

        # Include split points and connector origins
        set_display_levels(["ERROR", "WARNING", "INFO", "COORD"])
    """
    if not _root_configured:
        setup_logging(display_levels=levels)
        return

    root = logging.getLogger()
    new_filter = LevelFilter(levels)

    for handler in root.handlers:
        handler.filters = [f for f in handler.filters if not isinstance(f, LevelFilter)]
        handler.addFilter(new_filter)
