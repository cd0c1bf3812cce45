# src/showback/shared/logging_conf.py
"""
Logging Configuration - Root Logger Setup for Rating Runs

Every module logs through `logging.getLogger(__name__)`; this module
only decides where records go. A rating run writes to stdout, to a
rotating showback.log, or to both.

Files that USE this module:
- showback.app (setup_logging before a rating run)
- tests.test_settings (unit tests)

Files that this module USES:
- None (pure configuration module)
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "showback.log"

PathLike = Union[str, Path]


def parse_level(level: Union[int, str]) -> int:
    """
    Turn a level name such as "debug" into its numeric value.

    Raises:
        ValueError: If the name is not a standard logging level
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def log_file_path(log_file: Optional[PathLike] = None,
                  log_dir: Optional[PathLike] = None) -> Optional[Path]:
    """Where file logging goes; log_dir wins over log_file. None disables it."""
    if log_dir:
        return Path(log_dir) / LOG_FILE_NAME
    if log_file:
        return Path(log_file)
    return None


def _rotating_handler(path: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[PathLike] = None,
    log_dir: Optional[PathLike] = None,
    log_stdout: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> Optional[Path]:
    """
    Configure the root logger, replacing handlers from earlier calls.

    Stdout is still used when neither stdout nor a file is requested,
    so records are never silently dropped.

    Args:
        level: Level or level name (SHOWBACK_LOG_LEVEL)
        log_file: Explicit log file path (SHOWBACK_LOG_FILE)
        log_dir: Directory receiving showback.log (SHOWBACK_LOG_DIR)
        log_stdout: Whether to also log to stdout (SHOWBACK_LOG_STDOUT)
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept

    Returns:
        The log file path, or None when logging to stdout only
    """
    numeric_level = parse_level(level)
    path = log_file_path(log_file, log_dir)

    handlers: List[logging.Handler] = []
    if path is not None:
        handlers.append(_rotating_handler(path, max_bytes, backup_count))
    if log_stdout or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    logging.getLogger(__name__).info(
        "Logging configured: %s, level=%s",
        f"file={path}" if path else "stdout",
        logging.getLevelName(numeric_level),
    )
    return path
