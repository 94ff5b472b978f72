"""Logging configuration for insightcache.

Log records go to stderr so that command output on stdout stays clean, plus
an optional size-rotated file. Only handlers installed here are replaced on
reconfiguration; handlers owned by a host application are left alone.
"""

import logging
import logging.handlers
import sys
from typing import IO, Optional, Union

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

# Marks handlers owned by setup_logging
_HANDLER_FLAG = "_insightcache_handler"

logger = logging.getLogger(__name__)


def resolve_level(level: Union[int, str, None], default: int = DEFAULT_LOG_LEVEL) -> int:
    """Turns a level number or name ('debug', 'INFO', ...) into a level number."""
    if level is None:
        return default
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if isinstance(value, int):
        return value
    logger.warning(f"Unknown log level '{level}', using {logging.getLevelName(default)}")
    return default


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_FLAG, True)
    return handler


def setup_logging(
    log_level: Union[int, str, None] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> int:
    """Configures the root logger.

    Args:
        log_level: Level number or name; unknown names fall back to WARNING.
        log_format: The format string for log messages.
        log_file: Optional path of a rotating log file.
        stream: Console stream, stderr by default.

    Returns:
        The level that was applied.
    """
    level = resolve_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        if getattr(handler, _HANDLER_FLAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(log_format)

    console_handler = _owned(logging.StreamHandler(stream or sys.stderr))
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = _owned(logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUP_COUNT,
                encoding='utf-8',
            ))
        except OSError as e:
            logger.error(f"Failed to set up file logging to {log_file}: {e}")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.debug(f"Logging configured. Level={logging.getLevelName(level)}")
    return level
