"""Logging setup for keyauth.

One stdout handler on the root logger, plus a file handler when
`logging.file` is configured. The HTTP libraries under the Firebase SDK
are kept at WARNING unless the application itself logs above that.
"""

import logging
import sys
from typing import Optional

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SDK_LOGGERS = ("urllib3", "google.auth", "cachecontrol")


def _attach(root_logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None
) -> None:
    """Replaces the root logger's handlers.

    Args:
        log_level: Minimum level for keyauth records (e.g. logging.DEBUG).
        log_format: Format string shared by every handler.
        log_file: Optional path; a file that cannot be opened is reported and skipped.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)
    _attach(root_logger, logging.StreamHandler(sys.stdout), log_level, formatter)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            logging.error(f"Cannot log to {log_file}: {e}")
        else:
            _attach(root_logger, file_handler, log_level, formatter)

    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.info(f"Logging configured: level={logging.getLevelName(log_level)}, file={log_file or '-'}")


def level_from_name(level_name: str) -> int:
    """Translates 'DEBUG', 'info', ... into a logging level, defaulting to INFO."""
    level = logging.getLevelName(str(level_name).upper())
    return level if isinstance(level, int) else DEFAULT_LOG_LEVEL
