"""
Centralized logging configuration.

Provides a single setup_logging function that configures the root logger
once with:
- Console output on stderr (stdout stays free for CLI results)
- Optional file output to logs/{service_name}.log
- Fresh log file on each start unless LOG_APPEND=1
- User-friendly mode that only surfaces warnings and errors
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import threading
from pathlib import Path
from typing import Optional, Union

from .config import ConfigurationError, env_str

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)

_TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("aiohttp", "asyncio", "urllib3")


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = env_str("ALTIMETER_LOG_LEVEL", or_value="INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ConfigurationError.invalid_value("ALTIMETER_LOG_LEVEL", level, "Expected DEBUG, INFO, WARNING or ERROR")
    return resolved


def _close_handlers(logger: logging.Logger) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as exc:
            _MODULE_LOGGER.debug("Handler close failed: %s", exc)
    logger.handlers = []


def _build_console_handler(user_friendly: bool, level: int) -> logging.Handler:
    if user_friendly:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(max(level, logging.WARNING) if user_friendly else level)
    return console_handler


def _log_directory() -> Path:
    configured = env_str("ALTIMETER_LOG_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.cwd() / "logs"


def _configure_file_handler(service_name: Optional[str], level: int) -> Optional[logging.Handler]:
    if not service_name:
        return None

    logs_dir = _log_directory()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"{service_name}.log"
    file_mode = "a" if os.getenv("LOG_APPEND") == "1" else "w"

    file_handler = logging.handlers.WatchedFileHandler(log_path, mode=file_mode, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(level)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(
    service_name: Optional[str] = None,
    user_friendly: bool = False,
    level: Union[int, str, None] = None,
) -> None:
    """Configure logging for the application.

    Args:
        service_name: Enables a file handler at logs/<service_name>.log
        user_friendly: Plain messages, warnings and above only, on the console
        level: Root level; defaults to ALTIMETER_LOG_LEVEL or INFO
    """
    resolved_level = _resolve_level(level)

    with _config_lock:
        root_logger = logging.getLogger()
        _close_handlers(root_logger)

        root_logger.addHandler(_build_console_handler(user_friendly, resolved_level))
        file_handler = _configure_file_handler(service_name, resolved_level)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(resolved_level)
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
