"""
Logging helpers for the camera manager.

Centralising log configuration keeps the rest of the modules focused on their
domain logic.  Modules only ever call ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s:%(lineno)d [%(threadName)s]: %(message)s"
LOG_FILE_NAME = "camera-manager.log"
ENV_LEVEL_VAR = "CAMERA_MANAGER_LOG_LEVEL"

# Finer than DEBUG, used for noise that is only useful when chasing hardware issues.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def _resolve_level(level: int) -> int:
    override = os.environ.get(ENV_LEVEL_VAR)
    if not override:
        return level
    name = override.strip().upper()
    resolved = logging.getLevelName(name)
    if isinstance(resolved, int):
        return resolved
    try:
        return int(name)
    except ValueError:
        return level


def configure_logging(
    level: int = logging.INFO,
    format: Optional[str] = None,
    log_path: Optional[Path] = None,
) -> None:
    """
    Ensure the root logger is configured exactly once.

    When ``log_path`` is given, a daily rotating file receives everything from
    DEBUG up, independently of the console level.
    """

    root = logging.getLogger()
    if root.handlers:
        # Respect any user provided configuration.
        return

    formatter = logging.Formatter(format or DEFAULT_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_resolve_level(level))
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if log_path is not None:
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(log_path / LOG_FILE_NAME, when="midnight")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root.setLevel(min(handler.level for handler in handlers))
    for handler in handlers:
        root.addHandler(handler)
