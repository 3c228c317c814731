"""
Process level configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_RTSP_PORT_VAR = "CAMERA_MANAGER_RTSP_PORT"
ENV_LOG_PATH_VAR = "CAMERA_MANAGER_LOG_PATH"

DEFAULT_RTSP_PORT = 8554
DEFAULT_RTSP_ADDRESS = "0.0.0.0"


def _env_port(default: int) -> int:
    value = os.environ.get(ENV_RTSP_PORT_VAR)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_log_path() -> Optional[Path]:
    value = os.environ.get(ENV_LOG_PATH_VAR)
    if not value:
        return None
    return Path(value).expanduser()


@dataclass
class ManagerConfig:
    """Top level settings shared by the CLI and the stream backends."""

    rtsp_port: int = DEFAULT_RTSP_PORT
    rtsp_address: str = DEFAULT_RTSP_ADDRESS
    log_path: Optional[Path] = None
    verbose: bool = False

    @classmethod
    def from_env(cls, **overrides: object) -> "ManagerConfig":
        config = cls(rtsp_port=_env_port(DEFAULT_RTSP_PORT), log_path=_env_log_path())
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(config, key):
                raise TypeError(f"Unknown configuration key: {key}")
            setattr(config, key, value)
        return config
