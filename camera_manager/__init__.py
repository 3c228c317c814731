"""
Camera manager core package.

Discovers local capture devices, probes their capabilities and hardware
controls, validates requested stream configurations and turns them into
GStreamer pipeline descriptions that are executed as UDP or RTSP streams (or
tracked as pass-through redirects).
"""

from __future__ import annotations

__version__ = "0.2.4"

__all__ = [
    "ManagerConfig",
    "__version__",
]

from .config import ManagerConfig
