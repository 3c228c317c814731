"""
Video sources: data model, local device discovery, capability and control
probing.
"""

from __future__ import annotations

__all__ = [
    "EncodeKind",
    "VideoEncodeType",
    "FrameInterval",
    "Size",
    "Format",
    "Control",
    "ConnectionKind",
    "LocalConnectionType",
    "VideoSourceLocal",
    "VideoSourceGst",
    "VideoSourceRedirect",
    "VideoSourceType",
    "classify",
    "discover",
    "update_device",
    "formats",
    "controls",
    "control_value",
    "set_control",
    "ControlError",
    "ControlNotFound",
    "ControlUnsupported",
]

from .types import (
    ConnectionKind,
    Control,
    EncodeKind,
    Format,
    FrameInterval,
    LocalConnectionType,
    Size,
    VideoEncodeType,
    VideoSourceGst,
    VideoSourceLocal,
    VideoSourceRedirect,
    VideoSourceType,
)
from .local import classify, discover, update_device
from .capabilities import formats
from .controls import ControlError, ControlNotFound, ControlUnsupported, control_value, controls, set_control
