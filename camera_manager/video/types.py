"""
Video source data model.

These types are shared by discovery, capability probing, validation and
pipeline synthesis.  They carry data only; the hardware access lives in
:mod:`camera_manager.video.device`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union


class EncodeKind(str, Enum):
    """Compression or pixel format of the frames leaving a source."""

    H264 = "H264"
    H265 = "H265"
    YUYV = "YUYV"
    MJPG = "MJPG"
    UNKNOWN = "UNKNOWN"


_ENCODE_ALIASES = {
    "H264": EncodeKind.H264,
    "H265": EncodeKind.H265,
    "HEVC": EncodeKind.H265,
    "YUYV": EncodeKind.YUYV,
    "MJPG": EncodeKind.MJPG,
}


@dataclass(frozen=True, order=True)
class VideoEncodeType:
    kind: EncodeKind
    # Original text for unknown encodes, the canonical name otherwise.
    name: str = ""

    @classmethod
    def of(cls, kind: EncodeKind) -> "VideoEncodeType":
        return cls(kind=kind, name=kind.value)

    @classmethod
    def from_str(cls, value: str) -> "VideoEncodeType":
        kind = _ENCODE_ALIASES.get(value.strip().upper())
        if kind is None:
            return cls(kind=EncodeKind.UNKNOWN, name=value)
        return cls.of(kind)

    @property
    def is_unknown(self) -> bool:
        return self.kind is EncodeKind.UNKNOWN

    def __str__(self) -> str:
        if self.is_unknown:
            return f"UNKNOWN({self.name})"
        return self.kind.value


@dataclass(frozen=True, order=True)
class FrameInterval:
    """
    Time between two frames as a fraction of a second.  The frame rate is
    ``denominator / numerator``.
    """

    numerator: int
    denominator: int

    @property
    def frame_rate(self) -> float:
        return self.denominator / self.numerator


@dataclass(frozen=True, order=True)
class Size:
    width: int
    height: int
    # Fastest frame rate first.
    intervals: Tuple[FrameInterval, ...] = ()


@dataclass(frozen=True, order=True)
class Format:
    encode: VideoEncodeType
    sizes: Tuple[Size, ...] = ()


# ---------------------------------------------------------------------- controls


@dataclass
class ControlState:
    is_disabled: bool = False
    is_inactive: bool = False


@dataclass
class ControlBool:
    default: int
    value: int


@dataclass
class ControlSlider:
    default: int
    value: int
    step: int
    max: int
    min: int


@dataclass
class ControlOption:
    value: int
    name: str


@dataclass
class ControlMenu:
    default: int
    value: int
    options: List[ControlOption] = field(default_factory=list)


ControlKind = Union[ControlBool, ControlSlider, ControlMenu]


@dataclass
class Control:
    id: int
    name: str
    configuration: ControlKind
    state: ControlState = field(default_factory=ControlState)
    cpp_type: str = "int64"


# ----------------------------------------------------------------------- sources


class ConnectionKind(str, Enum):
    """Physical connection of a local capture device."""

    USB = "usb"
    LEGACY_PLATFORM_CAPTURE = "legacy_platform_capture"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LocalConnectionType:
    kind: ConnectionKind
    # Bus information reported by the driver, stable across path renumbering.
    descriptor: str


@dataclass
class VideoSourceLocal:
    name: str
    device_path: str
    typ: LocalConnectionType

    def is_valid(self) -> bool:
        return bool(self.device_path)

    def is_shareable(self) -> bool:
        return False


@dataclass
class VideoSourceGst:
    """Synthetic ``videotestsrc`` source bound to a test pattern."""

    name: str
    pattern: str = "smpte"

    def is_valid(self) -> bool:
        return True

    def is_shareable(self) -> bool:
        return True


@dataclass
class VideoSourceRedirect:
    """Stream produced elsewhere and only forwarded/mounted under ``scheme``."""

    name: str
    scheme: str

    def is_valid(self) -> bool:
        return True

    def is_shareable(self) -> bool:
        return True


VideoSourceType = Union[VideoSourceLocal, VideoSourceGst, VideoSourceRedirect]

# Sampled for devices reporting stepwise frame sizes, together with the range maximum.
STANDARD_SIZES: Tuple[Tuple[int, int], ...] = (
    (7680, 4320),
    (3840, 2160),
    (2880, 2160),
    (2592, 1944),
    (2560, 1440),
    (2560, 1080),
    (2048, 1536),
    (1920, 1080),
    (1600, 1200),
    (1440, 1080),
    (1280, 1080),
    (1280, 720),
    (1024, 768),
    (960, 720),
    (800, 600),
    (640, 480),
    (640, 360),
    (320, 240),
)
