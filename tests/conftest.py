"""Shared fakes replacing V4L2 hardware and the GStreamer runtime."""

from __future__ import annotations

import errno
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import pytest

from camera_manager.stream.types import (
    StreamEndpoint,
    StreamInformation,
    VideoAndStreamInformation,
    VideoCaptureConfiguration,
)
from camera_manager.video.device import ControlDescription, DeviceCapabilities
from camera_manager.video.types import (
    ConnectionKind,
    EncodeKind,
    FrameInterval,
    LocalConnectionType,
    VideoEncodeType,
    VideoSourceGst,
    VideoSourceLocal,
)


def einval() -> OSError:
    return OSError(errno.EINVAL, "Invalid argument")


@dataclass
class FakeDevice:
    """In-memory stand-in for :class:`camera_manager.video.device.V4L2Device`."""

    card: str = "Fake Camera"
    bus_info: str = "usb-0000:08:00.3-1"
    driver: str = "uvcvideo"
    capture_format: Optional[str] = "MJPG"
    read_format_error: Optional[OSError] = None
    caps_error: Optional[OSError] = None
    formats: List[str] = field(default_factory=list)
    framesizes: Dict[str, Union[list, OSError]] = field(default_factory=dict)
    # Keyed by (fourcc, width, height); anything missing answers EINVAL.
    frameintervals: Dict[Tuple[str, int, int], list] = field(default_factory=dict)
    descriptions: List[ControlDescription] = field(default_factory=list)
    values: Dict[int, Union[int, str, OSError]] = field(default_factory=dict)
    set_error: Optional[OSError] = None
    written: List[Tuple[int, int]] = field(default_factory=list)

    def query_caps(self) -> DeviceCapabilities:
        if self.caps_error is not None:
            raise self.caps_error
        return DeviceCapabilities(driver=self.driver, card=self.card, bus_info=self.bus_info)

    def read_format(self) -> str:
        if self.read_format_error is not None:
            raise self.read_format_error
        return self.capture_format or ""

    def enum_formats(self) -> List[str]:
        return list(self.formats)

    def enum_framesizes(self, fourcc: str) -> list:
        result = self.framesizes.get(fourcc)
        if result is None:
            raise einval()
        if isinstance(result, OSError):
            raise result
        return list(result)

    def enum_frameintervals(self, fourcc: str, width: int, height: int) -> list:
        result = self.frameintervals.get((fourcc, width, height))
        if result is None:
            raise einval()
        return list(result)

    def query_controls(self) -> List[ControlDescription]:
        return list(self.descriptions)

    def get_control(self, control_id: int) -> Union[int, str]:
        value = self.values.get(control_id)
        if value is None:
            raise einval()
        if isinstance(value, OSError):
            raise value
        return value

    def set_control(self, control_id: int, value: int) -> None:
        if self.set_error is not None:
            raise self.set_error
        self.written.append((control_id, value))
        self.values[control_id] = value


class FakeOpener:
    """Callable matching ``open_device``; unknown paths fail with ENOENT."""

    def __init__(self, devices: Optional[Dict[str, FakeDevice]] = None) -> None:
        self.devices: Dict[str, FakeDevice] = dict(devices or {})
        self.opened: List[str] = []

    @contextmanager
    def __call__(self, path: str) -> Iterator[FakeDevice]:
        device = self.devices.get(path)
        if device is None:
            raise OSError(errno.ENOENT, "No such file or directory", path)
        self.opened.append(path)
        yield device


class FakeRunner:
    """Stands in for ``GstPipelineRunner``; counts every allocation."""

    instances: List["FakeRunner"] = []

    def __init__(self, description: str, name: str = "camera-manager") -> None:
        self.description = description
        self.name = name
        self.last_error: Optional[str] = None
        self.is_running = False
        self.starts = 0
        self.stops = 0
        FakeRunner.instances.append(self)

    def start(self) -> None:
        self.starts += 1
        self.is_running = True

    def stop(self) -> None:
        self.stops += 1
        self.is_running = False


class FakeRTSPServer:
    def __init__(self, port: int = 8554) -> None:
        self.port = port
        self.mounts: Dict[str, str] = {}
        self.added = 0

    def add_pipeline(self, path: str, description: str) -> None:
        if path in self.mounts:
            raise RuntimeError(f"RTSP path {path!r} is already in use")
        self.added += 1
        self.mounts[path] = description

    def remove_pipeline(self, path: str) -> bool:
        return self.mounts.pop(path, None) is not None


@pytest.fixture
def fake_runner():
    FakeRunner.instances = []
    yield FakeRunner
    FakeRunner.instances = []


@pytest.fixture
def rtsp_server() -> FakeRTSPServer:
    return FakeRTSPServer()


@pytest.fixture
def device_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "dev"
    directory.mkdir()
    return directory


def add_nodes(directory: Path, *names: str) -> None:
    for name in names:
        (directory / name).touch()


def local_source(path: str = "/dev/video0", kind: ConnectionKind = ConnectionKind.USB) -> VideoSourceLocal:
    descriptor = "usb-0000:08:00.3-1" if kind is ConnectionKind.USB else "platform:bcm2835-v4l2-0"
    return VideoSourceLocal(name="Fake Camera", device_path=path, typ=LocalConnectionType(kind, descriptor))


def make_info(
    urls: List[str],
    encode: EncodeKind = EncodeKind.H264,
    source=None,
    width: int = 1920,
    height: int = 1080,
    interval: FrameInterval = FrameInterval(1, 30),
) -> VideoAndStreamInformation:
    return VideoAndStreamInformation(
        name="stream",
        video_source=source if source is not None else local_source(),
        stream_information=StreamInformation(
            endpoints=[StreamEndpoint.parse(url) for url in urls],
            configuration=VideoCaptureConfiguration(
                encode=VideoEncodeType.of(encode),
                width=width,
                height=height,
                frame_interval=interval,
            ),
        ),
    )


def gst_source(pattern: str = "smpte") -> VideoSourceGst:
    return VideoSourceGst(name="test", pattern=pattern)
