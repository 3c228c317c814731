"""
Thin V4L2 device wrapper.

Only this module talks to the kernel.  Everything it returns is plain data so
that discovery and probing can run against any object exposing the same
methods (the test-suite uses an in-memory fake).
"""

from __future__ import annotations

import ctypes
import errno
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Callable, ContextManager, Iterator, List, Optional, Tuple, Union

from linuxpy.ioctl import ioctl
from linuxpy.video import raw

from .types import FrameInterval

LOG = logging.getLogger(__name__)

BUF_TYPE_VIDEO_CAPTURE = 1

FRMSIZE_TYPE_DISCRETE = 1
FRMIVAL_TYPE_DISCRETE = 1

CTRL_FLAG_NEXT_CTRL = 0x80000000
CTRL_FLAG_NEXT_COMPOUND = 0x40000000

# Hard upper bound for index based enumerations.
MAX_ENUM_INDEX = 256


class ControlType(IntEnum):
    INTEGER = 1
    BOOLEAN = 2
    MENU = 3
    BUTTON = 4
    INTEGER64 = 5
    CTRL_CLASS = 6
    STRING = 7
    BITMASK = 8
    INTEGER_MENU = 9
    UNKNOWN = 0


class ControlFlag(IntFlag):
    DISABLED = 0x0001
    GRABBED = 0x0002
    READ_ONLY = 0x0004
    UPDATE = 0x0008
    INACTIVE = 0x0010
    SLIDER = 0x0020
    WRITE_ONLY = 0x0040
    VOLATILE = 0x0080


@dataclass(frozen=True)
class DeviceCapabilities:
    driver: str
    card: str
    bus_info: str


@dataclass(frozen=True)
class DiscreteSize:
    width: int
    height: int


@dataclass(frozen=True)
class StepwiseSize:
    min_width: int
    max_width: int
    step_width: int
    min_height: int
    max_height: int
    step_height: int


@dataclass(frozen=True)
class DiscreteInterval:
    interval: FrameInterval


@dataclass(frozen=True)
class StepwiseInterval:
    min: FrameInterval
    max: FrameInterval
    step: FrameInterval


FrameSizeRecord = Union[DiscreteSize, StepwiseSize]
FrameIntervalRecord = Union[DiscreteInterval, StepwiseInterval]
MenuItem = Tuple[int, Union[str, int]]


@dataclass
class ControlDescription:
    id: int
    name: str
    type: ControlType
    minimum: int
    maximum: int
    step: int
    default: int
    flags: ControlFlag = ControlFlag(0)
    items: Optional[List[MenuItem]] = field(default=None)


def fourcc_to_str(pixelformat: int) -> str:
    return int(pixelformat).to_bytes(4, "little").decode("ascii", errors="replace").rstrip("\x00 ")


def str_to_fourcc(fourcc: str) -> int:
    return int.from_bytes(fourcc.ljust(4).encode("ascii")[:4], "little")


def _text(value: bytes) -> str:
    return bytes(value).split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def _fraction(value) -> FrameInterval:
    return FrameInterval(numerator=int(value.numerator), denominator=int(value.denominator))


def _control_type(value: int) -> ControlType:
    try:
        return ControlType(value)
    except ValueError:
        return ControlType.UNKNOWN


class V4L2Device:
    """
    Open handle on a ``/dev/video*`` node.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._fd: Optional[int] = None

    # ------------------------------------------------------------------ lifecycle

    def open(self) -> "V4L2Device":
        if self._fd is None:
            self._fd = os.open(self.path, os.O_RDWR | os.O_NONBLOCK)
        return self

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def fileno(self) -> int:
        if self._fd is None:
            raise OSError(errno.EBADF, f"Device {self.path} is not open")
        return self._fd

    def __enter__(self) -> "V4L2Device":
        return self.open()

    def __exit__(self, *_exc: object) -> None:
        self.close()

    # -------------------------------------------------------------------- queries

    def query_caps(self) -> DeviceCapabilities:
        caps = raw.v4l2_capability()
        ioctl(self.fileno(), raw.IOC.QUERYCAP, caps)
        return DeviceCapabilities(
            driver=_text(caps.driver),
            card=_text(caps.card),
            bus_info=_text(caps.bus_info),
        )

    def read_format(self) -> str:
        fmt = raw.v4l2_format()
        fmt.type = BUF_TYPE_VIDEO_CAPTURE
        ioctl(self.fileno(), raw.IOC.G_FMT, fmt)
        return fourcc_to_str(fmt.fmt.pix.pixelformat)

    def enum_formats(self) -> List[str]:
        desc = raw.v4l2_fmtdesc()
        desc.type = BUF_TYPE_VIDEO_CAPTURE
        return [fourcc_to_str(item.pixelformat) for item in self._enumerate(raw.IOC.ENUM_FMT, desc)]

    def enum_framesizes(self, fourcc: str) -> List[FrameSizeRecord]:
        value = raw.v4l2_frmsizeenum()
        value.pixel_format = str_to_fourcc(fourcc)
        sizes: List[FrameSizeRecord] = []
        for item in self._enumerate(raw.IOC.ENUM_FRAMESIZES, value, raise_on_empty=True):
            if item.type == FRMSIZE_TYPE_DISCRETE:
                sizes.append(DiscreteSize(width=int(item.discrete.width), height=int(item.discrete.height)))
                continue
            stepwise = item.stepwise
            sizes.append(
                StepwiseSize(
                    min_width=int(stepwise.min_width),
                    max_width=int(stepwise.max_width),
                    step_width=int(stepwise.step_width),
                    min_height=int(stepwise.min_height),
                    max_height=int(stepwise.max_height),
                    step_height=int(stepwise.step_height),
                )
            )
            # Stepwise and continuous ranges are reported once, at index 0.
            break
        return sizes

    def enum_frameintervals(self, fourcc: str, width: int, height: int) -> List[FrameIntervalRecord]:
        value = raw.v4l2_frmivalenum()
        value.pixel_format = str_to_fourcc(fourcc)
        value.width = width
        value.height = height
        intervals: List[FrameIntervalRecord] = []
        for item in self._enumerate(raw.IOC.ENUM_FRAMEINTERVALS, value, raise_on_empty=True):
            if item.type == FRMIVAL_TYPE_DISCRETE:
                intervals.append(DiscreteInterval(interval=_fraction(item.discrete)))
                continue
            stepwise = item.stepwise
            intervals.append(
                StepwiseInterval(
                    min=_fraction(stepwise.min),
                    max=_fraction(stepwise.max),
                    step=_fraction(stepwise.step),
                )
            )
            break
        return intervals

    def query_controls(self) -> List[ControlDescription]:
        controls: List[ControlDescription] = []
        query = raw.v4l2_query_ext_ctrl()
        query.id = CTRL_FLAG_NEXT_CTRL | CTRL_FLAG_NEXT_COMPOUND
        while True:
            try:
                ioctl(self.fileno(), raw.IOC.QUERY_EXT_CTRL, query)
            except OSError as error:
                if error.errno in (errno.EINVAL, errno.ENOTTY):
                    break
                raise
            typ = _control_type(query.type)
            description = ControlDescription(
                id=int(query.id),
                name=_text(query.name),
                type=typ,
                minimum=int(query.minimum),
                maximum=int(query.maximum),
                step=int(query.step),
                default=int(query.default_value),
                flags=ControlFlag(int(query.flags) & 0xFF),
            )
            if typ in (ControlType.MENU, ControlType.INTEGER_MENU):
                description.items = self._menu_items(description)
            controls.append(description)
            query.id = int(query.id) | CTRL_FLAG_NEXT_CTRL | CTRL_FLAG_NEXT_COMPOUND
        return controls

    def get_control(self, control_id: int) -> Union[int, str]:
        query = raw.v4l2_query_ext_ctrl()
        query.id = control_id
        ioctl(self.fileno(), raw.IOC.QUERY_EXT_CTRL, query)
        typ = _control_type(query.type)

        if typ is ControlType.STRING:
            size = max(1, int(query.elem_size))
            buffer = ctypes.create_string_buffer(size)
            control = raw.v4l2_ext_control()
            control.id = control_id
            control.size = size
            control.string = ctypes.cast(buffer, ctypes.c_char_p)
            self._ext_controls(raw.IOC.G_EXT_CTRLS, control)
            return _text(buffer.raw)

        if typ is ControlType.INTEGER64:
            control = raw.v4l2_ext_control()
            control.id = control_id
            self._ext_controls(raw.IOC.G_EXT_CTRLS, control)
            return int(control.value64)

        control = raw.v4l2_control()
        control.id = control_id
        ioctl(self.fileno(), raw.IOC.G_CTRL, control)
        return int(control.value)

    def set_control(self, control_id: int, value: int) -> None:
        control = raw.v4l2_control()
        control.id = control_id
        control.value = int(value)
        ioctl(self.fileno(), raw.IOC.S_CTRL, control)

    # -------------------------------------------------------------------- helpers

    def _enumerate(self, request: int, struct, *, raise_on_empty: bool = False) -> Iterator:
        """
        Walk an index based V4L2 enumeration until the driver answers EINVAL.

        With ``raise_on_empty`` an error on the very first index is propagated,
        so that callers can tell "nothing supported" from "query failed".
        """

        for index in range(MAX_ENUM_INDEX):
            struct.index = index
            try:
                ioctl(self.fileno(), request, struct)
            except OSError as error:
                if index == 0 and raise_on_empty:
                    raise
                if error.errno in (errno.EINVAL, errno.ENOTTY):
                    return
                raise
            yield struct

    def _menu_items(self, description: ControlDescription) -> Optional[List[MenuItem]]:
        items: List[MenuItem] = []
        menu = raw.v4l2_querymenu()
        menu.id = description.id
        for index in range(max(0, description.minimum), description.maximum + 1):
            menu.index = index
            try:
                ioctl(self.fileno(), raw.IOC.QUERYMENU, menu)
            except OSError as error:
                # Menus may have holes.
                if error.errno == errno.EINVAL:
                    continue
                raise
            if description.type is ControlType.INTEGER_MENU:
                items.append((index, int(menu.value)))
            else:
                items.append((index, _text(menu.name)))
        return items or None

    def _ext_controls(self, request: int, control) -> None:
        controls = raw.v4l2_ext_controls()
        controls.count = 1
        controls.controls = ctypes.pointer(control)
        ioctl(self.fileno(), request, controls)


DeviceOpener = Callable[[str], ContextManager[V4L2Device]]


@contextmanager
def open_device(path: str) -> Iterator[V4L2Device]:
    """Open ``path`` for the duration of the block."""

    device = V4L2Device(path)
    with device:
        yield device
