"""
Hardware controls of local cameras, mapped onto the generic control model.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .device import ControlDescription, ControlFlag, ControlType, DeviceOpener, V4L2Device, open_device
from .types import (
    Control,
    ControlBool,
    ControlMenu,
    ControlOption,
    ControlSlider,
    ControlState,
    VideoSourceLocal,
)

LOG = logging.getLogger(__name__)


class ControlError(RuntimeError):
    """Base class for control related errors."""


class ControlNotFound(ControlError):
    """Raised when a control id is not exposed by the device."""


class ControlUnsupported(ControlError):
    """Raised when a control value cannot be represented as an integer."""


def _read_value(device: V4L2Device, control_id: int) -> int:
    value = device.get_control(control_id)
    if isinstance(value, str):
        raise ControlUnsupported("String control type is not supported.")
    return int(value)


def _build_control(description: ControlDescription, value: int) -> Optional[Control]:
    state = ControlState(
        is_disabled=bool(description.flags & ControlFlag.DISABLED),
        is_inactive=bool(description.flags & ControlFlag.INACTIVE),
    )
    default = description.default

    if description.type is ControlType.BOOLEAN:
        return Control(
            id=description.id,
            name=description.name,
            state=state,
            cpp_type="bool",
            configuration=ControlBool(default=default, value=value),
        )

    if description.type in (ControlType.INTEGER, ControlType.INTEGER64):
        return Control(
            id=description.id,
            name=description.name,
            state=state,
            cpp_type="int64",
            configuration=ControlSlider(
                default=default,
                value=value,
                step=description.step,
                max=description.maximum,
                min=description.minimum,
            ),
        )

    if description.type in (ControlType.MENU, ControlType.INTEGER_MENU):
        if description.items is None:
            return None
        options = [ControlOption(value=int(index), name=str(label)) for index, label in description.items]
        return Control(
            id=description.id,
            name=description.name,
            state=state,
            cpp_type="int32",
            configuration=ControlMenu(default=default, value=value, options=options),
        )

    return None


def read_controls(device: V4L2Device, source: VideoSourceLocal) -> List[Control]:
    try:
        descriptions = device.query_controls()
    except OSError as exc:
        LOG.error("Failed to query controls from device %s: %s", source.device_path, exc)
        return []

    controls: List[Control] = []
    for description in descriptions:
        if description.type is ControlType.CTRL_CLASS:
            # Class markers group controls; reading one fails with EACCES.
            continue

        try:
            value = _read_value(device, description.id)
        except (OSError, ControlError) as exc:
            LOG.error(
                "Failed to get control '%s (%s)' from device %s: %s",
                description.name,
                description.id,
                source.device_path,
                exc,
            )
            continue

        control = _build_control(description, value)
        if control is not None:
            controls.append(control)
    return controls


def controls(source: VideoSourceLocal, opener: DeviceOpener = open_device) -> List[Control]:
    try:
        with opener(source.device_path) as device:
            return read_controls(device, source)
    except OSError as exc:
        LOG.error("Failed to open camera %s: %s", source.device_path, exc)
        return []


def control_value(source: VideoSourceLocal, control_id: int, opener: DeviceOpener = open_device) -> int:
    """
    Current value of ``control_id``.  Hardware errors propagate as ``OSError``.
    """

    with opener(source.device_path) as device:
        return _read_value(device, control_id)


def set_control(
    source: VideoSourceLocal,
    control_id: int,
    value: int,
    opener: DeviceOpener = open_device,
) -> None:
    available = controls(source, opener=opener)
    control = next((item for item in available if item.id == control_id), None)
    if control is None:
        ids = [item.id for item in available]
        raise ControlNotFound(f"Control ID '{control_id}' is not valid, options are: {ids}")

    with opener(source.device_path) as device:
        try:
            device.set_control(control_id, value)
        except OSError as exc:
            LOG.warning("Failed to set control %s, error: %s", control, exc)
            raise
