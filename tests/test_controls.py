from __future__ import annotations

import errno

import pytest

from camera_manager.video.controls import ControlNotFound, ControlUnsupported, control_value, controls, set_control
from camera_manager.video.device import ControlDescription, ControlFlag, ControlType
from camera_manager.video.types import ControlBool, ControlMenu, ControlOption, ControlSlider

from conftest import FakeDevice, FakeOpener, local_source

CLASS_ID = 0x00980001
BRIGHTNESS = 0x00980900
AUTO_WB = 0x0098090C
POWER_LINE = 0x00980918
EXPOSURE_MENU = 0x009A0901
GAIN = 0x00980913
NAME = 0x00A00001


def _device() -> FakeDevice:
    return FakeDevice(
        descriptions=[
            ControlDescription(CLASS_ID, "User Controls", ControlType.CTRL_CLASS, 0, 0, 0, 0),
            ControlDescription(AUTO_WB, "White Balance, Automatic", ControlType.BOOLEAN, 0, 1, 1, 1),
            ControlDescription(
                BRIGHTNESS, "Brightness", ControlType.INTEGER, -64, 64, 1, 0, flags=ControlFlag.INACTIVE
            ),
            ControlDescription(
                POWER_LINE,
                "Power Line Frequency",
                ControlType.MENU,
                0,
                2,
                1,
                1,
                items=[(0, "Disabled"), (1, "50 Hz"), (2, "60 Hz")],
            ),
            # Menu without options is dropped.
            ControlDescription(EXPOSURE_MENU, "Auto Exposure", ControlType.MENU, 0, 3, 1, 3),
            ControlDescription(GAIN, "Gain", ControlType.INTEGER, 0, 100, 1, 0),
            ControlDescription(NAME, "Name", ControlType.STRING, 0, 32, 1, 0),
        ],
        values={
            AUTO_WB: 1,
            BRIGHTNESS: 10,
            POWER_LINE: 2,
            EXPOSURE_MENU: 3,
            GAIN: OSError(errno.EIO, "I/O error"),
            NAME: "camera",
        },
    )


def _opener(device: FakeDevice) -> FakeOpener:
    return FakeOpener({"/dev/video0": device})


def test_controls_are_mapped() -> None:
    result = controls(local_source(), opener=_opener(_device()))

    assert [control.id for control in result] == [AUTO_WB, BRIGHTNESS, POWER_LINE]

    auto_wb, brightness, power_line = result
    assert auto_wb.configuration == ControlBool(default=1, value=1)
    assert auto_wb.cpp_type == "bool"

    assert brightness.configuration == ControlSlider(default=0, value=10, step=1, max=64, min=-64)
    assert brightness.state.is_inactive
    assert not brightness.state.is_disabled

    assert power_line.configuration == ControlMenu(
        default=1,
        value=2,
        options=[ControlOption(0, "Disabled"), ControlOption(1, "50 Hz"), ControlOption(2, "60 Hz")],
    )


def test_64_bit_and_integer_menu_controls_are_mapped() -> None:
    pixel_rate, link_frequency = 0x009F0902, 0x009F0901
    device = FakeDevice(
        descriptions=[
            ControlDescription(pixel_rate, "Pixel Rate", ControlType.INTEGER64, 0, 2**40, 1, 2**33),
            ControlDescription(
                link_frequency,
                "Link Frequency",
                ControlType.INTEGER_MENU,
                0,
                1,
                1,
                0,
                items=[(0, 456000000), (1, 912000000)],
            ),
        ],
        values={pixel_rate: 2**34, link_frequency: 1},
    )

    rate, frequency = controls(local_source(), opener=_opener(device))

    assert rate.cpp_type == "int64"
    assert rate.configuration == ControlSlider(default=2**33, value=2**34, step=1, max=2**40, min=0)

    assert frequency.cpp_type == "int32"
    assert frequency.configuration == ControlMenu(
        default=0,
        value=1,
        options=[ControlOption(0, "456000000"), ControlOption(1, "912000000")],
    )


def test_unreadable_controls_are_skipped_and_logged(caplog) -> None:
    controls(local_source(), opener=_opener(_device()))

    assert any("Gain" in record.getMessage() for record in caplog.records)


def test_control_value_of_string_control_is_unsupported() -> None:
    with pytest.raises(ControlUnsupported):
        control_value(local_source(), NAME, opener=_opener(_device()))


def test_control_value_returns_integer() -> None:
    assert control_value(local_source(), BRIGHTNESS, opener=_opener(_device())) == 10


def test_set_unknown_control_lists_valid_ids() -> None:
    device = _device()

    with pytest.raises(ControlNotFound) as excinfo:
        set_control(local_source(), 1234, 5, opener=_opener(device))

    assert str(BRIGHTNESS) in str(excinfo.value)
    assert device.written == []


def test_set_control_writes_to_hardware() -> None:
    device = _device()

    set_control(local_source(), BRIGHTNESS, -3, opener=_opener(device))

    assert device.written == [(BRIGHTNESS, -3)]


def test_set_control_hardware_error_is_surfaced() -> None:
    device = _device()
    error = OSError(errno.ERANGE, "Numerical result out of range")
    device.set_error = error

    with pytest.raises(OSError) as excinfo:
        set_control(local_source(), BRIGHTNESS, 500, opener=_opener(device))

    assert excinfo.value is error
