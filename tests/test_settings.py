from __future__ import annotations

import textwrap

import pytest

from camera_manager.settings import SettingsError, load_streams, parse_settings, to_streams
from camera_manager.stream.types import RedirectCaptureConfiguration, VideoCaptureConfiguration
from camera_manager.video.types import (
    ConnectionKind,
    EncodeKind,
    FrameInterval,
    VideoSourceGst,
    VideoSourceLocal,
    VideoSourceRedirect,
)

from conftest import FakeDevice, FakeOpener, add_nodes

SETTINGS = textwrap.dedent(
    """
    streams:
      - name: front
        source: {type: local, device: DEVICE}
        endpoints: ["udp://192.168.2.1:5600"]
        configuration:
          encode: MJPG
          width: 1280
          height: 720
          frame_interval: {numerator: 1, denominator: 30}
      - name: pattern
        source: {type: test, pattern: ball}
        endpoints: rtsp://0.0.0.0:8554/pattern
        configuration: {encode: hevc, width: 640, height: 480}
      - name: external
        source: {type: redirect}
        endpoints: ["rtsp://192.168.2.2:8554/video"]
        configuration: {type: redirect}
    """
)


def test_settings_are_converted(device_dir) -> None:
    add_nodes(device_dir, "video0")
    path = f"{device_dir}/video0"
    opener = FakeOpener({path: FakeDevice(card="HD Webcam")})

    front, pattern, external = to_streams(
        parse_settings(SETTINGS.replace("DEVICE", path)), opener=opener, directory=device_dir
    )

    assert isinstance(front.video_source, VideoSourceLocal)
    assert front.video_source.name == "HD Webcam"
    assert front.video_source.typ.kind is ConnectionKind.USB
    assert front.endpoints[0].host == "192.168.2.1"
    assert front.endpoints[0].port == 5600
    assert front.configuration == VideoCaptureConfiguration(
        encode=front.configuration.encode,
        width=1280,
        height=720,
        frame_interval=FrameInterval(1, 30),
    )
    assert front.configuration.encode.kind is EncodeKind.MJPG

    assert pattern.video_source == VideoSourceGst(name="pattern", pattern="ball")
    assert pattern.configuration.encode.kind is EncodeKind.H265
    assert pattern.configuration.frame_interval == FrameInterval(1, 30)
    assert pattern.endpoints[0].path == "/pattern"

    assert external.video_source == VideoSourceRedirect(name="external", scheme="rtsp")
    assert isinstance(external.configuration, RedirectCaptureConfiguration)


def test_missing_device_is_kept_as_unknown(device_dir) -> None:
    text = SETTINGS.replace("DEVICE", "/dev/video7")

    front, _pattern, _external = to_streams(parse_settings(text), opener=FakeOpener(), directory=device_dir)

    assert front.video_source.device_path == "/dev/video7"
    assert front.video_source.typ.kind is ConnectionKind.UNKNOWN


def test_discovery_is_skipped_without_local_sources(device_dir) -> None:
    add_nodes(device_dir, "video0")
    opener = FakeOpener({f"{device_dir}/video0": FakeDevice()})
    text = "streams:\n  - name: bars\n    source: {type: test}\n    endpoints: ['udp://127.0.0.1:5600']\n" \
        "    configuration: {encode: H264, width: 640, height: 480}\n"

    (bars,) = to_streams(parse_settings(text), opener=opener, directory=device_dir)

    assert bars.video_source.pattern == "smpte"
    assert opener.opened == []


@pytest.mark.parametrize(
    "text",
    [
        "streams: [",
        "- just a list",
        "streams:\n  - name: x\n    source: {type: floppy}\n",
        "streams:\n  - name: x\n    source: {type: test}\n    configuration: {frame_interval: {numerator: 0}}\n",
    ],
)
def test_malformed_settings_are_rejected(text: str) -> None:
    with pytest.raises(SettingsError):
        parse_settings(text)


def test_incomplete_video_configuration_is_rejected(device_dir) -> None:
    text = "streams:\n  - name: x\n    source: {type: test}\n    endpoints: ['udp://127.0.0.1:5600']\n" \
        "    configuration: {encode: H264}\n"

    with pytest.raises(SettingsError, match="width, height"):
        to_streams(parse_settings(text), opener=FakeOpener(), directory=device_dir)


def test_load_streams_from_file(tmp_path, device_dir) -> None:
    settings = tmp_path / "streams.yaml"
    settings.write_text(SETTINGS.replace("DEVICE", "/dev/video0"))

    streams = load_streams(settings, opener=FakeOpener(), directory=device_dir)

    assert [stream.name for stream in streams] == ["front", "pattern", "external"]


def test_load_streams_missing_file(tmp_path) -> None:
    with pytest.raises(SettingsError):
        load_streams(tmp_path / "missing.yaml")
