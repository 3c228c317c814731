"""Exact pipeline descriptions handed to GStreamer."""

from __future__ import annotations

import itertools

import pytest

from camera_manager.stream.pipeline_builder import PipelineConsistencyError, build_pipeline
from camera_manager.stream.types import StreamEndpoint, VideoCaptureConfiguration
from camera_manager.stream.validation import StreamValidationError, validate
from camera_manager.video.types import EncodeKind, FrameInterval, VideoEncodeType

from conftest import gst_source, local_source, make_info

SOURCE = local_source("/dev/video42")

H264_SOURCE = "v4l2src device=/dev/video42 ! video/x-h264,width=1280,height=720,framerate=30/1"
H264_PAYLOAD = " ! h264parse ! queue ! rtph264pay name=pay0 config-interval=10 pt=96"
YUYV_SOURCE = "v4l2src device=/dev/video42 ! video/x-raw,format=YUY2,width=1280,height=720,framerate=30/1"
YUYV_PAYLOAD = (
    " ! videoconvert ! video/x-raw,format=UYVY"
    " ! rtpvrawpay name=pay0 ! application/x-rtp,payload=96,sampling=YCbCr-4:2:2"
)
MJPG_SOURCE = "v4l2src device=/dev/video42 ! image/jpeg,width=1280,height=720,framerate=30/1"
MJPG_PAYLOAD = " ! rtpjpegpay name=pay0 pt=96"

UDP_SINK = " ! multiudpsink clients=192.168.0.1:42"

EXPECTED = {
    EncodeKind.H264: H264_SOURCE + H264_PAYLOAD,
    EncodeKind.YUYV: YUYV_SOURCE + YUYV_PAYLOAD,
    EncodeKind.MJPG: MJPG_SOURCE + MJPG_PAYLOAD,
}


def _local(urls, encode):
    return make_info(urls, encode=encode, source=SOURCE, width=1280, height=720, interval=FrameInterval(1, 30))


@pytest.mark.parametrize("encode", list(EXPECTED))
def test_udp_pipeline(encode: EncodeKind) -> None:
    assert build_pipeline(_local(["udp://192.168.0.1:42"], encode)) == EXPECTED[encode] + UDP_SINK


@pytest.mark.parametrize("encode", list(EXPECTED))
def test_rtsp_pipeline_is_left_open(encode: EncodeKind) -> None:
    assert build_pipeline(_local(["rtsp://0.0.0.0:8554/test"], encode)) == EXPECTED[encode]


def test_udp_sink_lists_every_endpoint() -> None:
    info = _local(["udp://192.168.0.1:42", "udp://192.168.0.2:43"], EncodeKind.MJPG)

    assert build_pipeline(info).endswith(" ! multiudpsink clients=192.168.0.1:42,192.168.0.2:43")


def test_udp_sink_brackets_ipv6_hosts() -> None:
    info = _local(["udp://[::1]:5600", "udp://192.168.0.2:43"], EncodeKind.MJPG)

    assert build_pipeline(info).endswith(" ! multiudpsink clients=[::1]:5600,192.168.0.2:43")


def test_endpoint_text_brackets_ipv6_hosts() -> None:
    endpoint = StreamEndpoint(scheme="udp", host="fe80::1", port=5600)

    assert endpoint.address == "[fe80::1]:5600"
    assert str(endpoint) == "udp://[fe80::1]:5600"


def test_test_source_h264_is_encoded_in_software() -> None:
    info = make_info(
        ["udp://192.168.0.1:5600"],
        encode=EncodeKind.H264,
        source=gst_source("ball"),
        width=640,
        height=480,
        interval=FrameInterval(1, 15),
    )

    assert build_pipeline(info) == (
        "videotestsrc pattern=ball ! video/x-raw,format=UYVY,width=640,height=480,framerate=15/1"
        " ! videoconvert ! x264enc bitrate=5000 ! video/x-h264,profile=baseline"
        " ! h264parse ! queue ! rtph264pay name=pay0 config-interval=10 pt=96"
        " ! multiudpsink clients=192.168.0.1:5600"
    )


def test_test_source_mjpg_is_jpeg_encoded() -> None:
    info = make_info(
        ["rtsp://0.0.0.0:8554/pattern"],
        encode=EncodeKind.MJPG,
        source=gst_source(),
        width=320,
        height=240,
    )

    assert build_pipeline(info) == (
        "videotestsrc pattern=smpte ! video/x-raw,format=UYVY,width=320,height=240,framerate=30/1"
        " ! jpegenc ! rtpjpegpay name=pay0 pt=96"
    )


def test_test_source_yuyv_needs_no_transcode() -> None:
    info = make_info(["udp://192.168.0.1:5600"], encode=EncodeKind.YUYV, source=gst_source())

    assert build_pipeline(info) == (
        "videotestsrc pattern=smpte ! video/x-raw,format=UYVY,width=1920,height=1080,framerate=30/1"
        " ! rtpvrawpay name=pay0 ! application/x-rtp,payload=96,sampling=YCbCr-4:2:2"
        " ! multiudpsink clients=192.168.0.1:5600"
    )


def test_frame_rate_is_the_inverted_interval() -> None:
    info = _local(["udp://192.168.0.1:42"], EncodeKind.MJPG)
    info.stream_information.configuration = VideoCaptureConfiguration(
        encode=VideoEncodeType.of(EncodeKind.MJPG),
        width=1280,
        height=720,
        frame_interval=FrameInterval(1001, 30000),
    )

    assert "framerate=30000/1001" in build_pipeline(info)


def test_unsupported_encode_is_a_consistency_fault() -> None:
    info = _local(["udp265://192.168.0.1:42"], EncodeKind.H265)

    with pytest.raises(PipelineConsistencyError):
        build_pipeline(info)
    assert not issubclass(PipelineConsistencyError, StreamValidationError)


ALL_ENCODES = [VideoEncodeType.of(kind) for kind in EncodeKind if kind is not EncodeKind.UNKNOWN]
ALL_URLS = [
    ["udp://192.168.0.1:5600"],
    ["udp://192.168.0.1:5600", "udp://192.168.0.2:5600"],
    ["udp265://192.168.0.1:5600"],
    ["rtsp://0.0.0.0:8554/cam"],
    ["tcp://192.168.0.1:5600"],
]


@pytest.mark.parametrize(
    "source, encode, urls",
    list(itertools.product([SOURCE, gst_source()], ALL_ENCODES, ALL_URLS)),
)
def test_every_accepted_configuration_builds(source, encode, urls) -> None:
    info = make_info(urls, encode=encode.kind, source=source)
    try:
        validate(info)
    except StreamValidationError:
        return

    description = build_pipeline(info)

    assert " name=pay0" in description
