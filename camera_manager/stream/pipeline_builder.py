"""
Pipeline description synthesis.

A description is the concatenation of four segments: source (with its caps),
transcode, payload and sink.  The result is handed verbatim to
``Gst.parse_launch`` or to an RTSP media factory, so the exact text matters.
"""

from __future__ import annotations

import logging

from ..video.types import EncodeKind, VideoSourceGst, VideoSourceLocal
from .types import VideoAndStreamInformation, VideoCaptureConfiguration

LOG = logging.getLogger(__name__)

# Test sources only produce raw video.  UYVY is accepted by both the encoders
# and the raw RTP payloader, so it is used for every encode.
TEST_SOURCE_CAPS = "video/x-raw,format=UYVY"

LOCAL_SOURCE_CAPS = {
    EncodeKind.H264: "video/x-h264",
    EncodeKind.YUYV: "video/x-raw,format=YUY2",
    EncodeKind.MJPG: "image/jpeg",
}

DEFAULT_BITRATE_KBPS = 5000

RAW_PAYLOAD_FORMAT = "UYVY"


class PipelineConsistencyError(RuntimeError):
    """
    Raised when synthesis meets a combination validation should have rejected.

    This signals a programming error, never a bad user request.
    """


def _video_configuration(info: VideoAndStreamInformation) -> VideoCaptureConfiguration:
    configuration = info.configuration
    if not isinstance(configuration, VideoCaptureConfiguration):
        raise PipelineConsistencyError("Cannot create a pipeline from a REDIRECT configuration")
    return configuration


def build_capability_string(info: VideoAndStreamInformation) -> str:
    configuration = _video_configuration(info)

    if isinstance(info.video_source, VideoSourceGst):
        caps = TEST_SOURCE_CAPS
    else:
        caps = LOCAL_SOURCE_CAPS.get(configuration.encode.kind)
        if caps is None:
            raise PipelineConsistencyError(f"Unsupported encode: {configuration.encode}")

    interval = configuration.frame_interval
    return (
        f"{caps},width={configuration.width},height={configuration.height},"
        f"framerate={interval.denominator}/{interval.numerator}"
    )


def build_pipeline_source(info: VideoAndStreamInformation) -> str:
    source = info.video_source
    if isinstance(source, VideoSourceGst):
        element = f"videotestsrc pattern={source.pattern}"
    elif isinstance(source, VideoSourceLocal):
        element = f"v4l2src device={source.device_path}"
    else:
        raise PipelineConsistencyError(f"Unsupported video source: {source}")

    return f"{element} ! {build_capability_string(info)}"


def build_pipeline_transcode(info: VideoAndStreamInformation) -> str:
    encode = _video_configuration(info).encode.kind
    source = info.video_source

    if isinstance(source, VideoSourceGst):
        if encode is EncodeKind.H264:
            return (
                " ! videoconvert"
                f" ! x264enc bitrate={DEFAULT_BITRATE_KBPS}"
                " ! video/x-h264,profile=baseline"
            )
        if encode is EncodeKind.MJPG:
            return " ! jpegenc"
        return ""

    # The raw RTP payloader does not take YUY2, convert to the closest format.
    if encode is EncodeKind.YUYV:
        return f" ! videoconvert ! video/x-raw,format={RAW_PAYLOAD_FORMAT}"
    return ""


def build_pipeline_payload(info: VideoAndStreamInformation) -> str:
    encode = _video_configuration(info).encode

    # The payloader is always named pay0, which the RTSP server requires.
    if encode.kind is EncodeKind.H264:
        return " ! h264parse ! queue ! rtph264pay name=pay0 config-interval=10 pt=96"
    if encode.kind is EncodeKind.YUYV:
        # Raw payloads are always UYVY, hence 4:2:2 sampling.
        return " ! rtpvrawpay name=pay0 ! application/x-rtp,payload=96,sampling=YCbCr-4:2:2"
    if encode.kind is EncodeKind.MJPG:
        return " ! rtpjpegpay name=pay0 pt=96"
    raise PipelineConsistencyError(f"Unsupported encode: {encode}")


def build_pipeline_sink(info: VideoAndStreamInformation) -> str:
    endpoints = info.endpoints
    if not endpoints:
        raise PipelineConsistencyError("Cannot create a pipeline without endpoints")

    if endpoints[0].scheme != "udp":
        # Left open for the RTSP media factory.
        return ""

    clients = ",".join(endpoint.address for endpoint in endpoints)
    return f" ! multiudpsink clients={clients}"


def build_pipeline(info: VideoAndStreamInformation) -> str:
    """Return the pipeline description for an already validated stream."""

    description = "".join(
        (
            build_pipeline_source(info),
            build_pipeline_transcode(info),
            build_pipeline_payload(info),
            build_pipeline_sink(info),
        )
    )
    LOG.info("New pipeline built: %r", description)
    return description
