"""
Stream configuration checks.

Every check is pure and raises :class:`StreamValidationError` with a readable
cause on the first problem found.  Anything accepted by :func:`validate` can
be turned into a pipeline description.
"""

from __future__ import annotations

from typing import Sequence

from ..video.types import EncodeKind, VideoEncodeType, VideoSourceRedirect
from .types import RedirectCaptureConfiguration, StreamEndpoint, VideoAndStreamInformation, VideoCaptureConfiguration

SUPPORTED_ENCODES = frozenset({EncodeKind.H264, EncodeKind.YUYV, EncodeKind.MJPG})
REDIRECT_SCHEMES = ("udp", "udp265", "rtsp", "mpegts", "tcp")
CAPTURE_SCHEMES = ("rtsp", "udp", "udp265")


class StreamValidationError(ValueError):
    """Raised when a stream configuration is rejected before any resource is claimed."""


def _describe(endpoints: Sequence[StreamEndpoint]) -> str:
    return ", ".join(str(endpoint) for endpoint in endpoints)


def check_endpoints(info: VideoAndStreamInformation) -> None:
    endpoints = info.endpoints
    if not endpoints:
        raise StreamValidationError("Endpoints are empty")

    # Mixed schemes are not allowed.
    if any(first.scheme != second.scheme for first, second in zip(endpoints, endpoints[1:])):
        raise StreamValidationError(f"Endpoints scheme are not the same: {_describe(endpoints)}")


def check_encode(info: VideoAndStreamInformation) -> None:
    configuration = info.configuration
    if isinstance(configuration, RedirectCaptureConfiguration):
        return

    encode = configuration.encode
    if encode.is_unknown:
        raise StreamValidationError(f"Encode is not supported and also unknown: {encode.name}")
    if encode.kind not in SUPPORTED_ENCODES:
        raise StreamValidationError(
            f"Only H264, YUYV and MJPG encodes are supported now, used: {encode}"
        )


def check_scheme(info: VideoAndStreamInformation) -> None:
    endpoints = info.endpoints
    scheme = endpoints[0].scheme

    if isinstance(info.video_source, VideoSourceRedirect):
        if scheme not in REDIRECT_SCHEMES:
            raise StreamValidationError(
                'The URL\'s scheme for REDIRECT endpoints should be "udp", "udp265", "rtsp", '
                f'"mpegts" or "tcp", but was: "{scheme}"'
            )
        return

    configuration = info.configuration
    if isinstance(configuration, VideoCaptureConfiguration):
        encode = configuration.encode
    else:
        encode = VideoEncodeType(kind=EncodeKind.UNKNOWN, name="")

    if scheme == "rtsp":
        if len(endpoints) > 1:
            raise StreamValidationError(f"Multiple RTSP endpoints are not acceptable: {_describe(endpoints)}")
        segments = endpoints[0].path_segments
        if len(segments) != 1 or not segments[0]:
            raise StreamValidationError(
                "The URL's path for RTSP endpoints must have one segment "
                f'(e.g.: "segmentA" and not "segmentA/segmentB"), but was: "{endpoints[0].path}"'
            )
    elif scheme == "udp":
        if encode.kind is EncodeKind.H265:
            raise StreamValidationError(
                "Endpoint with udp scheme only supports H264, encode type is H265, the scheme should be udp265."
            )
        # UDP endpoints need both host and port.
        if any(endpoint.host is None or endpoint.port is None for endpoint in endpoints):
            raise StreamValidationError(
                f"Endpoint with udp scheme should contain host and port. Endpoints: {_describe(endpoints)}"
            )
    elif scheme == "udp265":
        if encode.kind is not EncodeKind.H265:
            raise StreamValidationError(
                "Endpoint with udp265 scheme only supports H265 encode. "
                f"Encode: {encode}, Endpoints: {_describe(endpoints)}"
            )
    else:
        raise StreamValidationError(f"Scheme is not accepted as stream endpoint: {scheme}")

    if not isinstance(configuration, VideoCaptureConfiguration):
        raise StreamValidationError(
            f"Capture sources need a video configuration, got a redirect configuration for {info.name!r}"
        )


def validate(info: VideoAndStreamInformation) -> None:
    """Run the endpoint, encode and scheme checks in order."""

    check_endpoints(info)
    check_encode(info)
    check_scheme(info)
