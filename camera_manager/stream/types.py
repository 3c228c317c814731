"""
Stream configuration data model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

import httpx

from ..video.types import FrameInterval, VideoEncodeType, VideoSourceType


@dataclass(frozen=True)
class StreamEndpoint:
    """A stream destination URL split into its parts."""

    scheme: str
    host: Optional[str] = None
    port: Optional[int] = None
    path: str = ""
    url: str = field(default="", compare=False)

    @classmethod
    def parse(cls, url: str) -> "StreamEndpoint":
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"Invalid endpoint URL {url!r}: {exc}") from exc
        if not parsed.scheme:
            raise ValueError(f"Endpoint URL {url!r} has no scheme")
        return cls(
            scheme=parsed.scheme,
            host=parsed.host or None,
            port=parsed.port,
            path=parsed.path,
            url=url,
        )

    @property
    def address(self) -> str:
        """``host:port``, with IPv6 hosts in brackets."""
        host = self.host or ""
        if ":" in host:
            host = f"[{host}]"
        if self.port is None:
            return host
        return f"{host}:{self.port}"

    @property
    def path_segments(self) -> List[str]:
        return self.path.lstrip("/").split("/")

    def __str__(self) -> str:
        if self.url:
            return self.url
        return f"{self.scheme}://{self.address}{self.path}"


@dataclass(frozen=True)
class VideoCaptureConfiguration:
    encode: VideoEncodeType
    width: int
    height: int
    frame_interval: FrameInterval


@dataclass(frozen=True)
class RedirectCaptureConfiguration:
    """Redirect streams carry no capture parameters."""


CaptureConfiguration = Union[VideoCaptureConfiguration, RedirectCaptureConfiguration]


@dataclass
class StreamInformation:
    endpoints: List[StreamEndpoint]
    configuration: CaptureConfiguration


@dataclass
class VideoAndStreamInformation:
    name: str
    video_source: VideoSourceType
    stream_information: StreamInformation = field(
        default_factory=lambda: StreamInformation(endpoints=[], configuration=RedirectCaptureConfiguration())
    )

    @property
    def endpoints(self) -> List[StreamEndpoint]:
        return self.stream_information.endpoints

    @property
    def configuration(self) -> CaptureConfiguration:
        return self.stream_information.configuration
