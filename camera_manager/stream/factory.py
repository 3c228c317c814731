"""
Pick the stream backend matching a validated configuration.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import ManagerConfig
from ..video.types import VideoSourceRedirect
from .backend import StreamBackend
from .redirect import VideoStreamRedirect
from .rtsp import VideoStreamRtsp
from .rtsp_server import RTSPServer, shared_server
from .runner import GstPipelineRunner
from .types import VideoAndStreamInformation
from .udp import RunnerFactory, VideoStreamUdp
from .validation import StreamValidationError, validate

LOG = logging.getLogger(__name__)


def create_stream(
    info: VideoAndStreamInformation,
    *,
    config: Optional[ManagerConfig] = None,
    runner_factory: RunnerFactory = GstPipelineRunner,
    rtsp_server: Optional[RTSPServer] = None,
) -> StreamBackend:
    """Validate ``info`` and return a backend that has not been started yet."""

    validate(info)
    config = config or ManagerConfig()
    endpoint = info.endpoints[0]

    if isinstance(info.video_source, VideoSourceRedirect):
        LOG.debug("Creating redirect stream %s (%s)", info.name, endpoint.scheme)
        return VideoStreamRedirect(endpoint.scheme)

    if endpoint.scheme == "udp":
        LOG.debug("Creating UDP stream %s", info.name)
        return VideoStreamUdp(info, runner_factory=runner_factory)

    if endpoint.scheme == "rtsp":
        if endpoint.port != config.rtsp_port:
            raise StreamValidationError(
                f"Endpoint with rtsp scheme must use the RTSP server port {config.rtsp_port}, "
                f"but was: {endpoint.port}"
            )
        server = rtsp_server or shared_server(config.rtsp_port, config.rtsp_address)
        path = "/" + endpoint.path_segments[0]
        LOG.debug("Creating RTSP stream %s at %s", info.name, path)
        return VideoStreamRtsp(info, path, server=server)

    raise StreamValidationError(f"Unsupported scheme: {endpoint.scheme}")
