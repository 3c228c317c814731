"""
Stream configuration, validation, pipeline synthesis and backends.
"""

from .backend import StreamBackend
from .factory import create_stream
from .pipeline_builder import PipelineConsistencyError, build_pipeline
from .redirect import VideoStreamRedirect
from .rtsp import VideoStreamRtsp
from .rtsp_server import RTSPServer, shared_server
from .runner import GstPipelineRunner, PipelineUnavailableError
from .types import (
    CaptureConfiguration,
    RedirectCaptureConfiguration,
    StreamEndpoint,
    StreamInformation,
    VideoAndStreamInformation,
    VideoCaptureConfiguration,
)
from .udp import VideoStreamUdp
from .validation import StreamValidationError, validate

__all__ = [
    "CaptureConfiguration",
    "GstPipelineRunner",
    "PipelineConsistencyError",
    "PipelineUnavailableError",
    "RTSPServer",
    "RedirectCaptureConfiguration",
    "StreamBackend",
    "StreamEndpoint",
    "StreamInformation",
    "StreamValidationError",
    "VideoAndStreamInformation",
    "VideoCaptureConfiguration",
    "VideoStreamRedirect",
    "VideoStreamRtsp",
    "VideoStreamUdp",
    "build_pipeline",
    "create_stream",
    "shared_server",
    "validate",
]
