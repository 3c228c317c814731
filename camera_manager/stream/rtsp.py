"""
RTSP streams: the pipeline is mounted on the shared RTSP server.
"""

from __future__ import annotations

import logging
from typing import Optional

from .backend import StreamBackend
from .pipeline_builder import build_pipeline
from .rtsp_server import RTSPServer, shared_server
from .runner import PipelineUnavailableError
from .types import VideoAndStreamInformation

LOG = logging.getLogger(__name__)


class VideoStreamRtsp(StreamBackend):
    def __init__(
        self,
        info: VideoAndStreamInformation,
        path: str,
        server: Optional[RTSPServer] = None,
    ) -> None:
        self._running = False
        self.name = info.name
        self.path = path
        self._description = build_pipeline(info)
        self._server = server if server is not None else shared_server()

    def start(self) -> bool:
        if self._running:
            return True
        try:
            self._server.add_pipeline(self.path, self._description)
        except PipelineUnavailableError as exc:
            LOG.warning("RTSP stream %s not started: %s", self.name, exc)
            return False
        except RuntimeError as exc:
            LOG.error("RTSP stream %s failed to start: %s", self.name, exc)
            return False
        self._running = True
        return True

    def stop(self) -> bool:
        if not self._running:
            return False
        self._running = False
        self._server.remove_pipeline(self.path)
        return True

    def is_running(self) -> bool:
        return self._running

    def pipeline(self) -> str:
        return self._description

    def allow_same_endpoints(self) -> bool:
        # One mount point per path on the shared server.
        return False
