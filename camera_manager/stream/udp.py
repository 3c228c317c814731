"""
UDP streams: the pipeline ends in ``multiudpsink`` and runs on its own.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .backend import StreamBackend
from .pipeline_builder import build_pipeline
from .runner import GstPipelineRunner, PipelineUnavailableError
from .types import VideoAndStreamInformation

LOG = logging.getLogger(__name__)

RunnerFactory = Callable[[str, str], GstPipelineRunner]


class VideoStreamUdp(StreamBackend):
    def __init__(
        self,
        info: VideoAndStreamInformation,
        runner_factory: RunnerFactory = GstPipelineRunner,
    ) -> None:
        self._runner: Optional[GstPipelineRunner] = None
        self.name = info.name
        self._description = build_pipeline(info)
        self._runner_factory = runner_factory

    def start(self) -> bool:
        if self.is_running():
            return True

        runner = self._runner_factory(self._description, f"udp-{self.name}")
        try:
            runner.start()
        except PipelineUnavailableError as exc:
            LOG.warning("UDP stream %s not started: %s", self.name, exc)
            return False
        except RuntimeError as exc:
            LOG.error("UDP stream %s failed to start: %s", self.name, exc)
            return False
        self._runner = runner
        return runner.is_running

    def stop(self) -> bool:
        runner = self._runner
        if runner is None:
            return False
        self._runner = None
        was_running = runner.is_running
        runner.stop()
        return was_running

    def is_running(self) -> bool:
        runner = self._runner
        if runner is None:
            return False
        if not runner.is_running:
            # The bus watcher stopped the pipeline on an error or end-of-stream.
            if runner.last_error:
                LOG.warning("UDP stream %s stopped: %s", self.name, runner.last_error)
            else:
                LOG.info("UDP stream %s stopped.", self.name)
            self._runner = None
            return False
        return True

    def pipeline(self) -> str:
        return self._description

    def allow_same_endpoints(self) -> bool:
        # Two senders to one destination would interleave packets.
        return False
