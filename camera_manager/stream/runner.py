"""
Execution of a textual pipeline description with GStreamer.

The runner owns one ``GstPipeline`` built with ``Gst.parse_launch`` and a
thread draining its bus.  When PyGObject is missing,
:meth:`GstPipelineRunner.start` raises :class:`PipelineUnavailableError` and
the stream reports not running.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from ..utils import gst as gst_runtime
from ..utils.gst import Gst

LOG = logging.getLogger(__name__)

# Bus poll period, in nanoseconds.
BUS_TIMEOUT_NS = 100_000_000
JOIN_TIMEOUT_S = 1.0


class PipelineUnavailableError(RuntimeError):
    """Raised when GStreamer is not importable, so no pipeline can run."""


def _require_gstreamer() -> None:
    if not gst_runtime.ensure_initialised():
        raise PipelineUnavailableError(
            "GStreamer is not available. Install PyGObject with the GStreamer 1.0 typelibs to run streams."
        ) from gst_runtime.GST_IMPORT_ERROR


class GstPipelineRunner:
    """
    Run ``description`` until stopped.  An error or end-of-stream on the bus
    stops the pipeline; the error text is kept in :attr:`last_error`.
    """

    def __init__(self, description: str, name: str = "camera-manager") -> None:
        self.description = description
        self.name = name
        self.last_error: Optional[str] = None
        self._pipeline: Any = None
        self._lock = threading.RLock()
        self._watcher: Optional[threading.Thread] = None
        self._watch_stop: Optional[threading.Event] = None

    @property
    def is_running(self) -> bool:
        return self._pipeline is not None

    def start(self) -> None:
        with self._lock:
            if self._pipeline is not None:
                return
            _require_gstreamer()

            self.last_error = None
            try:
                pipeline = Gst.parse_launch(self.description)
            except Exception as exc:
                self.last_error = str(exc)
                raise RuntimeError(f"Invalid pipeline for {self.name}: {exc}") from exc
            pipeline.set_name(self.name)

            if pipeline.set_state(Gst.State.PLAYING) == Gst.StateChangeReturn.FAILURE:
                pipeline.set_state(Gst.State.NULL)
                raise RuntimeError(f"Pipeline {self.name} refused to enter PLAYING.")

            self._pipeline = pipeline
            self._watch_bus(pipeline.get_bus())
            LOG.info("Pipeline %s playing.", self.name)

    def stop(self) -> None:
        with self._lock:
            pipeline, self._pipeline = self._pipeline, None
            if pipeline is None:
                return
            if self._watch_stop is not None:
                self._watch_stop.set()
                self._watch_stop = None
            pipeline.set_state(Gst.State.NULL)
            watcher, self._watcher = self._watcher, None

        # Joined outside the lock: the watcher itself may be calling stop().
        if watcher is not None and watcher is not threading.current_thread():
            watcher.join(timeout=JOIN_TIMEOUT_S)
        LOG.info("Pipeline %s stopped.", self.name)

    def _watch_bus(self, bus: Any) -> None:
        if bus is None:
            LOG.warning("Pipeline %s has no bus, errors will not be reported.", self.name)
            return

        mask = Gst.MessageType.ERROR | Gst.MessageType.EOS | Gst.MessageType.WARNING
        # Each watcher drains until its own event is set.
        stop = self._watch_stop = threading.Event()

        def _drain() -> None:
            while not stop.is_set():
                message = bus.timed_pop_filtered(BUS_TIMEOUT_NS, mask)
                if message is not None and not stop.is_set():
                    self._on_message(message)

        self._watcher = threading.Thread(target=_drain, name=f"{self.name}-bus", daemon=True)
        self._watcher.start()

    def _on_message(self, message: Any) -> None:
        if message.type == Gst.MessageType.WARNING:
            warning, debug = message.parse_warning()
            LOG.warning("Pipeline %s: %s (%s)", self.name, warning, debug)
            return

        if message.type == Gst.MessageType.ERROR:
            error, debug = message.parse_error()
            self.last_error = f"{error} ({debug})"
            LOG.error("Pipeline %s failed: %s", self.name, self.last_error)
        else:
            LOG.info("Pipeline %s reached end of stream.", self.name)
        self.stop()
