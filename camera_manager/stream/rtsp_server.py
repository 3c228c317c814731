"""
Shared RTSP server.

All RTSP streams of the process are mounted on one ``GstRtspServer`` whose
GLib main loop runs in a daemon thread.  Each mount gets a shared media
factory launching the stream's (unterminated) pipeline description.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from ..config import DEFAULT_RTSP_ADDRESS, DEFAULT_RTSP_PORT
from ..utils import gst as gst_runtime
from ..utils.gst import GLib, GstRtspServer
from .runner import PipelineUnavailableError

LOG = logging.getLogger(__name__)

_SHARED_LOCK = threading.Lock()
_SHARED_SERVER: Optional["RTSPServer"] = None


class RTSPServer:
    def __init__(self, port: int = DEFAULT_RTSP_PORT, address: str = DEFAULT_RTSP_ADDRESS) -> None:
        self.port = port
        self.address = address
        self._lock = threading.RLock()
        self._server: Any = None
        self._attach_id = 0
        self._loop: Any = None
        self._loop_thread: Optional[threading.Thread] = None
        self._mounts: Dict[str, Any] = {}

    def add_pipeline(self, path: str, description: str) -> None:
        with self._lock:
            if path in self._mounts:
                raise RuntimeError(f"RTSP path {path!r} is already in use")
            self._ensure_running()

            factory = GstRtspServer.RTSPMediaFactory()
            factory.set_shared(True)
            factory.set_launch(f"( {description} )")
            self._server.get_mount_points().add_factory(path, factory)
            self._mounts[path] = factory
            LOG.info("RTSP stream available at rtsp://%s:%d%s", self.address, self.port, path)

    def remove_pipeline(self, path: str) -> bool:
        with self._lock:
            if self._mounts.pop(path, None) is None:
                return False
            self._server.get_mount_points().remove_factory(path)
            LOG.info("RTSP stream removed from %s", path)
            if not self._mounts:
                self._shutdown()
            return True

    # ----------------------------------------------------------------- plumbing

    def _ensure_running(self) -> None:
        if self._server is not None:
            return
        if not gst_runtime.ensure_initialised() or GstRtspServer is None:
            raise PipelineUnavailableError(
                "GstRtspServer is not available. Install the gst-rtsp-server typelib to serve RTSP streams."
            ) from gst_runtime.RTSP_IMPORT_ERROR

        server = GstRtspServer.RTSPServer()
        server.set_service(str(int(self.port)))
        server.set_address(self.address)

        context = GLib.MainContext.new()
        attach_id = server.attach(context)
        if int(attach_id) == 0:
            raise RuntimeError(f"RTSP server failed to bind {self.address}:{self.port}")

        loop = GLib.MainLoop.new(context, False)
        thread = threading.Thread(target=loop.run, name="rtsp-server", daemon=True)
        thread.start()

        self._server = server
        self._attach_id = int(attach_id)
        self._loop = loop
        self._loop_thread = thread
        LOG.info("RTSP server listening on %s:%d", self.address, self.port)

    def _shutdown(self) -> None:
        loop = self._loop
        if loop is not None:
            loop.quit()
        thread = self._loop_thread
        if thread and thread.is_alive() and threading.current_thread() is not thread:
            thread.join(timeout=1.0)
        if self._attach_id and self._loop is not None:
            source = self._loop.get_context().find_source_by_id(self._attach_id)
            if source is not None:
                source.destroy()
        self._server = None
        self._attach_id = 0
        self._loop = None
        self._loop_thread = None
        LOG.info("RTSP server stopped.")


def shared_server(port: int = DEFAULT_RTSP_PORT, address: str = DEFAULT_RTSP_ADDRESS) -> RTSPServer:
    """Process wide server; the first caller decides port and address."""

    global _SHARED_SERVER
    with _SHARED_LOCK:
        if _SHARED_SERVER is None:
            _SHARED_SERVER = RTSPServer(port=port, address=address)
        elif _SHARED_SERVER.port != port:
            LOG.warning(
                "RTSP server already configured on port %d, ignoring port %d",
                _SHARED_SERVER.port,
                port,
            )
        return _SHARED_SERVER
