"""
GStreamer runtime access.

PyGObject and the GStreamer typelibs are optional at import time.  When they
are missing, ``Gst``/``GLib``/``GstRtspServer`` are ``None`` and callers
degrade gracefully, which keeps discovery, validation and pipeline synthesis
usable (and testable) on hosts without the native stack.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

LOG = logging.getLogger(__name__)

_INIT_LOCK = threading.RLock()
_GST_INITIALISED = False

try:  # pragma: no cover - availability depends on host environment
    import gi  # type: ignore

    gi.require_version("Gst", "1.0")
    from gi.repository import GLib, Gst  # type: ignore
except (ImportError, ValueError) as exc:  # pragma: no cover
    Gst = None  # type: ignore[assignment]
    GLib = None  # type: ignore[assignment]
    GST_IMPORT_ERROR: Optional[BaseException] = exc
else:  # pragma: no cover - executed only when GStreamer is present
    GST_IMPORT_ERROR = None

try:  # pragma: no cover - the RTSP server typelib ships separately
    if Gst is None:
        raise ImportError("GStreamer is not available")
    gi.require_version("GstRtspServer", "1.0")
    from gi.repository import GstRtspServer  # type: ignore
except (ImportError, ValueError) as exc:  # pragma: no cover
    GstRtspServer = None  # type: ignore[assignment]
    RTSP_IMPORT_ERROR: Optional[BaseException] = exc
else:  # pragma: no cover
    RTSP_IMPORT_ERROR = None


def ensure_initialised() -> bool:
    """
    Initialise GStreamer once per process.  Returns ``False`` when the runtime
    is missing.
    """

    global _GST_INITIALISED
    if Gst is None:
        return False
    with _INIT_LOCK:
        if not _GST_INITIALISED:
            Gst.init(None)
            _GST_INITIALISED = True
            LOG.debug("GStreamer %s initialised.", Gst.version_string())
    return True
