"""
Redirect streams are produced elsewhere; only their scheme is tracked.
"""

from __future__ import annotations

from .backend import StreamBackend
from .validation import REDIRECT_SCHEMES, StreamValidationError


class VideoStreamRedirect(StreamBackend):
    def __init__(self, scheme: str) -> None:
        if scheme not in REDIRECT_SCHEMES:
            raise StreamValidationError(f"Unsupported redirect scheme: {scheme}")
        self.scheme = scheme
        self._running = False

    def start(self) -> bool:
        self._running = True
        return True

    def stop(self) -> bool:
        was_running = self._running
        self._running = False
        return was_running

    def is_running(self) -> bool:
        return self._running

    def pipeline(self) -> str:
        return ""

    def allow_same_endpoints(self) -> bool:
        # Nothing is bound locally.
        return True
