"""
Common lifecycle contract of stream backends.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

LOG = logging.getLogger(__name__)


class StreamBackend(ABC):
    """
    A stream that can be started and stopped.

    ``start`` and ``stop`` are idempotent.  Lifecycle calls on one instance are
    expected to be serialised by the owner.  Resources are released when the
    instance is used as a context manager, closed, or garbage collected.
    """

    @abstractmethod
    def start(self) -> bool:
        """Start the stream if needed and return whether it is running."""

    @abstractmethod
    def stop(self) -> bool:
        """Stop the stream; return whether a running stream was stopped."""

    @abstractmethod
    def is_running(self) -> bool:
        ...

    @abstractmethod
    def pipeline(self) -> str:
        """Pipeline description, empty for streams that are not built locally."""

    def allow_same_endpoints(self) -> bool:
        """Whether two streams may target the same endpoint at once."""
        return False

    def restart(self) -> None:
        self.stop()
        self.start()

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> "StreamBackend":
        return self

    def __exit__(self, *_exc: object) -> Optional[bool]:
        self.close()
        return None

    def __del__(self) -> None:
        try:
            self.stop()
        except Exception:  # pragma: no cover - interpreter shutdown
            LOG.debug("Failed to stop %s during finalisation", type(self).__name__, exc_info=True)
