"""Utility helpers for the camera manager."""

from .logging import TRACE, configure_logging

__all__ = ["TRACE", "configure_logging"]
