"""
Local capture device catalog.

Devices are listed from ``/dev/video*`` and classified by the bus information
their driver reports.  The bus information survives device path renumbering,
which is what :func:`update_device` relies on.
"""

from __future__ import annotations

import errno
import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..utils.logging import TRACE
from .device import DeviceOpener, open_device
from .types import ConnectionKind, LocalConnectionType, VideoSourceLocal

LOG = logging.getLogger(__name__)

DEVICE_DIR = Path("/dev")
DEVICE_PREFIX = "video"

# Always present on Raspberry Pis and never usable as a camera.
BENIGN_UNKNOWN_DESCRIPTORS = frozenset({"platform:bcm2835-isp"})

# PCI hosted buses follow <domain>:<bus>:<device>.<first_function>-<last_function>,
# e.g. "usb-0000:08:00.3-1".  Boards without PCI report "usb-3f980000.usb-1.4".
USB_PATTERN = re.compile(r"usb-(?P<interface>(([0-9a-fA-F]{2}){1,2}:?){4})?\.(usb-)?(?P<device>.*)")
# Raspberry Pi camera in legacy mode, e.g. "platform:bcm2835-v4l2-0".
LEGACY_PLATFORM_PATTERN = re.compile(r"platform:(?P<device>\S+)-v4l2-[0-9]")


def _usb_from_str(descriptor: str) -> Optional[LocalConnectionType]:
    if USB_PATTERN.search(descriptor):
        return LocalConnectionType(ConnectionKind.USB, descriptor)
    return None


def _legacy_platform_from_str(descriptor: str) -> Optional[LocalConnectionType]:
    if LEGACY_PLATFORM_PATTERN.search(descriptor):
        return LocalConnectionType(ConnectionKind.LEGACY_PLATFORM_CAPTURE, descriptor)
    return None


MATCHERS: Sequence[Callable[[str], Optional[LocalConnectionType]]] = (
    _usb_from_str,
    _legacy_platform_from_str,
)


def classify(descriptor: str) -> LocalConnectionType:
    """Map a driver bus descriptor to its connection type; first matcher wins."""

    for matcher in MATCHERS:
        result = matcher(descriptor)
        if result is not None:
            return result

    message = "Unable to identify the local camera connection type, please report the problem: %s"
    if descriptor in BENIGN_UNKNOWN_DESCRIPTORS:
        LOG.log(TRACE, message, descriptor)
    else:
        LOG.warning(message, descriptor)
    return LocalConnectionType(ConnectionKind.UNKNOWN, descriptor)


def _device_paths(directory: Path) -> List[str]:
    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        LOG.error("Failed to list capture devices in %s: %s", directory, exc)
        return []
    return sorted(str(entry) for entry in entries if entry.name.startswith(DEVICE_PREFIX))


def discover(
    opener: DeviceOpener = open_device,
    directory: Path = DEVICE_DIR,
) -> List[VideoSourceLocal]:
    """
    Return every usable capture node.  Nodes that cannot be queried are
    skipped; the result is partial rather than an error.
    """

    cameras: List[VideoSourceLocal] = []
    for path in _device_paths(directory):
        try:
            with opener(path) as device:
                try:
                    caps = device.query_caps()
                except OSError as exc:
                    LOG.debug("Failed to capture caps for device %s: %s", path, exc)
                    continue

                try:
                    device.read_format()
                except OSError as exc:
                    # Metadata nodes answer EINVAL for capture formats.
                    if exc.errno != errno.EINVAL:
                        LOG.debug("Failed to capture formats for device %s: %s", path, exc)
                    continue
        except OSError as exc:
            LOG.debug("Failed to open device %s: %s", path, exc)
            continue

        cameras.append(
            VideoSourceLocal(name=caps.card, device_path=path, typ=classify(caps.bus_info))
        )

    return cameras


def update_device(
    source: VideoSourceLocal,
    opener: DeviceOpener = open_device,
    directory: Path = DEVICE_DIR,
) -> bool:
    """
    Re-resolve the device path of a USB camera by its bus descriptor.

    Returns ``False`` (and clears the path, marking the source invalid) when
    the camera is gone.  Non-USB sources are left untouched.
    """

    if source.typ.kind is not ConnectionKind.USB:
        return True

    match = next(
        (
            camera
            for camera in discover(opener=opener, directory=directory)
            if camera.typ.kind is ConnectionKind.USB and camera.typ.descriptor == source.typ.descriptor
        ),
        None,
    )

    if match is None:
        LOG.error("Failed to find camera: %s", source)
        LOG.error("Camera will be set as invalid.")
        source.device_path = ""
        return False

    if match.device_path == source.device_path:
        return True

    LOG.info("Camera path changed.")
    LOG.info("Previous camera location: %s", source)
    LOG.info("New camera location: %s", match)
    source.name = match.name
    source.device_path = match.device_path
    source.typ = match.typ
    return True
