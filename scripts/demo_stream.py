"""Stream a test pattern over UDP.

Useful to check the GStreamer installation and the receiving side without a
camera attached.

Examples
--------
Send colour bars as H264 to a local receiver for ten seconds::

    python scripts/demo_stream.py --endpoint udp://127.0.0.1:5600 --duration 10

Receive it with::

    gst-launch-1.0 udpsrc port=5600 caps="application/x-rtp" ! rtph264depay ! avdec_h264 ! autovideosink

Press Ctrl+C to stop early.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from typing import Iterable

from camera_manager.stream import (
    StreamEndpoint,
    StreamInformation,
    VideoAndStreamInformation,
    VideoCaptureConfiguration,
    create_stream,
)
from camera_manager.utils import configure_logging
from camera_manager.video.types import EncodeKind, FrameInterval, VideoEncodeType, VideoSourceGst


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Camera manager test pattern stream")
    parser.add_argument("--endpoint", default="udp://127.0.0.1:5600", help="UDP destination URL")
    parser.add_argument("--pattern", default="smpte", help="videotestsrc pattern (e.g. smpte, ball)")
    parser.add_argument("--encode", default="H264", choices=("H264", "MJPG"), help="stream encode")
    parser.add_argument("--width", type=int, default=640)
    parser.add_argument("--height", type=int, default=480)
    parser.add_argument("--fps", type=int, default=30)
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Optional duration in seconds; 0 means run until interrupted.",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(level=logging.DEBUG)

    info = VideoAndStreamInformation(
        name="demo",
        video_source=VideoSourceGst(name="demo", pattern=args.pattern),
        stream_information=StreamInformation(
            endpoints=[StreamEndpoint.parse(args.endpoint)],
            configuration=VideoCaptureConfiguration(
                encode=VideoEncodeType.of(EncodeKind(args.encode)),
                width=args.width,
                height=args.height,
                frame_interval=FrameInterval(numerator=1, denominator=args.fps),
            ),
        ),
    )

    stream = create_stream(info)
    print(stream.pipeline())
    if not stream.start():
        return 1

    stop_requested = False

    def _handle_signal(signum, frame):  # type: ignore[override]
        nonlocal stop_requested
        stop_requested = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        start_time = time.monotonic()
        while not stop_requested and stream.is_running():
            time.sleep(0.1)
            if args.duration > 0 and time.monotonic() - start_time >= args.duration:
                break
    finally:
        stream.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
