"""
Command line entrypoint.

``list`` prints the cameras found on the host, ``pipeline`` shows what a
settings file would run, and ``serve`` runs the configured streams until the
process is interrupted.
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ManagerConfig
from .settings import SettingsError, load_streams
from .stream import StreamBackend, StreamValidationError, build_pipeline, create_stream, validate
from .stream.pipeline_builder import PipelineConsistencyError
from .utils.logging import configure_logging
from .video import VideoSourceRedirect, controls, discover, formats

LOG = logging.getLogger(__name__)


def _describe_cameras() -> List[Dict[str, Any]]:
    cameras = []
    for camera in discover():
        entry = asdict(camera)
        entry["formats"] = [asdict(item) for item in formats(camera)]
        entry["controls"] = [asdict(item) for item in controls(camera)]
        cameras.append(entry)
    return cameras


def cmd_list(_args: argparse.Namespace, _config: ManagerConfig) -> int:
    print(json.dumps(_describe_cameras(), indent=2, default=str))
    return 0


def cmd_pipeline(args: argparse.Namespace, _config: ManagerConfig) -> int:
    try:
        streams = load_streams(args.settings)
    except SettingsError as exc:
        LOG.error("%s", exc)
        return 2

    status = 0
    for info in streams:
        try:
            validate(info)
            if isinstance(info.video_source, VideoSourceRedirect):
                print(f"{info.name}: redirect ({info.endpoints[0].scheme})")
            else:
                print(f"{info.name}: {build_pipeline(info)}")
        except (StreamValidationError, PipelineConsistencyError) as exc:
            print(f"{info.name}: rejected: {exc}")
            status = 1
    return status


def cmd_serve(args: argparse.Namespace, config: ManagerConfig) -> int:
    try:
        streams = load_streams(args.settings)
    except SettingsError as exc:
        LOG.error("%s", exc)
        return 2

    backends: List[StreamBackend] = []
    for info in streams:
        try:
            backend = create_stream(info, config=config)
        except StreamValidationError as exc:
            LOG.error("Stream %s rejected: %s", info.name, exc)
            continue
        if backend.start():
            LOG.info("Stream %s started", info.name)
        else:
            LOG.warning("Stream %s is not running", info.name)
        backends.append(backend)

    if not backends:
        LOG.error("No stream could be created.")
        return 1

    stop_event = threading.Event()

    def _handle_signal(signum: int, frame: Optional[object]) -> None:
        LOG.info("Received signal %s, stopping streams...", signum)
        stop_event.set()

    for signame in ("SIGINT", "SIGTERM"):
        signal.signal(getattr(signal, signame), _handle_signal)

    try:
        while not stop_event.wait(0.5):
            pass
    finally:
        for backend in backends:
            backend.close()
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Camera discovery and streaming manager")
    parser.add_argument("--verbose", action="store_true", help="log debug messages")
    parser.add_argument("--log-path", type=Path, default=None, help="directory for rotating log files")
    parser.add_argument("--rtsp-port", type=int, default=None, help="port of the RTSP server")

    commands = parser.add_subparsers(dest="command", required=True)

    list_parser = commands.add_parser("list", help="print cameras with their formats and controls")
    list_parser.set_defaults(handler=cmd_list)

    pipeline_parser = commands.add_parser("pipeline", help="print the pipeline of each configured stream")
    pipeline_parser.add_argument("settings", type=Path, help="YAML settings file")
    pipeline_parser.set_defaults(handler=cmd_pipeline)

    serve_parser = commands.add_parser("serve", help="run the configured streams until interrupted")
    serve_parser.add_argument("settings", type=Path, help="YAML settings file")
    serve_parser.set_defaults(handler=cmd_serve)

    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = ManagerConfig.from_env(
        rtsp_port=args.rtsp_port,
        log_path=args.log_path,
        verbose=args.verbose or None,
    )
    configure_logging(
        level=logging.DEBUG if config.verbose else logging.INFO,
        log_path=config.log_path,
    )

    try:
        return args.handler(args, config)
    except KeyboardInterrupt:
        LOG.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    sys.exit(run())
