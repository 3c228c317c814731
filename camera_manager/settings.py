"""
Stream definitions loaded from YAML.

The document shape is checked with pydantic and then converted into the
stream data model used by validation and the backends.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, validator

from .stream.types import (
    CaptureConfiguration,
    RedirectCaptureConfiguration,
    StreamEndpoint,
    StreamInformation,
    VideoAndStreamInformation,
    VideoCaptureConfiguration,
)
from .video.device import DeviceOpener, open_device
from .video.local import DEVICE_DIR, discover
from .video.types import (
    ConnectionKind,
    FrameInterval,
    LocalConnectionType,
    VideoEncodeType,
    VideoSourceGst,
    VideoSourceLocal,
    VideoSourceRedirect,
    VideoSourceType,
)

LOG = logging.getLogger(__name__)


class SettingsError(ValueError):
    """Raised when a settings document cannot be turned into streams."""


class FrameIntervalModel(BaseModel):
    numerator: int = 1
    denominator: int = 30

    @validator("numerator", "denominator", pre=True)
    def _positive(cls, value: int) -> int:
        value = int(value)
        if value <= 0:
            raise ValueError("frame interval terms must be positive")
        return value


class SourceModel(BaseModel):
    type: Literal["local", "test", "redirect"]
    device: Optional[str] = None
    pattern: str = "smpte"
    scheme: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class ConfigurationModel(BaseModel):
    type: Literal["video", "redirect"] = "video"
    encode: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    frame_interval: FrameIntervalModel = Field(default_factory=FrameIntervalModel)
    model_config = ConfigDict(extra="forbid")

    @validator("encode", pre=True)
    def _encode_text(cls, value: object) -> Optional[str]:
        return None if value is None else str(value)


class StreamModel(BaseModel):
    name: str
    source: SourceModel
    endpoints: List[str] = Field(default_factory=list)
    configuration: ConfigurationModel = Field(default_factory=ConfigurationModel)

    @validator("endpoints", pre=True)
    def _single_endpoint(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value


class SettingsModel(BaseModel):
    streams: List[StreamModel] = Field(default_factory=list)


def parse_settings(text: str) -> SettingsModel:
    try:
        document = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Settings are not valid YAML: {exc}") from exc
    if not isinstance(document, dict):
        raise SettingsError("Settings must be a mapping with a 'streams' list")
    try:
        return SettingsModel.model_validate(document)
    except ValidationError as exc:
        raise SettingsError(str(exc)) from exc


def load_settings(path: Union[str, Path]) -> SettingsModel:
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Failed to read settings from {path}: {exc}") from exc
    LOG.debug("Loaded settings from %s", path)
    return parse_settings(text)


def _configuration(model: ConfigurationModel, stream: str) -> CaptureConfiguration:
    if model.type == "redirect":
        return RedirectCaptureConfiguration()

    missing = [key for key in ("encode", "width", "height") if getattr(model, key) is None]
    if missing:
        raise SettingsError(f"Stream {stream!r} configuration is missing: {', '.join(missing)}")
    return VideoCaptureConfiguration(
        encode=VideoEncodeType.from_str(model.encode),
        width=model.width,
        height=model.height,
        frame_interval=FrameInterval(
            numerator=model.frame_interval.numerator,
            denominator=model.frame_interval.denominator,
        ),
    )


def _source(
    model: StreamModel,
    endpoints: List[StreamEndpoint],
    cameras: Dict[str, VideoSourceLocal],
) -> VideoSourceType:
    source = model.source
    if source.type == "test":
        return VideoSourceGst(name=model.name, pattern=source.pattern)

    if source.type == "redirect":
        scheme = source.scheme or (endpoints[0].scheme if endpoints else "")
        return VideoSourceRedirect(name=model.name, scheme=scheme)

    if not source.device:
        raise SettingsError(f"Stream {model.name!r} has a local source without a device")
    camera = cameras.get(source.device)
    if camera is not None:
        return camera
    LOG.warning("Device %s of stream %r is not present, keeping it as unknown", source.device, model.name)
    return VideoSourceLocal(
        name=model.name,
        device_path=source.device,
        typ=LocalConnectionType(ConnectionKind.UNKNOWN, ""),
    )


def to_streams(
    settings: SettingsModel,
    opener: DeviceOpener = open_device,
    directory: Path = DEVICE_DIR,
) -> List[VideoAndStreamInformation]:
    """Convert parsed settings; local devices are resolved against a fresh discovery."""

    cameras: Dict[str, VideoSourceLocal] = {}
    if any(stream.source.type == "local" for stream in settings.streams):
        cameras = {camera.device_path: camera for camera in discover(opener=opener, directory=directory)}

    streams: List[VideoAndStreamInformation] = []
    for model in settings.streams:
        try:
            endpoints = [StreamEndpoint.parse(url) for url in model.endpoints]
        except ValueError as exc:
            raise SettingsError(f"Stream {model.name!r}: {exc}") from exc
        streams.append(
            VideoAndStreamInformation(
                name=model.name,
                video_source=_source(model, endpoints, cameras),
                stream_information=StreamInformation(
                    endpoints=endpoints,
                    configuration=_configuration(model.configuration, model.name),
                ),
            )
        )
    return streams


def load_streams(
    path: Union[str, Path],
    opener: DeviceOpener = open_device,
    directory: Path = DEVICE_DIR,
) -> List[VideoAndStreamInformation]:
    return to_streams(load_settings(path), opener=opener, directory=directory)
