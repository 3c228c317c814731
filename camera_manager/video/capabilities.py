"""
Format, resolution and frame interval probing for local cameras.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Iterable, List, Sequence, Tuple

from ..utils.logging import TRACE
from .device import (
    DeviceOpener,
    DiscreteInterval,
    DiscreteSize,
    FrameIntervalRecord,
    StepwiseInterval,
    StepwiseSize,
    V4L2Device,
    open_device,
)
from .types import (
    STANDARD_SIZES,
    ConnectionKind,
    Format,
    FrameInterval,
    Size,
    VideoEncodeType,
    VideoSourceLocal,
)

LOG = logging.getLogger(__name__)

# Stepwise interval ranges are sampled with at least this step on both terms.
MIN_INTERVAL_STEP = 5

LEGACY_MAX_WIDTH = 1920
LEGACY_MAX_HEIGHT = 1080
LEGACY_MAX_FPS = 30


def _stepwise_samples(minimum: int, maximum: int, step: int) -> List[int]:
    # Samples from zero up to the range minimum, then the maximum.
    step = max(step, MIN_INTERVAL_STEP)
    return list(range(0, minimum + 1, step)) + [maximum]


def convert_intervals(records: Iterable[FrameIntervalRecord]) -> Tuple[FrameInterval, ...]:
    """
    Flatten hardware interval records into a sorted, deduplicated tuple with
    the fastest frame rate first.
    """

    intervals = set()
    for record in records:
        if isinstance(record, DiscreteInterval):
            # Some drivers report 0/0 for unknown rates.
            interval = record.interval
            intervals.add(
                FrameInterval(numerator=max(1, interval.numerator), denominator=max(1, interval.denominator))
            )
            continue

        numerators = _stepwise_samples(record.min.numerator, record.max.numerator, record.step.numerator)
        denominators = _stepwise_samples(
            record.min.denominator, record.max.denominator, record.step.denominator
        )
        for numerator in numerators:
            for denominator in denominators:
                intervals.add(FrameInterval(numerator=max(1, numerator), denominator=max(1, denominator)))

    return tuple(sorted(intervals, key=_rate_key, reverse=True))


def _rate_key(interval: FrameInterval) -> Tuple[Fraction, int]:
    return Fraction(interval.denominator, interval.numerator), interval.denominator


def _sizes_for_format(device: V4L2Device, fourcc: str, errors: List[str]) -> List[Size]:
    sizes: List[Size] = []
    try:
        records = device.enum_framesizes(fourcc)
    except OSError as exc:
        errors.append(f"encode: {fourcc}, error: {exc}")
        return sizes

    for record in records:
        if isinstance(record, DiscreteSize):
            candidates: Sequence[Tuple[int, int]] = [(record.width, record.height)]
        elif isinstance(record, StepwiseSize):
            candidates = [*STANDARD_SIZES, (record.max_width, record.max_height)]
        else:  # pragma: no cover - device contract
            continue

        for width, height in candidates:
            try:
                intervals = convert_intervals(device.enum_frameintervals(fourcc, width, height))
            except OSError as exc:
                errors.append(f"encode: {fourcc}, for size: {(width, height)}, error: {exc}")
                continue
            sizes.append(Size(width=width, height=height, intervals=intervals))

    return sizes


def apply_legacy_constraints(formats: Iterable[Format]) -> List[Format]:
    """
    Raspberry Pi cameras in legacy mode report sizes the encoder cannot
    enable (mmal EINVAL), so they are capped to 1920x1080 and 30 FPS.

    The frame rate cap compares ``numerator * denominator`` against 30, not
    the actual rate.  This mirrors deployed behaviour and is intentional.
    """

    LOG.warning(
        "To support Raspberry Pi cameras in legacy camera mode without bugs, "
        "resolution is constrained to %d x %d @ %dFPS.",
        LEGACY_MAX_WIDTH,
        LEGACY_MAX_HEIGHT,
        LEGACY_MAX_FPS,
    )
    constrained: List[Format] = []
    for fmt in formats:
        sizes = [
            Size(
                width=min(size.width, LEGACY_MAX_WIDTH),
                height=min(size.height, LEGACY_MAX_HEIGHT),
                intervals=tuple(
                    interval
                    for interval in size.intervals
                    if interval.numerator * interval.denominator <= LEGACY_MAX_FPS
                ),
            )
            for size in fmt.sizes
        ]
        constrained.append(Format(encode=fmt.encode, sizes=tuple(sorted(set(sizes), reverse=True))))
    return constrained


def read_formats(device: V4L2Device, source: VideoSourceLocal) -> List[Format]:
    formats: List[Format] = []

    LOG.log(TRACE, "Checking resolutions for camera: %s", source.device_path)
    try:
        fourccs = device.enum_formats()
    except OSError as exc:
        LOG.warning("Failed to enumerate formats for camera %s: %s", source.device_path, exc)
        fourccs = []

    for fourcc in fourccs:
        errors: List[str] = []
        sizes = _sizes_for_format(device, fourcc, errors)
        if errors:
            LOG.log(
                TRACE,
                "Failed to fetch frame intervals for camera %s: %s",
                source.device_path,
                errors,
            )
        formats.append(
            Format(
                encode=VideoEncodeType.from_str(fourcc),
                sizes=tuple(sorted(set(sizes), reverse=True)),
            )
        )

    if source.typ.kind is ConnectionKind.LEGACY_PLATFORM_CAPTURE:
        formats = apply_legacy_constraints(formats)

    return sorted(set(formats))


def formats(source: VideoSourceLocal, opener: DeviceOpener = open_device) -> List[Format]:
    """
    Probe every format the camera advertises.  An unreachable device yields an
    empty list.
    """

    try:
        with opener(source.device_path) as device:
            return read_formats(device, source)
    except OSError as exc:
        LOG.error("Failed to open camera %s: %s", source.device_path, exc)
        return []
