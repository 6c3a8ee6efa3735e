"""
Audio conversion, inspection and splitting utilities.

Conversions are performed locally using the `pydub` library which in turn
relies on `ffmpeg`.  Normalised audio is mono FLAC sampled at 16 kHz to meet
Google Speech‑to‑Text best practices.  Metadata is read with ``ffprobe``
through :func:`pydub.utils.mediainfo`.
"""

from __future__ import annotations

import logging
import math
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError, CouldntEncodeError
from pydub.utils import mediainfo

from . import config
from .exceptions import UnsupportedFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioMetadata:
    duration_seconds: float
    sample_rate_hz: int
    bit_rate_kbps: float
    channel_count: int


@dataclass(frozen=True)
class SplitPolicy:
    """Bounds on the length of each clip produced by :func:`split_audio`."""

    min_seconds: float
    max_seconds: float


def extension_of(path: str) -> str:
    return Path(path).suffix.lstrip(".").lower()


def is_accepted_format(path: str) -> bool:
    """Check whether Speech‑to‑Text accepts ``path`` without conversion."""
    return extension_of(path) in config.ACCEPTED_FORMATS


def convert_to_flac(
    input_path: str,
    *,
    output_dir: Optional[str] = None,
    target_sample_rate: int = config.TARGET_SAMPLE_RATE,
) -> str:
    """Convert an audio file to a mono FLAC file at ``target_sample_rate``.

    Args:
        input_path: Path to the source audio file.
        output_dir: Directory for the converted file.  Defaults to a
            ``normalized`` directory next to ``input_path`` so an existing
            FLAC input is never overwritten.
        target_sample_rate: Desired sample rate for the output.

    Returns:
        The path to the converted file, named after the input with a
        ``.flac`` extension.

    Raises:
        UnsupportedFormatError: If ffmpeg cannot decode or encode the file.
    """
    output_dir = output_dir or os.path.join(os.path.dirname(input_path), "normalized")
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, f"{Path(input_path).stem}.{config.NORMALIZED_FORMAT}")
    try:
        audio = AudioSegment.from_file(input_path)
        audio = audio.set_channels(1).set_frame_rate(target_sample_rate)
        audio.export(output_path, format=config.NORMALIZED_FORMAT)
    except (CouldntDecodeError, CouldntEncodeError) as exc:
        raise UnsupportedFormatError(extension_of(input_path), exc) from exc
    logger.info("Converted %s to %s", input_path, output_path)
    return output_path


def normalize_audio(input_path: str) -> Tuple[str, bool]:
    """Return a path Speech‑to‑Text accepts and whether it is a new file.

    WAV and FLAC files are used as they are; anything else is converted to
    FLAC.
    """
    if is_accepted_format(input_path):
        return input_path, False
    return convert_to_flac(input_path), True


def _number(value: Optional[str], default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def read_metadata(path: str) -> AudioMetadata:
    """Read duration, sample rate, bit rate and channel count of ``path``."""
    info = mediainfo(path)
    duration = _number(info.get("duration"))
    bit_rate = _number(info.get("bit_rate"))
    if not bit_rate and duration:
        # lossless streams often report N/A; fall back to the average rate
        bit_rate = os.path.getsize(path) * 8 / duration
    metadata = AudioMetadata(
        duration_seconds=duration,
        sample_rate_hz=int(_number(info.get("sample_rate"))),
        bit_rate_kbps=bit_rate / 1000,
        channel_count=int(_number(info.get("channels"))),
    )
    logger.info("Audio metadata for %s: %s", path, metadata)
    return metadata


def split_audio(input_path: str, policy: SplitPolicy, *, output_dir: Optional[str] = None) -> List[str]:
    """Split an audio file into chronologically ordered clips.

    The file is cut into the smallest number of equal-length clips that are
    each no longer than ``policy.max_seconds``.  ``policy.min_seconds`` is a
    soft bound: a warning is logged when equal clips come out shorter.

    Returns:
        Local paths of the clips in playback order, named
        ``<stem>-<index>.<ext>`` with a zero-based index.
    """
    output_dir = output_dir or os.path.join(os.path.dirname(input_path), "clips")
    os.makedirs(output_dir, exist_ok=True)
    ext = extension_of(input_path) or config.NORMALIZED_FORMAT
    stem = Path(input_path).stem

    audio = AudioSegment.from_file(input_path)
    duration_ms = len(audio)
    count = max(1, math.ceil(duration_ms / (policy.max_seconds * 1000)))
    clip_ms = math.ceil(duration_ms / count)
    if count > 1 and clip_ms < policy.min_seconds * 1000:
        logger.warning("Clips of %s are %.0fs, shorter than the %.0fs minimum", input_path, clip_ms / 1000, policy.min_seconds)
    logger.info("Splitting %s (%.0fs) into %d clips", input_path, duration_ms / 1000, count)

    clip_paths = []
    for index in range(count):
        clip = audio[index * clip_ms:(index + 1) * clip_ms]
        clip_path = os.path.join(output_dir, f"{stem}-{index}.{ext}")
        clip.export(clip_path, format=ext)
        clip_paths.append(clip_path)
    return clip_paths


def cleanup_temp_dir(path: Optional[str]) -> None:
    """Remove a temporary directory and everything in it.

    Args:
        path: Directory to remove.  Nothing happens if ``path`` is ``None``
            or the directory does not exist.
    """
    if path and os.path.isdir(path):
        shutil.rmtree(path, ignore_errors=True)
