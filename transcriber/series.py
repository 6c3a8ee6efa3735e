"""
Series naming for split audio files.

When a long recording is split, every chunk is uploaded under a name of the
form ``<base>-<index>-<total>.<ext>``, e.g. ``interview-3-13.flac`` is the
fourth of thirteen chunks cut from ``interview.flac``.  The transcript of a
chunk keeps the same stem with a ``.txt`` extension.  Nothing else records
which chunks belong together, so the functions in this module are the only
place the series identity is read or written.

Names are classified into three kinds:

* ``MEMBER`` – a valid ``-<index>-<total>`` suffix with ``index < total``.
* ``SINGLETON`` – no numeric series suffix; the file was never split.
* ``MALFORMED`` – a numeric-looking suffix that breaks the rules above.

Only members ever take part in reassembly.
"""

from __future__ import annotations

import enum
import logging
import os
import posixpath
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

FULL_TRANSCRIPT_SUFFIX = "FullTranscript"
TRANSCRIPT_EXTENSION = "txt"
WHOLE_FILE_SUFFIX = "whole"

_DIGITS_RE = re.compile(r"^[0-9]+$")


class NameKind(enum.Enum):
    MEMBER = "member"
    SINGLETON = "singleton"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class SeriesInfo:
    base: str
    index: int
    total: int
    extension: str
    # folder of the audio chunks, e.g. "uploads/", empty at the bucket root
    prefix: str = ""

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    def member_name(self, index: int, extension: Optional[str] = None) -> str:
        """Name of the sibling at ``index`` in this series."""
        return series_member_name(self.base, index, self.total, extension or self.extension)

    def audio_object_name(self, index: int) -> str:
        """Full object name of the audio chunk at ``index``, folder included."""
        return self.prefix + self.member_name(index)


@dataclass(frozen=True)
class ParsedName:
    kind: NameKind
    stem: str
    extension: str
    info: Optional[SeriesInfo] = None


def folder_of(object_name: str) -> str:
    """Folder part of an object name with a trailing slash, or an empty string."""
    folder = posixpath.dirname(object_name)
    return f"{folder}/" if folder else ""


def split_extension(filename: str) -> tuple[str, str]:
    """Return ``(stem, extension)`` of the final path component of ``filename``."""
    stem, ext = os.path.splitext(os.path.basename(filename))
    return stem, ext.lstrip(".")


def classify_name(filename: str) -> ParsedName:
    """Classify ``filename`` as a series member, a singleton or malformed.

    ``base`` is everything before the last two hyphen-delimited segments, so a
    base may itself contain hyphens (``my-talk-0-2.flac`` has base
    ``my-talk``).
    """
    stem, ext = split_extension(filename)
    parts = stem.split("-")
    if len(parts) < 2:
        return ParsedName(NameKind.SINGLETON, stem, ext)
    base = "-".join(parts[:-2])
    index_str, total_str = parts[-2], parts[-1]
    if not _DIGITS_RE.match(total_str):
        return ParsedName(NameKind.SINGLETON, stem, ext)
    if not _DIGITS_RE.match(index_str):
        # ``song--3``: a numeric total behind an empty index
        if index_str == "":
            return ParsedName(NameKind.MALFORMED, stem, ext)
        return ParsedName(NameKind.SINGLETON, stem, ext)
    index, total = int(index_str), int(total_str)
    if not base or index >= total:
        return ParsedName(NameKind.MALFORMED, stem, ext)
    return ParsedName(NameKind.MEMBER, stem, ext, SeriesInfo(base, index, total, ext, folder_of(filename)))


def parse_series_info(filename: str) -> Optional[SeriesInfo]:
    """Return the series position encoded in ``filename``, or ``None``.

    ``None`` means the file does not take part in a series, either because it
    was never split or because its suffix is malformed.
    """
    parsed = classify_name(filename)
    if parsed.kind is NameKind.MALFORMED:
        logger.warning("Ignoring malformed series name %s", filename)
    return parsed.info


def is_last_in_series(filename: str) -> bool:
    """Whether ``filename`` is the terminal chunk (``index == total - 1``) of a series."""
    info = parse_series_info(filename)
    if info is None:
        return False
    logger.info("%s is chunk %d of %d; last in series: %s", filename, info.index + 1, info.total, info.is_last)
    return info.is_last


def series_member_name(base: str, index: int, total: int, extension: str) -> str:
    return f"{base}-{index}-{total}.{extension}"


def singleton_name(stem: str, extension: str) -> str:
    """Name for a whole, unsplit file that can never be read as a series member.

    An upload such as ``interview-2-3.mp3`` would otherwise be mistaken for
    the last chunk of a three-part series once normalised.
    """
    name = f"{stem}.{extension}"
    if classify_name(name).kind is NameKind.MEMBER:
        renamed = f"{stem}-{WHOLE_FILE_SUFFIX}.{extension}"
        logger.warning("%s looks like a series chunk; publishing it as %s", name, renamed)
        return renamed
    return name


def full_transcript_name(base: str) -> str:
    return f"{base}-{FULL_TRANSCRIPT_SUFFIX}.{TRANSCRIPT_EXTENSION}"


def transcript_name_for(audio_name: str) -> str:
    """Transcript object name for an audio object: same stem, ``.txt`` extension."""
    stem, _ = split_extension(audio_name)
    return f"{stem}.{TRANSCRIPT_EXTENSION}"
