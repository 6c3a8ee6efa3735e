"""
Reassembly of split transcripts.

When the last chunk of a split recording has been transcribed, every
sibling transcript ``<base>-<i>-<total>.txt`` is downloaded in index order,
concatenated into ``<base>-FullTranscript.txt`` and uploaded.  The per-chunk
transcripts and the normalised audio chunks are then deleted because the
full transcript replaces them.

Chronological order comes from the ascending index loop alone; the
splitter numbers clips in playback order.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import Callable, List, Optional, Sequence

from . import series
from .storage_gateway import ObjectStore

logger = logging.getLogger(__name__)

Merger = Callable[[Sequence[str], str], bool]

TRANSCRIPTIONS_DIR = "transcriptions"


def merge_files(input_paths: Sequence[str], output_path: str) -> bool:
    """Concatenate ``input_paths`` byte for byte into ``output_path``.

    Returns:
        ``True`` on success, ``False`` if any file could not be read or the
        output could not be written.
    """
    try:
        with open(output_path, "wb") as out:
            for path in input_paths:
                with open(path, "rb") as src:
                    shutil.copyfileobj(src, out)
    except OSError as exc:
        logger.error("Could not merge %d files into %s: %s", len(input_paths), output_path, exc)
        return False
    return True


def _download_series(store: ObjectStore, info: series.SeriesInfo, bucket_name: str, directory: str) -> List[str]:
    local_paths = []
    for index in range(info.total):
        local_paths.append(store.download(bucket_name, info.member_name(index, series.TRANSCRIPT_EXTENSION), directory))
    return local_paths


def _delete_series(store: ObjectStore, info: series.SeriesInfo, transcript_bucket: str, audio_bucket: str) -> int:
    """Delete the chunk transcripts and audio of a series; return the failure count."""
    failures = 0
    for index in range(info.total):
        targets = (
            (transcript_bucket, info.member_name(index, series.TRANSCRIPT_EXTENSION)),
            (audio_bucket, info.audio_object_name(index)),
        )
        for bucket_name, blob_name in targets:
            try:
                store.delete(bucket_name, blob_name)
            except Exception as exc:
                failures += 1
                logger.error("Could not delete gs://%s/%s: %s", bucket_name, blob_name, exc)
    return failures


def compile_transcriptions(
    terminal_name: str,
    *,
    store: ObjectStore,
    transcript_bucket: str,
    audio_bucket: str,
    work_dir: str,
    merger: Merger = merge_files,
) -> Optional[str]:
    """Build and publish the full transcript of the series ending at ``terminal_name``.

    Args:
        terminal_name: Name of the audio chunk whose transcription finished
            the series, e.g. ``talk-12-13.flac``.  Its extension is the
            extension of every audio chunk in the series.
        store: Object store with ``download``, ``upload`` and ``delete``.
        transcript_bucket: Bucket holding the chunk transcripts; the full
            transcript is uploaded here too.
        audio_bucket: Bucket holding the normalised audio chunks, under the
            same folder as ``terminal_name``.
        work_dir: Local working directory of the current invocation.
        merger: Concatenates the downloaded files into one output file.

    Returns:
        The ``gs://`` URI of the full transcript, or ``None`` if
        ``terminal_name`` is not a series member or merging failed.  A failed
        merge leaves every stored object untouched.
    """
    info = series.parse_series_info(terminal_name)
    if info is None:
        logger.warning("%s is not part of a series; nothing to compile", terminal_name)
        return None
    logger.info("Compiling %d transcripts of %s into a full transcript", info.total, info.base)

    directory = os.path.join(work_dir, TRANSCRIPTIONS_DIR)
    local_paths = _download_series(store, info, transcript_bucket, directory)

    output_path = os.path.join(directory, series.full_transcript_name(info.base))
    if not merger(local_paths, output_path):
        logger.error("Error merging transcripts of %s; leaving chunks in place", info.base)
        return None

    uri = store.upload(output_path, transcript_bucket, series.full_transcript_name(info.base), content_type="text/plain")
    logger.info("Full transcript was created at %s", uri)

    failures = _delete_series(store, info, transcript_bucket, audio_bucket)
    if failures:
        logger.warning("%d chunk objects of %s could not be deleted", failures, info.base)
    return uri
