"""
Orchestration layer for the transcription pipeline.

This module defines the handlers called from the Cloud Function entrypoints
in :mod:`transcriber.main`.  Each handler processes exactly one uploaded
object and runs its steps strictly in sequence:

* :func:`split_audio_upload` normalises an upload to mono FLAC and splits it
  into chunks short enough to transcribe within one function invocation.
  Every chunk is published to the processed bucket, which triggers
  :func:`transcribe_audio_upload` once per chunk.
* :func:`transcribe_audio_upload` transcribes one WAV or FLAC object, uploads
  its transcript and, for the last chunk of a series, compiles the full
  transcript.
* :func:`process_audio_upload` does both in a single function watching a
  single bucket: conversions and splits are written back to the same bucket
  and re-trigger it, everything else is transcribed directly.

Each invocation works in its own temporary directory which is removed when
the handler returns.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import List, Optional, Sequence

from . import audio_processor, config, reassembly, series, stt_service
from .audio_processor import AudioMetadata
from .exceptions import AudioParameterError, EmptyTranscriptionError, UnsupportedFormatError
from .storage_gateway import GcsStore, ObjectStore, gcs_uri

logger = logging.getLogger(__name__)


def _new_work_dir() -> str:
    return tempfile.mkdtemp(prefix="transcriber-")


def _require_mono(metadata: AudioMetadata) -> None:
    """Splitting only accepts single-channel audio."""
    if metadata.channel_count != 1:
        raise AudioParameterError("Channel count", metadata.channel_count)


def _whole_file_name(file_name: str, normalized_path: str) -> str:
    """Object name for an unsplit normalised file, in the folder of ``file_name``."""
    stem = series.split_extension(file_name)[0]
    return series.folder_of(file_name) + series.singleton_name(stem, audio_processor.extension_of(normalized_path))


def write_local_transcript(work_dir: str, audio_name: str, transcription: str) -> str:
    """Write ``transcription`` next to the audio as ``<stem>.txt``.

    Raises:
        EmptyTranscriptionError: If ``transcription`` is empty.
    """
    if not transcription:
        raise EmptyTranscriptionError(audio_name)
    local_path = os.path.join(work_dir, series.transcript_name_for(audio_name))
    with open(local_path, "w", encoding="utf-8") as f:
        f.write(transcription)
    return local_path


def publish_chunks(
    store: ObjectStore,
    chunk_paths: Sequence[str],
    bucket_name: str,
    base: str,
    folder: str = "",
) -> List[str]:
    """Upload ordered chunks as ``<folder><base>-<index>-<total>.<ext>``.

    Each upload fires its own storage event, so this is the fan-out step of a
    split: one transcription invocation follows per published chunk.
    """
    total = len(chunk_paths)
    uris = []
    for index, path in enumerate(chunk_paths):
        name = folder + series.series_member_name(base, index, total, audio_processor.extension_of(path))
        uri = store.upload(path, bucket_name, name)
        logger.info("New split audio file was created at %s", uri)
        uris.append(uri)
    return uris


def _transcribe_local(
    store: ObjectStore,
    bucket_name: str,
    file_name: str,
    local_path: str,
    work_dir: str,
    *,
    output_bucket: str,
    audio_bucket: str,
    speech_client=None,
) -> str:
    """Transcribe a downloaded object, upload its transcript and compile if last."""
    request = stt_service.build_request(local_path, gcs_uri(bucket_name, file_name))
    transcription = stt_service.transcribe(request, client=speech_client)
    transcript_path = write_local_transcript(work_dir, file_name, transcription)
    location = store.upload(transcript_path, output_bucket, content_type="text/plain")
    logger.info("New transcription was created at %s", location)

    if series.is_last_in_series(file_name):
        reassembly.compile_transcriptions(
            file_name,
            store=store,
            transcript_bucket=output_bucket,
            audio_bucket=audio_bucket,
            work_dir=work_dir,
        )
    return location


def split_audio_upload(
    bucket_name: str,
    file_name: str,
    *,
    store: Optional[ObjectStore] = None,
    processed_bucket: str = config.PROCESSED_BUCKET,
    max_clip_seconds: float = config.MAX_CLIP_S,
    min_clip_seconds: float = config.MIN_CLIP_S,
) -> List[str]:
    """Normalise an uploaded recording and publish it for transcription.

    Recordings longer than ``max_clip_seconds`` (or the Speech‑to‑Text
    duration limit) are split and published as a series; shorter ones are
    published once as ``<stem>.flac``, renamed if the stem reads as a
    series chunk.

    Returns:
        The ``gs://`` URIs published to ``processed_bucket``.

    Raises:
        UnsupportedFormatError: If the upload cannot be converted.
        AudioParameterError: If the normalised audio is not mono.
    """
    store = store or GcsStore()
    work_dir = _new_work_dir()
    try:
        local_path = store.download(bucket_name, file_name, work_dir)
        normalized_path = audio_processor.convert_to_flac(local_path)
        metadata = audio_processor.read_metadata(normalized_path)
        _require_mono(metadata)

        limit = min(max_clip_seconds, config.AUDIO_DURATION_LIMIT_S)
        if metadata.duration_seconds <= limit:
            logger.info("%s is %.0fs long; no split needed", file_name, metadata.duration_seconds)
            return [store.upload(normalized_path, processed_bucket, _whole_file_name(file_name, normalized_path))]

        policy = audio_processor.SplitPolicy(min_seconds=min_clip_seconds, max_seconds=limit)
        chunk_paths = audio_processor.split_audio(normalized_path, policy)
        base = series.split_extension(file_name)[0]
        return publish_chunks(store, chunk_paths, processed_bucket, base, series.folder_of(file_name))
    finally:
        audio_processor.cleanup_temp_dir(work_dir)


def transcribe_audio_upload(
    bucket_name: str,
    file_name: str,
    *,
    store: Optional[ObjectStore] = None,
    speech_client=None,
    output_bucket: str = config.OUTPUT_BUCKET,
) -> str:
    """Transcribe one normalised audio object and upload its transcript.

    Returns:
        The ``gs://`` URI of the uploaded transcript.

    Raises:
        UnsupportedFormatError: If the object is not WAV or FLAC.
    """
    if not audio_processor.is_accepted_format(file_name):
        raise UnsupportedFormatError(audio_processor.extension_of(file_name))
    store = store or GcsStore()
    work_dir = _new_work_dir()
    try:
        local_path = store.download(bucket_name, file_name, work_dir)
        return _transcribe_local(
            store,
            bucket_name,
            file_name,
            local_path,
            work_dir,
            output_bucket=output_bucket,
            audio_bucket=bucket_name,
            speech_client=speech_client,
        )
    finally:
        audio_processor.cleanup_temp_dir(work_dir)


def process_audio_upload(
    bucket_name: str,
    file_name: str,
    *,
    store: Optional[ObjectStore] = None,
    speech_client=None,
    output_bucket: str = config.OUTPUT_BUCKET,
    max_clip_seconds: float = config.MAX_CLIP_S,
    min_clip_seconds: float = config.MIN_CLIP_S,
) -> Optional[str]:
    """Handle an upload end to end from a single bucket.

    Returns:
        The ``gs://`` URI of the uploaded transcript, or ``None`` when the
        upload was converted or split and new objects were published for
        another invocation to transcribe.
    """
    store = store or GcsStore()
    work_dir = _new_work_dir()
    try:
        local_path = store.download(bucket_name, file_name, work_dir)
        normalized_path, is_new = audio_processor.normalize_audio(local_path)
        if is_new:
            store.upload(normalized_path, bucket_name, _whole_file_name(file_name, normalized_path))
            logger.info("Normalised copy of %s was uploaded; its own event will continue processing", file_name)
            return None

        metadata = audio_processor.read_metadata(normalized_path)
        limit = min(max_clip_seconds, config.AUDIO_DURATION_LIMIT_S)
        # chunks of an earlier split are transcribed as they are, never split again
        if metadata.duration_seconds > limit and series.parse_series_info(file_name) is None:
            _require_mono(metadata)
            policy = audio_processor.SplitPolicy(min_seconds=min_clip_seconds, max_seconds=limit)
            chunk_paths = audio_processor.split_audio(normalized_path, policy)
            base = series.split_extension(file_name)[0]
            publish_chunks(store, chunk_paths, bucket_name, base, series.folder_of(file_name))
            logger.info("%s was split into %d chunks; terminating", file_name, len(chunk_paths))
            return None

        return _transcribe_local(
            store,
            bucket_name,
            file_name,
            normalized_path,
            work_dir,
            output_bucket=output_bucket,
            audio_bucket=bucket_name,
            speech_client=speech_client,
        )
    finally:
        audio_processor.cleanup_temp_dir(work_dir)
