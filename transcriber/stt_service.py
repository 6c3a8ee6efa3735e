"""
Google Speech‑to‑Text service wrapper.

This module encapsulates interaction with the Google Cloud Speech API.
:func:`build_request` validates a local copy of the audio against the API's
limits and produces the recognition request for its ``gs://`` URI;
:func:`transcribe` runs the long-running recognition and returns plain text.

Usage::

    from transcriber.stt_service import build_request, transcribe

    request = build_request("/tmp/job/talk-0-3.flac", "gs://my-bucket/talk-0-3.flac")
    text = transcribe(request)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from google.cloud import speech_v1p1beta1 as speech

from . import config
from .audio_processor import AudioMetadata, read_metadata
from .exceptions import AudioParameterError, OversizedInputError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Any], None]

SNIPPET_LENGTH = 25
POLL_INTERVAL_S = 10.0


def validate_metadata(metadata: AudioMetadata) -> None:
    """Check audio parameters against the Speech‑to‑Text limits.

    Args:
        metadata: Parameters read from the local audio file.

    Raises:
        OversizedInputError: If the audio is longer than the API accepts.
        AudioParameterError: If bit rate or sample rate is out of range.
            A channel count other than 1 is only logged; the request carries
            the actual count.
    """
    if metadata.duration_seconds > config.AUDIO_DURATION_LIMIT_S:
        raise OversizedInputError(metadata.duration_seconds, config.AUDIO_DURATION_LIMIT_S)
    low, high = config.BIT_RATE_RANGE_KBPS
    if not low <= metadata.bit_rate_kbps <= high:
        raise AudioParameterError("Bit rate (kbps)", metadata.bit_rate_kbps)
    low, high = config.SAMPLE_RATE_RANGE_HZ
    if not low <= metadata.sample_rate_hz <= high:
        raise AudioParameterError("Sample rate (Hz)", metadata.sample_rate_hz)
    if metadata.channel_count != 1:
        logger.info("Number of channels for this file is %d", metadata.channel_count)


def build_request(
    local_path: str,
    gcs_uri: str,
    *,
    language_code: str = config.LANGUAGE_CODE,
) -> speech.LongRunningRecognizeRequest:
    """Create the recognition request for an audio file in Cloud Storage.

    Args:
        local_path: Local copy of the audio, used to read its metadata.
        gcs_uri: The ``gs://`` URI the API reads the audio from.
        language_code: BCP‑47 language tag (default: ``en-US``).
    """
    metadata = read_metadata(local_path)
    validate_metadata(metadata)
    logger.info("Audio duration for %s: %.1fs", gcs_uri, metadata.duration_seconds)
    recognition_config = speech.RecognitionConfig(
        language_code=language_code,
        audio_channel_count=metadata.channel_count,
    )
    audio = speech.RecognitionAudio(uri=gcs_uri)
    return speech.LongRunningRecognizeRequest(config=recognition_config, audio=audio)


def _log_progress(metadata: Any) -> None:
    percent = getattr(metadata, "progress_percent", None)
    logger.info("Still working ... %s%%", percent if percent is not None else "?")


def transcribe(
    request: speech.LongRunningRecognizeRequest,
    *,
    client: Optional[speech.SpeechClient] = None,
    on_progress: Optional[ProgressCallback] = _log_progress,
    poll_interval: float = POLL_INTERVAL_S,
) -> str:
    """Run long-running recognition and return the transcript text.

    While the operation is pending ``on_progress`` is called with the
    operation metadata every ``poll_interval`` seconds.

    Returns:
        The top alternative of every result, joined with newlines.  May be
        empty if nothing was recognised.
    """
    client = client or speech.SpeechClient()
    logger.info("Starting STT job for %s", request.audio.uri)
    operation = client.long_running_recognize(request=request)
    if on_progress is not None:
        while not operation.done():
            on_progress(operation.metadata)
            time.sleep(poll_interval)
    response = operation.result()
    transcription = "\n".join(
        result.alternatives[0].transcript for result in response.results if result.alternatives
    )
    logger.info("STT job complete for %s: %s...", request.audio.uri, transcription[:SNIPPET_LENGTH])
    return transcription
