"""
Cloud Function entrypoints for the transcription pipeline.

This module exposes the following functions:

* ``split_file`` – background function for uploads to the input bucket.
  Normalises the audio and splits long recordings into the processed bucket.
* ``transcribe_file`` – background function for the processed bucket.
  Transcribes one chunk and compiles the full transcript after the last one.
* ``gcs_event`` – single-bucket alternative that converts, splits and
  transcribes from one function.
* ``http_trigger`` – an HTTP function you can invoke manually for testing.

Environment variables (see :mod:`transcriber.config`):

* ``OUTPUT_BUCKET`` – Bucket for transcripts (default ``transcriber-output``).
* ``PROCESSED_BUCKET`` – Bucket for normalised chunks (default
  ``transcriber-processed``).
* ``LANGUAGE_CODE`` – Recognition language (default ``en-US``).

Deploy ``split_file`` on the input bucket and ``transcribe_file`` on the
processed bucket, or ``gcs_event`` alone on a single bucket.
"""

import logging
from typing import Any, Dict

from . import tasks

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

# stage name -> handler in :mod:`transcriber.tasks`
STAGES = {
    "split": "split_audio_upload",
    "transcribe": "transcribe_audio_upload",
    "process": "process_audio_upload",
}


def _dispatch(stage: str, event: Dict[str, Any]) -> Any:
    bucket = event.get("bucket")
    name = event.get("name")
    if not bucket or not name:
        logger.warning("Received event with missing bucket or name: %s", event)
        return None
    logger.info("Handling %s stage for gs://%s/%s", stage, bucket, name)
    handler = getattr(tasks, STAGES[stage])
    return handler(bucket, name)


def split_file(event: Dict[str, Any], context: Any) -> None:
    """Background function triggered by uploads to the input bucket."""
    _dispatch("split", event)


def transcribe_file(event: Dict[str, Any], context: Any) -> None:
    """Background function triggered by uploads to the processed bucket."""
    _dispatch("transcribe", event)


def gcs_event(event: Dict[str, Any], context: Any) -> None:
    """Background function triggered by Cloud Storage.

    The event contains the ``bucket`` and ``name`` of the uploaded file.
    Converted and split files are written back to the same bucket and come
    back through this function as new events.
    """
    _dispatch("process", event)


def http_trigger(request):
    """HTTP entrypoint for manual invocation.

    You can call this function via HTTP with a JSON body containing ``bucket``
    and ``name`` fields to simulate a Cloud Storage event.  An optional
    ``stage`` field selects ``split``, ``transcribe`` or ``process``
    (the default).  This is handy for local testing or manual reprocessing.
    """
    data = request.get_json(silent=True) or {}
    bucket = data.get("bucket")
    name = data.get("name")
    stage = data.get("stage", "process")
    if not bucket or not name:
        return "Missing 'bucket' or 'name' in request", 400
    if stage not in STAGES:
        return f"Unknown stage '{stage}'", 400
    try:
        _dispatch(stage, {"bucket": bucket, "name": name})
        return "OK", 200
    except Exception as exc:
        logger.exception("Error in HTTP trigger: %s", exc)
        return f"Error: {exc}", 500
