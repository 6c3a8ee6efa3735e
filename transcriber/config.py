"""
Deployment configuration for the transcription pipeline.

Every value can be overridden through an environment variable of the same
name.  The defaults match the buckets and limits the functions are deployed
with, so no variable is required for a standard deployment.
"""

import os

# Buckets
OUTPUT_BUCKET = os.environ.get("OUTPUT_BUCKET", "transcriber-output")
PROCESSED_BUCKET = os.environ.get("PROCESSED_BUCKET", "transcriber-processed")

# Speech-to-Text
LANGUAGE_CODE = os.environ.get("LANGUAGE_CODE", "en-US")
AUDIO_DURATION_LIMIT_S = int(os.environ.get("AUDIO_DURATION_LIMIT_S", 180 * 60))
BIT_RATE_RANGE_KBPS = (32, 320)
SAMPLE_RATE_RANGE_HZ = (8_000, 48_000)

# Splitting.  Cloud Functions time out after 9 minutes; one minute is kept
# as a buffer for download, upload and compilation.
FUNCTION_TIMEOUT_S = int(os.environ.get("FUNCTION_TIMEOUT_S", 9 * 60))
MAX_CLIP_S = FUNCTION_TIMEOUT_S - 60
MIN_CLIP_S = int(os.environ.get("MIN_CLIP_S", 5 * 60))

# Normalisation
NORMALIZED_FORMAT = os.environ.get("NORMALIZED_FORMAT", "flac")
ACCEPTED_FORMATS = {"wav", "flac"}
TARGET_SAMPLE_RATE = int(os.environ.get("TARGET_SAMPLE_RATE", 16_000))
