"""
Core package for the Cloud Storage transcription pipeline.

This package contains the components used by the Cloud Functions entrypoints
to normalise and split audio, run speech recognition on each chunk, and
reassemble the per-chunk transcripts of a split file into one transcript.
"""
