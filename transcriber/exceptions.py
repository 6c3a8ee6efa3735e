"""Exceptions raised by the transcription pipeline."""


class TranscriberError(Exception):
    """Base class for errors that fail a pipeline invocation."""


class UnsupportedFormatError(TranscriberError):
    """Raised when an audio file can neither be accepted nor converted."""

    def __init__(self, extension: str, cause: Exception | None = None):
        self.extension = extension
        self.cause = cause
        super().__init__(f"The .{extension} file format is not supported")


class OversizedInputError(TranscriberError):
    """Raised when audio is longer than the speech service accepts."""

    def __init__(self, duration_seconds: float, limit_seconds: float):
        self.duration_seconds = duration_seconds
        self.limit_seconds = limit_seconds
        super().__init__(
            f"Input file is {duration_seconds:.0f}s long, over the {limit_seconds:.0f}s limit, and must be split"
        )


class AudioParameterError(TranscriberError):
    """Raised when bit rate, sample rate or channel count is out of range."""

    def __init__(self, parameter: str, value: float):
        self.parameter = parameter
        self.value = value
        super().__init__(f"{parameter} {value} is not supported")


class EmptyTranscriptionError(TranscriberError):
    """Raised when the speech service returns no text."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"No transcription was found for '{file_name}'")
