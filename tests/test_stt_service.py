from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from transcriber import stt_service
from transcriber.audio_processor import AudioMetadata
from transcriber.exceptions import AudioParameterError, OversizedInputError


def _operation(response, pending=0):
    op = Mock()
    op.done.side_effect = [False] * pending + [True]
    op.result.return_value = response
    op.metadata = SimpleNamespace(progress_percent=50)
    return op


class FakeSpeechClient:
    def __init__(self, operation):
        self.operation = operation
        self.requests = []

    def long_running_recognize(self, request=None):
        self.requests.append(request)
        return self.operation


def _response(*transcripts):
    results = [SimpleNamespace(alternatives=[SimpleNamespace(transcript=t)]) for t in transcripts]
    results.append(SimpleNamespace(alternatives=[]))
    return SimpleNamespace(results=results)


def _metadata(**overrides):
    values = dict(duration_seconds=300.0, sample_rate_hz=16_000, bit_rate_kbps=128.0, channel_count=1)
    values.update(overrides)
    return AudioMetadata(**values)


def test_valid_metadata_passes():
    stt_service.validate_metadata(_metadata())
    stt_service.validate_metadata(_metadata(channel_count=2))


@pytest.mark.parametrize(
    "overrides,error",
    [
        ({"duration_seconds": 180 * 60 + 1}, OversizedInputError),
        ({"bit_rate_kbps": 16.0}, AudioParameterError),
        ({"bit_rate_kbps": 500.0}, AudioParameterError),
        ({"sample_rate_hz": 4_000}, AudioParameterError),
        ({"sample_rate_hz": 96_000}, AudioParameterError),
    ],
)
def test_out_of_range_metadata_is_rejected(overrides, error):
    with pytest.raises(error):
        stt_service.validate_metadata(_metadata(**overrides))


def test_build_request_carries_channel_count(monkeypatch):
    monkeypatch.setattr(stt_service, "read_metadata", lambda path: _metadata(channel_count=2))
    request = stt_service.build_request("/tmp/talk.flac", "gs://bucket/talk.flac")
    assert request.audio.uri == "gs://bucket/talk.flac"
    assert request.config.language_code == "en-US"
    assert request.config.audio_channel_count == 2


def test_transcribe_joins_top_alternatives(monkeypatch):
    monkeypatch.setattr(stt_service, "read_metadata", lambda path: _metadata())
    request = stt_service.build_request("/tmp/talk.flac", "gs://bucket/talk.flac")
    client = FakeSpeechClient(_operation(_response("hello there", "general kenobi")))
    assert stt_service.transcribe(request, client=client) == "hello there\ngeneral kenobi"
    assert client.requests == [request]


def test_transcribe_reports_progress_until_done(monkeypatch):
    monkeypatch.setattr(stt_service, "read_metadata", lambda path: _metadata())
    request = stt_service.build_request("/tmp/talk.flac", "gs://bucket/talk.flac")
    client = FakeSpeechClient(_operation(_response("hi"), pending=2))
    seen = []
    text = stt_service.transcribe(request, client=client, on_progress=seen.append, poll_interval=0)
    assert text == "hi"
    assert [m.progress_percent for m in seen] == [50, 50]
