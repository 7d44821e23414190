"""Shared fixtures for subvoice tests."""

import io

import numpy as np
import pytest
from pydub import AudioSegment

from subvoice.config import parse_config
from subvoice.models import SynthesisResult


def make_wav_bytes(duration_ms=100, value=1000, frame_rate=44100, channels=1):
    """WAV clip holding a constant sample value (per channel if a tuple)."""
    frames = int(frame_rate * duration_ms / 1000)
    values = value if isinstance(value, tuple) else (value,) * channels
    samples = np.tile(np.array(values, dtype=np.int16), frames)
    audio = AudioSegment(
        data=samples.tobytes(),
        sample_width=2,
        frame_rate=frame_rate,
        channels=len(values),
    )
    buf = io.BytesIO()
    audio.export(buf, format="wav")
    return buf.getvalue()


def write_wav(path, duration_ms=100, value=1000, **kwargs):
    path.write_bytes(make_wav_bytes(duration_ms, value, **kwargs))
    return str(path)


class FakeSpeechClient:
    """Stands in for SpeechClient; returns numbered request ids."""

    def __init__(self, duration_ms=100, value=1000, fail_on=None):
        self.duration_ms = duration_ms
        self.value = value
        self.fail_on = fail_on
        self.requests = []

    def synthesize(self, request):
        if self.fail_on and self.fail_on in request.text:
            from subvoice.errors import SynthesisError
            raise SynthesisError("quota exceeded")
        self.requests.append(request)
        return SynthesisResult(
            audio=make_wav_bytes(self.duration_ms, self.value),
            request_id=f"req{len(self.requests)}",
        )


@pytest.fixture
def raw_config():
    return {
        "auth_key": "test-key",
        "default": {"model": "voice-narrator", "name": "Narrator", "speed": 1.0},
        "models": {
            "Alice": {"model": "voice-alice", "name": "Alice", "speed": 1.1},
            "Bob": {"model": "voice-bob", "name": "Bob", "speed": 0.9},
        },
    }


@pytest.fixture
def config(raw_config):
    return parse_config(raw_config)


@pytest.fixture
def fake_client_cls():
    return FakeSpeechClient


@pytest.fixture
def write_clip():
    return write_wav


@pytest.fixture
def wav_bytes():
    return make_wav_bytes
