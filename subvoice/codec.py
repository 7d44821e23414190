"""Decode clips to 16-bit PCM and encode the final mix."""

import os

import numpy as np
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from subvoice.constants import BIT_DEPTH, SAMPLE_RATE
from subvoice.errors import CodecError
from subvoice.models import MixResult


def _load(path: str) -> AudioSegment:
    fmt = os.path.splitext(path)[1].lstrip(".").lower() or None
    try:
        audio = AudioSegment.from_file(path, format=fmt)
    except (CouldntDecodeError, OSError, EOFError, ValueError) as e:
        raise CodecError(f"Cannot decode {path}: {e}") from e

    if audio.frame_rate != SAMPLE_RATE:
        raise CodecError(
            f"{path}: sample rate {audio.frame_rate} Hz, expected {SAMPLE_RATE} Hz"
        )
    return audio


def decode_clip(path: str) -> np.ndarray:
    """Decode a clip to mono int16 samples at SAMPLE_RATE.

    Multi-channel clips contribute their first channel only.
    """
    audio = _load(path)
    if audio.sample_width != BIT_DEPTH // 8:
        audio = audio.set_sample_width(BIT_DEPTH // 8)
    if audio.channels > 1:
        audio = audio.split_to_mono()[0]
    return np.array(audio.get_array_of_samples(), dtype=np.int16)


def probe_duration_ms(path: str) -> float:
    """Duration of a clip in milliseconds."""
    audio = _load(path)
    return audio.frame_count() * 1000 / audio.frame_rate


def encode_wav(mix: MixResult, path: str) -> None:
    """Write an interleaved int16 mix as a multi-channel WAV file."""
    audio = AudioSegment(
        data=mix.samples.astype("<i2").tobytes(),
        sample_width=BIT_DEPTH // 8,
        frame_rate=mix.sample_rate,
        channels=mix.channels,
    )
    try:
        audio.export(path, format="wav").close()
    except OSError as e:
        raise CodecError(f"Cannot write {path}: {e}") from e
