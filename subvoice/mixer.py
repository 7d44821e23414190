"""Mix timeline clips into one interleaved multi-channel PCM buffer."""

import logging
from typing import Callable

import numpy as np

from subvoice.codec import decode_clip
from subvoice.constants import SAMPLE_MAX, SAMPLE_MIN, SAMPLE_RATE
from subvoice.models import MixResult, TimelineEntry

logger = logging.getLogger(__name__)


def ms_to_frames(ms: float, sample_rate: int = SAMPLE_RATE) -> int:
    return int(round(ms * sample_rate / 1000))


def mix_entries(
    entries: list[TimelineEntry],
    decode: Callable[[str], np.ndarray] = decode_clip,
    sample_rate: int = SAMPLE_RATE,
) -> MixResult:
    """Sum every entry's clip into its channel at its start offset.

    The buffer is sized to the latest clip end. Samples that would land past
    the end are dropped. Overlapping samples on one channel are added in
    32-bit and the sum is saturated to the 16-bit range.
    """
    if not entries:
        return MixResult(samples=np.zeros(0, dtype=np.int16), channels=1, sample_rate=sample_rate)

    channels = max(entry.channel for entry in entries) + 1
    total_frames = max(
        ms_to_frames(entry.start_ms, sample_rate) + ms_to_frames(entry.duration_ms, sample_rate)
        for entry in entries
    )
    buffer = np.zeros((total_frames, channels), dtype=np.int32)

    for entry in entries:
        samples = decode(entry.clip.identity.path)
        start = ms_to_frames(entry.start_ms, sample_rate)
        count = min(len(samples), max(total_frames - start, 0))
        if count < len(samples):
            logger.debug("Clipped %d samples of %s", len(samples) - count, entry.clip.identity.path)
        buffer[start:start + count, entry.channel] += samples[:count]

    clipped = np.count_nonzero((buffer < SAMPLE_MIN) | (buffer > SAMPLE_MAX))
    if clipped:
        logger.warning("Saturated %d summed samples to the 16-bit range", clipped)

    mixed = np.clip(buffer, SAMPLE_MIN, SAMPLE_MAX).astype(np.int16)
    return MixResult(samples=mixed.reshape(-1), channels=channels, sample_rate=sample_rate)
