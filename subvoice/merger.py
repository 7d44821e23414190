"""Merge consecutive same-speaker cues into single synthesis units."""

import logging

from subvoice.models import Cue, MergedCue, SourceCue
from subvoice.speakers import resolve_speaker

logger = logging.getLogger(__name__)


def _source(cue: Cue, text: str) -> SourceCue:
    return SourceCue(start_ms=cue.start_ms, end_ms=cue.end_ms, text=text.strip())


def merge_cues(cues: list[Cue], threshold_ms: int = 0) -> list[MergedCue]:
    """Collapse runs of cues spoken by the same speaker.

    The next cue joins the current window when it has the same speaker and
    starts no earlier than the window's end and at most ``threshold_ms``
    after it. The gap is measured from the end of the merged window, not
    from the last cue alone. ``threshold_ms <= 0`` disables merging.
    """
    resolved = [resolve_speaker(cue) for cue in cues]
    merged = []

    i = 0
    while i < len(cues):
        cue = cues[i]
        speaker, text = resolved[i]
        texts = [text.strip()]
        sources = [_source(cue, text)]
        end_ms = cue.end_ms

        while threshold_ms > 0 and i + 1 < len(cues):
            nxt = cues[i + 1]
            next_speaker, next_text = resolved[i + 1]
            gap = nxt.start_ms - end_ms
            if next_speaker != speaker or gap < 0 or gap > threshold_ms:
                break
            texts.append(next_text.strip())
            sources.append(_source(nxt, next_text))
            end_ms = max(end_ms, nxt.end_ms)
            i += 1

        merged.append(MergedCue(
            index=len(merged),
            start_ms=cue.start_ms,
            end_ms=end_ms,
            text=" ".join(t for t in texts if t),
            speaker=speaker,
            sources=tuple(sources),
        ))
        i += 1

    if len(merged) < len(cues):
        logger.info("Merged %d cues into %d lines", len(cues), len(merged))
    return merged
