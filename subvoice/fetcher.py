"""Bind merged cues to voices and clips, and synthesize the missing clips."""

import logging
from dataclasses import replace

from subvoice.cache import ClipCache
from subvoice.config import Config
from subvoice.constants import CONTINUITY_WINDOW
from subvoice.errors import ConfigError
from subvoice.models import MergedCue, ScriptLine, SynthesisRequest

logger = logging.getLogger(__name__)


def plan_lines(cues: list[MergedCue], config: Config, cache: ClipCache) -> list[ScriptLine]:
    """Resolve each merged cue's voice and look up its cached clip."""
    lines = []
    for cue in cues:
        voice = config.resolve_voice(cue.speaker)
        lines.append(ScriptLine(cue=cue, voice=voice, identity=cache.identity(cue.text, voice)))
    return lines


def continuity_hints(
    lines: list[ScriptLine],
    index: int,
    window: int = CONTINUITY_WINDOW,
) -> tuple[tuple[str, ...], tuple[str, ...], str]:
    """Collect neighbouring request ids for the line at ``index``.

    Walks up to ``window`` lines back and forward, stopping in each direction
    at the first line without a request id. When the forward walk stops that
    way, the unrendered line's text is returned as the lookahead hint.
    """
    previous = []
    for j in range(index - 1, max(index - window, 0) - 1, -1):
        request_id = lines[j].identity.request_id
        if not request_id:
            break
        previous.append(request_id)

    following = []
    next_text = ""
    for j in range(index + 1, min(index + window, len(lines) - 1) + 1):
        request_id = lines[j].identity.request_id
        if not request_id:
            next_text = lines[j].cue.text
            break
        following.append(request_id)

    return tuple(previous), tuple(following), next_text


def fetch_missing(lines: list[ScriptLine], client, cache: ClipCache) -> list[ScriptLine]:
    """Synthesize every line without a cached clip, in script order.

    Lines are processed one at a time so that each request can reference
    the request ids of the lines rendered before it. Any failure aborts.
    """
    lines = list(lines)
    missing = sum(1 for line in lines if not line.identity.is_rendered)
    if missing:
        logger.info("Synthesizing %d of %d lines", missing, len(lines))

    done = 0
    for i, line in enumerate(lines):
        if line.identity.is_rendered:
            continue
        if not line.voice.model:
            raise ConfigError(
                f"#{line.cue.index + 1:03d}: no voice configured for speaker "
                f"{line.cue.speaker!r}"
            )

        previous, following, next_text = continuity_hints(lines, i)
        request = SynthesisRequest(
            text=line.cue.text,
            voice_id=line.voice.model,
            speed=line.voice.speed,
            previous_request_ids=previous,
            next_request_ids=following,
            next_text=next_text,
        )

        done += 1
        logger.info("[%d/%d] Speaking (as %s) %r", done, missing, line.voice.name, line.cue.text)
        result = client.synthesize(request)
        identity = cache.store(line.identity, result.request_id, result.audio)
        lines[i] = replace(line, identity=identity)

    return lines
