"""Data models for the subtitle rendering pipeline.

All times are integer milliseconds unless the field name says otherwise.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Cue:
    index: int                  # position in the subtitle file, 0-based
    start_ms: int
    end_ms: int
    text: str
    voice: str = ""             # explicit voice tag, e.g. WebVTT <v Name>
    comments: tuple[str, ...] = ()


@dataclass(frozen=True)
class SourceCue:
    """A cue as it was before merging, kept for "merged from" reporting."""
    start_ms: int
    end_ms: int
    text: str

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class MergedCue:
    index: int                  # position in the merged sequence
    start_ms: int
    end_ms: int
    text: str                   # effective text, speaker prefixes stripped
    speaker: str | None         # None → configured default voice
    sources: tuple[SourceCue, ...] = ()

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class VoiceConfig:
    model: str                  # TTS voice id
    name: str                   # display name, also used in clip filenames
    speed: float
    channel: int = 0


@dataclass(frozen=True)
class ClipIdentity:
    """Content-addressed location of a rendered clip.

    ``stem`` is the full path up to (not including) the request id; the
    concrete file is ``<stem>.<request_id>.<extension>``.
    """
    fingerprint: str
    stem: str
    extension: str
    path: str | None = None
    request_id: str | None = None

    def path_for(self, request_id: str) -> str:
        return f"{self.stem}.{request_id}.{self.extension}"

    @property
    def is_rendered(self) -> bool:
        return self.path is not None


@dataclass(frozen=True)
class ScriptLine:
    """A merged cue bound to its voice and clip identity, ready to render."""
    cue: MergedCue
    voice: VoiceConfig
    identity: ClipIdentity


@dataclass(frozen=True)
class RenderedClip:
    cue: MergedCue
    voice: VoiceConfig
    identity: ClipIdentity
    duration_ms: float


@dataclass(frozen=True)
class TimelineEntry:
    clip: RenderedClip
    channel: int
    start_ms: int
    duration_ms: float
    overlap_ms: float = 0.0     # signed; end of this clip minus start of the next

    @property
    def end_ms(self) -> float:
        return self.start_ms + self.duration_ms


@dataclass(frozen=True)
class SynthesisRequest:
    text: str
    voice_id: str
    speed: float
    previous_request_ids: tuple[str, ...] = ()
    next_request_ids: tuple[str, ...] = ()
    next_text: str = ""


@dataclass(frozen=True)
class SynthesisResult:
    audio: bytes
    request_id: str


@dataclass
class MixResult:
    samples: np.ndarray         # interleaved int16, frames × channels
    channels: int
    sample_rate: int

    @property
    def frames(self) -> int:
        return len(self.samples) // self.channels if self.channels else 0

    @property
    def duration_ms(self) -> float:
        return self.frames * 1000 / self.sample_rate if self.sample_rate else 0.0
