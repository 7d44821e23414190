"""Place rendered clips on the timeline and detect same-voice overlaps."""

from dataclasses import replace
from typing import Callable

from subvoice.codec import probe_duration_ms
from subvoice.errors import CodecError, OverlapError
from subvoice.models import RenderedClip, ScriptLine, TimelineEntry


def format_ms(ms: float) -> str:
    """Format milliseconds as HH:MM:SS.mmm (negative values get a sign)."""
    sign = "-" if ms < 0 else ""
    total = int(round(abs(ms)))
    hours, rest = divmod(total, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def render_clips(
    lines: list[ScriptLine],
    probe: Callable[[str], float] = probe_duration_ms,
) -> list[RenderedClip]:
    """Probe the duration of every line's clip. All clips must exist."""
    clips = []
    for line in lines:
        if not line.identity.is_rendered:
            raise CodecError(f"#{line.cue.index + 1:03d} has no rendered clip")
        clips.append(RenderedClip(
            cue=line.cue,
            voice=line.voice,
            identity=line.identity,
            duration_ms=probe(line.identity.path),
        ))
    return clips


def build_timeline(clips: list[RenderedClip]) -> list[TimelineEntry]:
    """One entry per clip, with the signed overlap against the next entry."""
    entries = [
        TimelineEntry(
            clip=clip,
            channel=clip.voice.channel,
            start_ms=clip.cue.start_ms,
            duration_ms=clip.duration_ms,
        )
        for clip in clips
    ]
    for i in range(len(entries) - 1):
        entries[i] = replace(entries[i], overlap_ms=entries[i].end_ms - entries[i + 1].start_ms)
    return entries


def is_conflict(entry: TimelineEntry, following: TimelineEntry) -> bool:
    """Clips of the same voice must not overlap; different voices may."""
    return entry.end_ms > following.start_ms and entry.clip.voice.model == following.clip.voice.model


def find_overlaps(entries: list[TimelineEntry]) -> list[TimelineEntry]:
    """Entries whose clip runs into the next entry's clip of the same voice."""
    return [
        entries[i]
        for i in range(len(entries) - 1)
        if is_conflict(entries[i], entries[i + 1])
    ]


def check_overlaps(entries: list[TimelineEntry]) -> None:
    overlaps = find_overlaps(entries)
    if overlaps:
        raise OverlapError(overlaps)


def format_entry(entry: TimelineEntry, conflict: bool = False) -> str:
    """Multi-line diagnostic block for one timeline entry."""
    cue = entry.clip.cue
    voice = entry.clip.voice
    overlap = f" (OVERLAP {format_ms(entry.overlap_ms)})" if conflict else ""
    lines = [
        f"#{cue.index + 1:03d}",
        cue.text,
        f"Speaker:  {voice.name or cue.speaker}, speed: {voice.speed:.2f}, channel: {entry.channel}",
        f"Subtitle: {format_ms(cue.start_ms)} --> {format_ms(cue.end_ms)} "
        f"(duration {format_ms(cue.duration_ms)})",
        f"Audio:    {format_ms(entry.start_ms)} --> {format_ms(entry.end_ms)} "
        f"(duration {format_ms(entry.duration_ms)}){overlap}",
        f"Path:     {entry.clip.identity.path}",
    ]
    if len(cue.sources) > 1:
        lines.append("Merged from:")
        for source in cue.sources:
            lines.append(f"    {source.text}")
            lines.append(
                f"    {format_ms(source.start_ms)} --> {format_ms(source.end_ms)} "
                f"(duration {format_ms(source.duration_ms)})"
            )
    return "\n".join(lines)


def format_report(entries: list[TimelineEntry]) -> str:
    conflicts = {id(entry) for entry in find_overlaps(entries)}
    return "\n\n".join(format_entry(e, id(e) in conflicts) for e in entries)


def format_overlap_report(overlaps: list[TimelineEntry]) -> str:
    lines = ["Overlaps detected:"]
    for entry in overlaps:
        cue = entry.clip.cue
        lines.append(
            f"#{cue.index + 1:03d} {format_ms(entry.overlap_ms)} "
            f"[{format_ms(cue.start_ms)} --> {format_ms(cue.end_ms)}]"
        )
        lines.append(cue.text)
        lines.append("")
    lines.append(
        "Adjust the subtitle timings or the merge threshold and rerun to "
        "generate the final audio file."
    )
    return "\n".join(lines)
