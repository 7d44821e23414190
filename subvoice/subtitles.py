"""Read subtitle files into an ordered list of Cues."""

import html
import os
import re
from datetime import timedelta

import srt

from subvoice.errors import ParseError
from subvoice.models import Cue

# 00:01:02.345 or 01:02.345 (SRT-style comma also accepted)
_VTT_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{2})[.,](\d{3})$")

# <v Name> or <v.class Name>
_VOICE_SPAN_RE = re.compile(r"<v(?:\.[^\s>]+)*\s+([^>]+)>")

_TAG_RE = re.compile(r"<[^>]+>")


def _timedelta_to_ms(value: timedelta) -> int:
    return value // timedelta(milliseconds=1)


def _vtt_timestamp_to_ms(value: str) -> int:
    match = _VTT_TIMESTAMP_RE.match(value.strip())
    if not match:
        raise ParseError(f"Invalid WebVTT timestamp: {value!r}")
    hours, minutes, seconds, millis = match.groups()
    return ((int(hours or 0) * 60 + int(minutes)) * 60 + int(seconds)) * 1000 + int(millis)


def _clean_text(lines: list[str]) -> str:
    text = " ".join(line.strip() for line in lines if line.strip())
    return html.unescape(_TAG_RE.sub("", text)).strip()


def parse_srt(payload: str) -> list[Cue]:
    """Parse SRT content. SRT has no voice tags or comments."""
    try:
        subtitles = list(srt.parse(payload))
    except srt.SRTParseError as e:
        raise ParseError(f"Invalid SRT content: {e}") from e

    return [
        Cue(
            index=i,
            start_ms=_timedelta_to_ms(sub.start),
            end_ms=_timedelta_to_ms(sub.end),
            text=_clean_text(sub.content.splitlines()),
        )
        for i, sub in enumerate(subtitles)
    ]


def parse_webvtt(payload: str) -> list[Cue]:
    """Parse WebVTT content.

    NOTE blocks become comments on the cue that follows them, and the first
    voice span of a cue becomes its voice tag.
    """
    blocks = re.split(r"\n\s*\n", payload.replace("\r\n", "\n").strip())
    if not blocks or not blocks[0].lstrip("\ufeff").startswith("WEBVTT"):
        raise ParseError("Missing WEBVTT header")

    cues = []
    pending_comments = []
    for block in blocks[1:]:
        lines = block.split("\n")
        head = lines[0].strip()

        if head.startswith("NOTE"):
            note = " ".join([head[4:].strip()] + [line.strip() for line in lines[1:]]).strip()
            if note:
                pending_comments.append(note)
            continue
        if head.startswith(("STYLE", "REGION")):
            continue

        # Optional cue identifier line before the timing line
        if "-->" not in head:
            lines = lines[1:]
            if not lines or "-->" not in lines[0]:
                raise ParseError(f"Cue without timing line: {head!r}")

        start_value, end_value = lines[0].split("-->", 1)
        # Cue settings may follow the end timestamp
        end_value = end_value.strip().split()[0] if end_value.strip() else ""
        body = lines[1:]

        voice_match = _VOICE_SPAN_RE.search("\n".join(body))
        cues.append(Cue(
            index=len(cues),
            start_ms=_vtt_timestamp_to_ms(start_value),
            end_ms=_vtt_timestamp_to_ms(end_value),
            text=_clean_text(body),
            voice=voice_match.group(1).strip() if voice_match else "",
            comments=tuple(pending_comments),
        ))
        pending_comments = []

    return cues


def load_cues(path: str) -> list[Cue]:
    """Load an .srt or .vtt file."""
    ext = os.path.splitext(path)[1].lower()
    if ext not in (".srt", ".vtt"):
        raise ParseError(f"Unsupported subtitle format: {path}")

    try:
        with open(path, encoding="utf-8-sig") as f:
            payload = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Cannot read subtitle file {path}: {e}") from e

    if ext == ".vtt":
        return parse_webvtt(payload)
    return parse_srt(payload)
