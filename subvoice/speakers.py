"""Speaker identification for subtitle cues."""

import re

from subvoice.models import Cue

# "[Name] remaining text" at the very start of a cue
_PREFIX_RE = re.compile(r"^\s*\[([^\]]*)\]\s*(.+)$", re.DOTALL)


def split_speaker_prefix(text: str) -> tuple[str | None, str]:
    """Split "[Name] text" into ("Name", "text").

    Returns (None, text) when the text has no bracketed prefix.
    """
    match = _PREFIX_RE.match(text)
    if not match or not match.group(1).strip():
        return None, text
    return match.group(1).strip(), match.group(2).strip()


def resolve_speaker(cue: Cue) -> tuple[str | None, str]:
    """Return (speaker identity, effective text) for a cue.

    Priority: explicit voice tag → first leading comment → "[Name]" prefix.
    Only the prefix form changes the text. None means "use the default voice".
    """
    if cue.voice:
        return cue.voice, cue.text
    if cue.comments and cue.comments[0].strip():
        return cue.comments[0].strip(), cue.text
    return split_speaker_prefix(cue.text)
