"""Content-addressed clip cache on disk.

A clip is stored as ``<root>/<FINGERPRINT>-<voice>-<slug>.<request id>.<ext>``.
The fingerprint covers everything that changes the rendered audio (voice id,
speech rate, text), so an unchanged line always finds its earlier clip, and
the request id is recovered from the filename for continuity hints.
"""

import glob
import hashlib
import logging
import os
import re

from subvoice.constants import CLIP_EXTENSION, FINGERPRINT_BYTES, SLUG_MAX_LENGTH
from subvoice.errors import SynthesisError
from subvoice.models import ClipIdentity, VoiceConfig

logger = logging.getLogger(__name__)

_UNSAFE_RE = re.compile(r"[,.!?'<>:\"/\\|*\x00-\x1f]")


def fingerprint(voice: VoiceConfig, text: str) -> str:
    """Fixed-width uppercase hex digest of voice id, speech rate and text."""
    payload = f"{voice.model}{voice.speed:f}{text}".encode("utf-8")
    return hashlib.md5(payload).digest()[:FINGERPRINT_BYTES].hex().upper()


def slugify(text: str) -> str:
    """Filesystem-safe, lower-cased, underscore-separated text prefix."""
    slug = _UNSAFE_RE.sub("", text).lower().strip()
    slug = slug.replace(" ", "_")
    return slug[:SLUG_MAX_LENGTH]


class ClipCache:
    def __init__(self, root: str, extension: str = CLIP_EXTENSION):
        self.root = os.path.abspath(root)
        self.extension = extension
        self._request_id_re = re.compile(rf"\.([^.]+)\.{re.escape(extension)}$")

    def identity(self, text: str, voice: VoiceConfig) -> ClipIdentity:
        """Derive a clip's identity and resolve it against existing files."""
        fp = fingerprint(voice, text)
        name = _UNSAFE_RE.sub("", voice.name)
        stem = os.path.join(self.root, f"{fp}-{name}-{slugify(text)}")
        return self.lookup(ClipIdentity(fingerprint=fp, stem=stem, extension=self.extension))

    def lookup(self, identity: ClipIdentity) -> ClipIdentity:
        """Return the identity with path and request id filled in on a cache hit."""
        pattern = glob.escape(identity.stem) + ".*" + glob.escape("." + identity.extension)
        for path in sorted(glob.glob(pattern)):
            match = self._request_id_re.search(os.path.basename(path))
            if match:
                return ClipIdentity(
                    fingerprint=identity.fingerprint,
                    stem=identity.stem,
                    extension=identity.extension,
                    path=path,
                    request_id=match.group(1),
                )
        return identity

    def store(self, identity: ClipIdentity, request_id: str, audio: bytes) -> ClipIdentity:
        """Write clip bytes under the request-id-specific path."""
        if not request_id or "." in request_id or os.sep in request_id:
            raise SynthesisError(f"Unusable request id {request_id!r} for {identity.stem}")

        path = identity.path_for(request_id)
        tmp_path = path + ".part"
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(audio)
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise SynthesisError(f"Cannot write clip {path}: {e}") from e

        logger.info("Wrote %s", path)
        return ClipIdentity(
            fingerprint=identity.fingerprint,
            stem=identity.stem,
            extension=identity.extension,
            path=path,
            request_id=request_id,
        )
