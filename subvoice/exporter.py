"""Write the final multi-channel WAV and its provenance manifest."""

import json
import os
from datetime import datetime, timezone

from subvoice.codec import encode_wav
from subvoice.constants import OUTPUT_EXTENSION, OUTPUT_TIMESTAMP_FORMAT, VERSION
from subvoice.errors import CodecError
from subvoice.models import MixResult, TimelineEntry


def output_path_for(script_path: str, now: datetime | None = None) -> str:
    """Timestamped output path beside the subtitle file.

    "/path/to/episode.srt" → "/path/to/episode_2024-05-01-12-30-00.wav"
    """
    if now is None:
        now = datetime.now()
    base = os.path.splitext(script_path)[0]
    return f"{base}_{now.strftime(OUTPUT_TIMESTAMP_FORMAT)}.{OUTPUT_EXTENSION}"


def build_manifest(
    entries: list[TimelineEntry],
    mix: MixResult,
    channels: dict[str, int],
    source: str,
) -> dict:
    return {
        "source": os.path.abspath(source),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "producer_version": VERSION,
        "sample_rate": mix.sample_rate,
        "channels": mix.channels,
        "duration_seconds": round(mix.duration_ms / 1000, 3),
        "channel_map": channels,
        "lines": [
            {
                "index": entry.clip.cue.index + 1,
                "speaker": entry.clip.voice.name,
                "channel": entry.channel,
                "start_ms": entry.start_ms,
                "duration_ms": round(entry.duration_ms, 3),
                "clip": entry.clip.identity.path,
                "text": entry.clip.cue.text,
            }
            for entry in entries
        ],
    }


def export(mix: MixResult, output_path: str, manifest: dict | None = None) -> str:
    """Encode the mix to ``output_path``.

    The WAV and the manifest (``<output_path>.json``, if given) are written
    next to their destinations and renamed into place. If either write
    fails, neither file is left behind.
    """
    targets = [(output_path + ".part", output_path)]
    if manifest is not None:
        targets.append((output_path + ".json.part", output_path + ".json"))

    placed = []
    try:
        encode_wav(mix, targets[0][0])
        if manifest is not None:
            with open(targets[1][0], "w") as f:
                json.dump(manifest, f, indent=2)
        for tmp_path, path in targets:
            os.replace(tmp_path, path)
            placed.append(path)
    except OSError as e:
        for path in placed:
            os.remove(path)
        raise CodecError(f"Cannot write {output_path}: {e}") from e
    finally:
        for tmp_path, _ in targets:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    return output_path
