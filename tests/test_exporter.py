"""Tests for output naming, export and the manifest."""

import json
import os
from datetime import datetime
from unittest.mock import patch

import numpy as np
import pytest
from pydub import AudioSegment

from subvoice.errors import CodecError
from subvoice.exporter import build_manifest, export, output_path_for
from subvoice.models import ClipIdentity, MergedCue, MixResult, RenderedClip, TimelineEntry, VoiceConfig


def _mix(frames=441, channels=2):
    return MixResult(samples=np.ones(frames * channels, dtype=np.int16), channels=channels, sample_rate=44100)


def _entries():
    voice = VoiceConfig(model="m", name="Bob", speed=1.0, channel=1)
    cue = MergedCue(index=0, start_ms=0, end_ms=10, text="Hi.", speaker="Bob")
    identity = ClipIdentity(fingerprint="F", stem="/c/F", extension="mp3", path="/c/F.r1.mp3", request_id="r1")
    clip = RenderedClip(cue=cue, voice=voice, identity=identity, duration_ms=10.0)
    return [TimelineEntry(clip=clip, channel=1, start_ms=0, duration_ms=10.0)]


def test_output_path_for():
    now = datetime(2024, 5, 1, 12, 30, 5)
    assert output_path_for("/subs/episode.srt", now) == "/subs/episode_2024-05-01-12-30-05.wav"


def test_export_creates_wav(tmp_path):
    path = export(_mix(), str(tmp_path / "out.wav"))
    audio = AudioSegment.from_wav(path)
    assert audio.channels == 2
    assert audio.frame_count() == 441


def test_export_leaves_no_partial_file(tmp_path):
    output = str(tmp_path / "out.wav")
    export(_mix(), output)
    assert not os.path.exists(output + ".part")


def test_export_failure_cleans_up(tmp_path):
    output = str(tmp_path / "out.wav")
    with patch("subvoice.exporter.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(CodecError, match="disk full"):
            export(_mix(), output)
    assert not os.path.exists(output)
    assert not os.path.exists(output + ".part")


def test_export_writes_manifest(tmp_path):
    output = str(tmp_path / "out.wav")
    mix = _mix()
    manifest = build_manifest(_entries(), mix, {"Narrator": 0, "Bob": 1}, str(tmp_path / "episode.srt"))
    export(mix, output, manifest)

    with open(output + ".json") as f:
        data = json.load(f)
    for field in ["source", "generated_at", "producer_version", "sample_rate",
                  "channels", "duration_seconds", "channel_map", "lines"]:
        assert field in data, f"Missing field: {field}"
    assert data["channel_map"] == {"Narrator": 0, "Bob": 1}
    assert data["lines"][0]["speaker"] == "Bob"
    assert data["lines"][0]["clip"] == "/c/F.r1.mp3"
    assert data["duration_seconds"] == 0.01


def test_manifest_failure_removes_wav(tmp_path):
    output = str(tmp_path / "out.wav")
    os.mkdir(output + ".json")
    with pytest.raises(CodecError, match="Cannot write"):
        export(_mix(), output, {"lines": []})
    assert not os.path.exists(output)
    assert not os.path.exists(output + ".part")
    assert not os.path.exists(output + ".json.part")
