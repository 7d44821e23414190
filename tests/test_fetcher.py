"""Tests for voice binding, continuity hints and clip fetching."""

import os

import pytest

from subvoice.cache import ClipCache
from subvoice.errors import ConfigError, SynthesisError
from subvoice.fetcher import continuity_hints, fetch_missing, plan_lines
from subvoice.models import ClipIdentity, MergedCue, ScriptLine, VoiceConfig

VOICE = VoiceConfig(model="v", name="V", speed=1.0)


def _merged(index, text, speaker=None, start=None):
    start = index * 1000 if start is None else start
    return MergedCue(index=index, start_ms=start, end_ms=start + 900, text=text, speaker=speaker)


def _line(index, request_id=None):
    identity = ClipIdentity(
        fingerprint="F", stem=f"/clips/{index}", extension="wav",
        path=f"/clips/{index}.{request_id}.wav" if request_id else None,
        request_id=request_id,
    )
    return ScriptLine(cue=_merged(index, f"line {index}"), voice=VOICE, identity=identity)


# --- Continuity hints ---

def test_hints_all_known():
    lines = [_line(i, f"r{i}") for i in range(9)]
    previous, following, next_text = continuity_hints(lines, 4)
    assert previous == ("r3", "r2", "r1")
    assert following == ("r5", "r6", "r7")
    assert next_text == ""


def test_hints_at_edges():
    lines = [_line(i, f"r{i}") for i in range(3)]
    assert continuity_hints(lines, 0) == ((), ("r1", "r2"), "")
    assert continuity_hints(lines, 2) == (("r1", "r0"), (), "")


def test_hints_stop_at_unrendered_neighbour():
    lines = [_line(0, "r0"), _line(1), _line(2, "r2"), _line(3, "r3"), _line(4), _line(5, "r5")]
    previous, following, next_text = continuity_hints(lines, 2)
    assert previous == ()
    assert following == ("r3",)
    assert next_text == "line 4"


def test_hints_next_text_only_for_first_gap():
    lines = [_line(0), _line(1), _line(2)]
    assert continuity_hints(lines, 0) == ((), (), "line 1")


# --- Planning ---

def test_plan_lines_binds_voice_and_identity(config, tmp_path):
    cache = ClipCache(str(tmp_path), extension="wav")
    lines = plan_lines([_merged(0, "Hi."), _merged(1, "Yo.", speaker="Bob")], config, cache)
    assert lines[0].voice.name == "Narrator"
    assert lines[0].voice.channel == 0
    assert lines[1].voice.name == "Bob"
    assert lines[1].voice.channel == 2
    assert not any(line.identity.is_rendered for line in lines)


# --- Fetching ---

def test_fetch_missing_renders_and_stores(config, tmp_path, fake_client_cls):
    cache = ClipCache(str(tmp_path), extension="wav")
    client = fake_client_cls()
    lines = plan_lines([_merged(0, "One."), _merged(1, "Two.", speaker="Alice")], config, cache)

    result = fetch_missing(lines, client, cache)

    assert [line.identity.request_id for line in result] == ["req1", "req2"]
    assert all(os.path.exists(line.identity.path) for line in result)
    assert client.requests[0].voice_id == "voice-narrator"
    assert client.requests[1].voice_id == "voice-alice"
    assert client.requests[1].speed == 1.1


def test_fetch_missing_chains_request_ids(config, tmp_path, fake_client_cls):
    """Freshly rendered lines become continuity hints for later ones."""
    cache = ClipCache(str(tmp_path), extension="wav")
    client = fake_client_cls()
    lines = plan_lines([_merged(i, f"Line {i}.") for i in range(3)], config, cache)

    fetch_missing(lines, client, cache)

    assert client.requests[0].previous_request_ids == ()
    assert client.requests[0].next_text == "Line 1."
    assert client.requests[1].previous_request_ids == ("req1",)
    assert client.requests[2].previous_request_ids == ("req2", "req1")


def test_fetch_missing_skips_cached_and_uses_their_ids(config, tmp_path, fake_client_cls):
    cache = ClipCache(str(tmp_path), extension="wav")
    narrator = config.resolve_voice(None)
    cache.store(cache.identity("Second.", narrator), "cached-2", b"audio")

    client = fake_client_cls()
    lines = plan_lines([_merged(0, "First."), _merged(1, "Second.")], config, cache)
    result = fetch_missing(lines, client, cache)

    assert len(client.requests) == 1
    assert client.requests[0].text == "First."
    assert client.requests[0].next_request_ids == ("cached-2",)
    assert result[1].identity.request_id == "cached-2"


def test_second_run_does_not_synthesize(config, tmp_path, fake_client_cls):
    cues = [_merged(0, "One."), _merged(1, "Two.", speaker="Bob")]
    cache = ClipCache(str(tmp_path), extension="wav")
    fetch_missing(plan_lines(cues, config, cache), fake_client_cls(), cache)

    client = fake_client_cls()
    lines = plan_lines(cues, config, ClipCache(str(tmp_path), extension="wav"))
    assert all(line.identity.is_rendered for line in lines)
    fetch_missing(lines, client, cache)
    assert client.requests == []


def test_unconfigured_speaker_fails_at_render_time(config, tmp_path, fake_client_cls):
    cache = ClipCache(str(tmp_path), extension="wav")
    lines = plan_lines([_merged(0, "Who?", speaker="Zed")], config, cache)
    with pytest.raises(ConfigError, match="Zed"):
        fetch_missing(lines, fake_client_cls(), cache)


def test_synthesis_failure_aborts(config, tmp_path, fake_client_cls):
    cache = ClipCache(str(tmp_path), extension="wav")
    client = fake_client_cls(fail_on="Two")
    lines = plan_lines([_merged(i, t) for i, t in enumerate(["One.", "Two.", "Three."])], config, cache)
    with pytest.raises(SynthesisError):
        fetch_missing(lines, client, cache)
    assert len(client.requests) == 1
