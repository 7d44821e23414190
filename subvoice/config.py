"""Configuration loading: default voice, voice table, merge threshold."""

import logging
import os
from dataclasses import dataclass, field

import yaml

from subvoice.constants import API_KEY_ENV, DEFAULT_SPEED
from subvoice.errors import ConfigError
from subvoice.models import VoiceConfig

logger = logging.getLogger(__name__)

TOP_LEVEL_KEYS = {"auth_key", "default", "models", "merge_lines_threshold_ms"}
VOICE_KEYS = {"model", "name", "speed"}

# Returned for identities that have no entry in the voice table. The empty
# model id is rejected when the line is rendered, not when it is parsed.
UNCONFIGURED_VOICE = VoiceConfig(model="", name="", speed=0.0, channel=0)


@dataclass
class Config:
    default: VoiceConfig
    voices: dict[str, VoiceConfig] = field(default_factory=dict)
    merge_lines_threshold_ms: int = 0
    auth_key: str = ""

    def channel_map(self) -> dict[str, int]:
        """Map voice display names to output channels.

        The default voice always owns channel 0; every other distinct name
        gets the next channel in voice-table order.
        """
        channels = {self.default.name: 0}
        for voice in self.voices.values():
            if voice.name not in channels:
                channels[voice.name] = len(channels)
        return channels

    def resolve_voice(self, identity: str | None) -> VoiceConfig:
        """Look up the voice for a speaker identity.

        None, and the default voice's display name when the table has no
        entry under it, resolve to the default voice.
        """
        if identity is None:
            return self.default
        voice = self.voices.get(identity)
        if voice is None:
            if identity == self.default.name:
                return self.default
            logger.warning("Speaker %r has no voice configured", identity)
            return UNCONFIGURED_VOICE
        return voice

    def api_key(self) -> str:
        key = self.auth_key or os.environ.get(API_KEY_ENV, "")
        if not key:
            raise ConfigError(f"No API key: set auth_key in the config file or {API_KEY_ENV}")
        return key


def _parse_voice(label: str, raw) -> VoiceConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"{label}: expected a mapping with model, name and speed")

    problems = [f"unknown field '{key}'" for key in raw if key not in VOICE_KEYS]
    model = raw.get("model", "")
    name = raw.get("name", "")
    speed = raw.get("speed", DEFAULT_SPEED)
    if not isinstance(model, str):
        problems.append("'model' must be a string")
    if not isinstance(name, str):
        problems.append("'name' must be a string")
    if isinstance(speed, bool) or not isinstance(speed, (int, float)):
        problems.append("'speed' must be a number")
    if problems:
        raise ConfigError(f"{label}: " + "; ".join(problems))

    return VoiceConfig(model=model, name=name, speed=float(speed))


def parse_config(data: dict, source: str = "<config>") -> Config:
    """Validate a raw config mapping and build a Config.

    Every display name owns one output channel, so the voices sharing a
    name must share model and speed, and no table entry may reuse the
    default voice's name.

    Voice channels are filled in from the channel map, so every VoiceConfig
    returned by ``resolve_voice`` already knows where it is mixed.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"error parsing config file {source}: expected a mapping")

    unknown = sorted(key for key in data if key not in TOP_LEVEL_KEYS)
    if unknown:
        lines = "\n".join(f"  - unknown field '{key}'" for key in unknown)
        raise ConfigError(f"error parsing config file {source}:\n{lines}")

    if "default" not in data:
        raise ConfigError(f"error parsing config file {source}: 'default' voice is required")
    default = _parse_voice("default", data["default"])
    if not default.model or not default.name:
        raise ConfigError("default: 'model' and 'name' are required")

    raw_models = data.get("models") or {}
    if not isinstance(raw_models, dict):
        raise ConfigError("models: expected a mapping of speaker → voice")
    voices = {
        str(identity): _parse_voice(f"models.{identity}", raw)
        for identity, raw in raw_models.items()
    }

    seen = {}
    for identity, voice in voices.items():
        if voice.name == default.name:
            raise ConfigError(
                f"models.{identity}: display name '{voice.name}' collides with the default voice"
            )
        first = seen.setdefault(voice.name, (identity, voice))
        if (voice.model, voice.speed) != (first[1].model, first[1].speed):
            raise ConfigError(
                f"models.{identity}: display name '{voice.name}' is already used by "
                f"models.{first[0]} with a different model or speed"
            )

    threshold = data.get("merge_lines_threshold_ms", 0) or 0
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise ConfigError("merge_lines_threshold_ms: must be an integer")

    auth_key = data.get("auth_key") or ""
    if not isinstance(auth_key, str):
        raise ConfigError("auth_key: must be a string")

    config = Config(default=default, voices=voices,
                    merge_lines_threshold_ms=threshold, auth_key=auth_key)
    channels = config.channel_map()
    config.default = VoiceConfig(default.model, default.name, default.speed, 0)
    config.voices = {
        identity: VoiceConfig(v.model, v.name, v.speed, channels[v.name])
        for identity, v in voices.items()
    }
    return config


def load_config(path: str) -> Config:
    """Read and validate a YAML config file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"error parsing config file {path}: {e}") from e
    return parse_config(data, source=path)
