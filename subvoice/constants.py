"""All magic numbers and configuration constants."""

SAMPLE_RATE = 44100                 # Hz — mix rate, matches the TTS output format
BIT_DEPTH = 16                      # bits per sample in the mix and output file
SAMPLE_MIN = -32768                 # 16-bit saturation floor
SAMPLE_MAX = 32767                  # 16-bit saturation ceiling
CONTINUITY_WINDOW = 3               # request ids passed on each side of a line
SLUG_MAX_LENGTH = 50                # chars of text kept in a clip filename
FINGERPRINT_BYTES = 4               # md5 prefix length → 8 hex chars
CLIP_EXTENSION = "mp3"              # container of clips returned by the TTS service
OUTPUT_EXTENSION = "wav"            # container of the final mix
TTS_TIMEOUT_SECONDS = 30.0          # per-request timeout for synthesis calls
TTS_MODEL_ID = "eleven_multilingual_v2"
TTS_OUTPUT_FORMAT = "mp3_44100_128"
TTS_SPEAKER_BOOST = True
DEFAULT_SPEED = 1.0                 # speech rate when a voice entry omits it
DEFAULT_CONFIG_PATH = "config.yaml"
API_KEY_ENV = "ELEVENLABS_API_KEY"
OUTPUT_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"
VERSION = "0.1.0"
