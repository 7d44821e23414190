"""TTS generation via the ElevenLabs API with request-id continuity."""

import logging

import httpx
from elevenlabs import VoiceSettings
from elevenlabs.client import ElevenLabs
from elevenlabs.core.api_error import ApiError

from subvoice.constants import (
    TTS_MODEL_ID,
    TTS_OUTPUT_FORMAT,
    TTS_SPEAKER_BOOST,
    TTS_TIMEOUT_SECONDS,
)
from subvoice.errors import SynthesisError
from subvoice.models import SynthesisRequest, SynthesisResult

logger = logging.getLogger(__name__)


class SpeechClient:
    """Blocking text-to-speech client.

    Each call is a single round trip; failures are raised, never retried,
    because they usually need an operator (bad text, exhausted quota).
    """

    def __init__(
        self,
        api_key: str,
        model_id: str = TTS_MODEL_ID,
        output_format: str = TTS_OUTPUT_FORMAT,
        timeout: float = TTS_TIMEOUT_SECONDS,
    ):
        self.model_id = model_id
        self.output_format = output_format
        self.client = ElevenLabs(api_key=api_key, timeout=timeout)

    def synthesize(self, request: SynthesisRequest) -> SynthesisResult:
        kwargs = {
            "voice_id": request.voice_id,
            "text": request.text,
            "model_id": self.model_id,
            "output_format": self.output_format,
            "voice_settings": VoiceSettings(
                use_speaker_boost=TTS_SPEAKER_BOOST,
                speed=request.speed,
            ),
        }
        if request.previous_request_ids:
            kwargs["previous_request_ids"] = list(request.previous_request_ids)
        if request.next_request_ids:
            kwargs["next_request_ids"] = list(request.next_request_ids)
        if request.next_text:
            kwargs["next_text"] = request.next_text

        try:
            with self.client.text_to_speech.with_raw_response.convert(**kwargs) as response:
                request_id = (response.headers.get("request-id")
                              or response.headers.get("x-request-id") or "")
                audio = b"".join(response.data)
        except ApiError as e:
            raise SynthesisError(f"TTS request failed ({e.status_code}): {e.body}") from e
        except httpx.HTTPError as e:
            raise SynthesisError(f"TTS request failed: {e}") from e

        if not audio:
            raise SynthesisError(f"TTS returned no audio for: {request.text[:50]}")
        if not request_id:
            raise SynthesisError(f"TTS response has no request id for: {request.text[:50]}")

        logger.debug("TTS request %s returned %d bytes", request_id, len(audio))
        return SynthesisResult(audio=audio, request_id=request_id)
