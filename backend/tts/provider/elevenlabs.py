"""ElevenLabs TTS Provider — real voice synthesis.

Uses the convert() API to generate MP3 audio from text. The SDK is blocking,
so the call and the chunk collection run in the default executor, bounded by
TTS_TIMEOUT_S.
"""
import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from config.settings import get_settings
from core.exceptions import (
    QuotaError,
    SpeechRequestError,
    TransportError,
    UpstreamAuthError,
    UpstreamError,
)
from tts.provider.interface import TTSProvider, TTSResult
from tts.voices import resolve_voice_id

logger = logging.getLogger(__name__)

# Expressive delivery for an upbeat persona
DEFAULT_VOICE_SETTINGS: Dict[str, Any] = {
    "stability": 0.3,
    "similarity_boost": 0.75,
    "style": 0.85,
    "use_speaker_boost": True,
}


def classify_tts_error(exc: Exception) -> UpstreamError | SpeechRequestError:
    """Map an SDK failure onto the error taxonomy (status code first, then message)."""
    status = getattr(exc, "status_code", None)
    message = str(exc)
    lowered = message.lower()

    if status == 429 or "quota" in lowered or "limit" in lowered:
        return QuotaError("ElevenLabs API quota exceeded. Please try again later.")
    if status in (401, 403) or "unauthorized" in lowered or "api key" in lowered:
        return UpstreamAuthError("ElevenLabs API authentication failed. Please check your API key.")
    if status in (400, 404, 422) or "voice" in lowered:
        return SpeechRequestError("Invalid voice selection. Please use a valid voice ID or name.")
    if isinstance(exc, (asyncio.TimeoutError, ConnectionError, httpx.TransportError)):
        return TransportError(f"TTS request failed: {message or type(exc).__name__}")
    return UpstreamError(f"TTS Error: {message}")


class ElevenLabsTTSProvider(TTSProvider):
    """Real ElevenLabs TTS provider."""

    def __init__(self):
        self._client = None
        self._init_client()

    def _init_client(self):
        from elevenlabs import ElevenLabs
        settings = get_settings()
        api_key = settings.ELEVENLABS_API_KEY
        if not api_key:
            logger.error("[ElevenLabsTTS] No API key configured")
            return
        self._client = ElevenLabs(api_key=api_key)
        logger.info("[ElevenLabsTTS] Client initialized")

    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
        voice_settings: Optional[Dict[str, Any]] = None,
    ) -> TTSResult:
        if not text or not text.strip():
            raise SpeechRequestError("Text is required")
        if not self._client:
            raise UpstreamError("ElevenLabs API key not configured")

        settings = get_settings()
        vid = resolve_voice_id(voice, settings.TTS_DEFAULT_VOICE)
        model_id = model or settings.TTS_MODEL_ID
        start = time.monotonic()

        def _tts_convert() -> bytes:
            audio_iter = self._client.text_to_speech.convert(
                voice_id=vid,
                text=text,
                model_id=model_id,
                output_format=settings.TTS_OUTPUT_FORMAT,
                language_code=settings.TTS_LANGUAGE_CODE,
                voice_settings=voice_settings or DEFAULT_VOICE_SETTINGS,
            )
            return b"".join(audio_iter)

        try:
            loop = asyncio.get_running_loop()
            audio_bytes = await asyncio.wait_for(
                loop.run_in_executor(None, _tts_convert),
                timeout=settings.TTS_TIMEOUT_S,
            )
        except Exception as e:
            latency_ms = (time.monotonic() - start) * 1000
            error = classify_tts_error(e)
            logger.error(
                "[ElevenLabsTTS] Synthesis failed: %s code=%s (%.0fms)",
                str(e)[:200], error.code, latency_ms,
            )
            raise error from e

        latency_ms = (time.monotonic() - start) * 1000
        logger.info(
            "[ElevenLabsTTS] Synthesized: %d bytes, voice=%s model=%s %.0fms, text='%s'",
            len(audio_bytes), vid, model_id, latency_ms, text[:50],
        )

        return TTSResult(
            audio_bytes=audio_bytes,
            format="mp3",
            text=text,
            latency_ms=latency_ms,
            voice_id=vid,
            is_mock=False,
        )

    async def is_healthy(self) -> bool:
        return self._client is not None
