"""Mock TTS Provider — returns empty audio for testing."""
import logging
from typing import Any, Dict, Optional

from core.exceptions import SpeechRequestError
from tts.provider.interface import TTSProvider, TTSResult
from tts.voices import resolve_voice_id

logger = logging.getLogger(__name__)


class MockTTSProvider(TTSProvider):
    """Mock TTS — returns text-only result (no audio bytes)."""

    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
        voice_settings: Optional[Dict[str, Any]] = None,
    ) -> TTSResult:
        if not text or not text.strip():
            raise SpeechRequestError("Text is required")
        logger.info("[TTS:MOCK] synthesize text='%s' len=%d", text[:60], len(text))
        return TTSResult(
            audio_bytes=b"",
            format="text",
            text=text,
            latency_ms=0,
            voice_id=resolve_voice_id(voice),
            is_mock=True,
        )

    async def is_healthy(self) -> bool:
        return True
