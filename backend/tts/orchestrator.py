"""Speech synthesis provider selection.

MOCK_TTS=true → MockTTSProvider (text-only, the client speaks it locally).
Otherwise ElevenLabs. If the SDK client cannot be built, dev and staging
degrade to the mock; prod refuses to start speaking silently.
"""
import logging
from typing import Optional

from config.feature_flags import is_mock_tts
from config.settings import get_settings
from tts.provider.interface import TTSProvider
from tts.provider.mock import MockTTSProvider

logger = logging.getLogger(__name__)

_provider: Optional[TTSProvider] = None


def _select_provider() -> TTSProvider:
    if is_mock_tts():
        logger.info("[TTS] provider=mock")
        return MockTTSProvider()

    from tts.provider.elevenlabs import ElevenLabsTTSProvider
    try:
        provider = ElevenLabsTTSProvider()
    except Exception as e:
        if get_settings().ENV == "prod":
            raise
        logger.error("[TTS] ElevenLabs unavailable, speaking through mock: %s", str(e))
        return MockTTSProvider()
    logger.info("[TTS] provider=elevenlabs voice=%s", get_settings().TTS_DEFAULT_VOICE)
    return provider


def get_tts_provider() -> TTSProvider:
    """Process-wide provider; stateless, so sharing it across sessions is safe."""
    global _provider
    if _provider is None:
        _provider = _select_provider()
    return _provider
