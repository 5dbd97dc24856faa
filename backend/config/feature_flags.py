"""Feature flags — switches between real and mock providers."""
from config.settings import get_settings


def is_mock_tts() -> bool:
    return get_settings().MOCK_TTS


def is_mock_llm() -> bool:
    return get_settings().MOCK_LLM
