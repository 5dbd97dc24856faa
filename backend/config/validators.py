"""Startup configuration validation guardrails."""

import logging


logger = logging.getLogger(__name__)


def _require_provider_keys(settings) -> None:
    """Fail closed if a real provider is enabled without its API key."""
    missing = []
    if not settings.MOCK_LLM and not settings.OPENAI_API_KEY.strip():
        missing.append("OPENAI_API_KEY")
    if not settings.MOCK_TTS and not settings.ELEVENLABS_API_KEY.strip():
        missing.append("ELEVENLABS_API_KEY")
    if missing:
        raise RuntimeError(
            f"STARTUP FAILED — missing required env vars: {', '.join(missing)}\n"
            "Set them in backend/.env or container environment, or enable the "
            "matching MOCK_* flag, and restart the server."
        )


def validate_startup_config(settings) -> None:
    """Centralized startup guardrails for required and warning-level config."""
    if settings.ENV == "prod" and (settings.MOCK_LLM or settings.MOCK_TTS):
        raise RuntimeError(
            "STARTUP FAILED — MOCK_LLM and MOCK_TTS must be False in production."
        )

    _require_provider_keys(settings)

    if settings.LLM_TIMEOUT_S <= 0:
        raise RuntimeError("STARTUP FAILED — LLM_TIMEOUT_S must be positive.")

    if not settings.ARTIFACT_BUILDER_URL:
        logger.warning(
            "CONFIG WARNING: ARTIFACT_BUILDER_URL is not set — commands reach in-process subscribers only"
        )
