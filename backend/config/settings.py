"""Centralized settings module — single source of truth for all config.

All secrets loaded exclusively from env vars. Never committed, never logged.
Redaction enforced everywhere via observability.redaction.
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # ── Environment ──────────────────────────────────────────────
    ENV: Literal["dev", "staging", "prod"] = Field(default="dev")

    # ── Language model (structured responses) ────────────────────
    OPENAI_API_KEY: str = Field(default="")
    OPENAI_BASE_URL: str = Field(default="")  # empty → SDK default endpoint
    LLM_MODEL: str = Field(default="gpt-5-mini")
    LLM_REASONING_EFFORT: str = Field(default="minimal")
    DISCOVERY_MAX_OUTPUT_TOKENS: int = Field(default=600)
    EDITOR_MAX_OUTPUT_TOKENS: int = Field(default=400)
    # Transport-level timeout. The orchestrator imposes none of its own.
    LLM_TIMEOUT_S: float = Field(default=30.0)
    LLM_MAX_RETRIES: int = Field(default=0)

    # ── Speech synthesis ─────────────────────────────────────────
    ELEVENLABS_API_KEY: str = Field(default="")
    TTS_DEFAULT_VOICE: str = Field(default="jessa")
    TTS_MODEL_ID: str = Field(default="eleven_turbo_v2_5")
    TTS_OUTPUT_FORMAT: str = Field(default="mp3_44100_128")
    TTS_LANGUAGE_CODE: str = Field(default="en")
    TTS_TIMEOUT_S: float = Field(default=15.0)

    # ── Artifact builder (command channel HTTP subscriber) ───────
    ARTIFACT_BUILDER_URL: str = Field(default="")  # empty → no HTTP subscriber
    ARTIFACT_BUILDER_TOKEN: str = Field(default="")
    ARTIFACT_BUILDER_TIMEOUT_S: float = Field(default=30.0)

    # ── Observability ────────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO")
    LOG_REDACTION_ENABLED: bool = Field(default=True)

    # ── Feature Flags ────────────────────────────────────────────
    MOCK_TTS: bool = Field(default=True)
    MOCK_LLM: bool = Field(default=True)

    model_config = {
        "env_file": str(_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
