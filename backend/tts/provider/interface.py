"""TTS Provider interface — provider-agnostic contract.

TTS provides ONLY: audio bytes from text.
TTS does NOT provide: intent, emotion analysis, or any reasoning.

Failures are raised as core.exceptions types:
  SpeechRequestError (400), UpstreamAuthError (401), QuotaError (429),
  UpstreamError / TransportError (500 / 503).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class TTSResult:
    """Result from TTS generation."""
    audio_bytes: bytes
    format: str  # "mp3" | "text"
    text: str  # the input text
    latency_ms: float = 0.0
    voice_id: str = ""
    is_mock: bool = False

    @property
    def content_type(self) -> str:
        return "audio/mpeg" if self.format == "mp3" else "text/plain"


class TTSProvider(ABC):
    """Abstract TTS provider interface."""

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
        voice_settings: Optional[Dict[str, Any]] = None,
    ) -> TTSResult:
        """Convert text to speech audio."""
        ...

    @abstractmethod
    async def is_healthy(self) -> bool:
        """Health check."""
        ...
