"""Capture Provider interface — provider-agnostic speech capture contract.

Capture provides ONLY: start/stop of listening. Finished utterances and
failures come back through the orchestrator's on_utterance / on_capture_error.
Capture does NOT provide: inference, intent, or any reasoning.
"""
from abc import ABC, abstractmethod
from enum import Enum


class CaptureErrorKind(str, Enum):
    NO_SPEECH = "no-speech"
    NOT_ALLOWED = "not-allowed"  # microphone permission denied
    NETWORK = "network"
    ABORTED = "aborted"
    OTHER = "other"


_MESSAGES = {
    CaptureErrorKind.NO_SPEECH: "No speech detected. Please try speaking again.",
    CaptureErrorKind.NOT_ALLOWED: "Microphone access denied. Please allow microphone access.",
    CaptureErrorKind.NETWORK: "Network error - please check your internet connection and try again.",
    CaptureErrorKind.ABORTED: "Listening was interrupted. Please try again.",
}


def parse_capture_error_kind(raw: str) -> CaptureErrorKind:
    try:
        return CaptureErrorKind(raw)
    except ValueError:
        return CaptureErrorKind.OTHER


def capture_error_message(kind: CaptureErrorKind, detail: str = "") -> str:
    """User-facing message for a capture failure."""
    message = _MESSAGES.get(kind)
    if message:
        return f"Voice recognition failed. {message}"
    return f"Voice recognition failed. Error: {detail or kind.value}. Please try again."


class CaptureProvider(ABC):
    """Abstract speech capture provider."""

    @abstractmethod
    async def start_capture(self, session_id: str) -> None:
        """Begin listening for one utterance."""
        ...

    @abstractmethod
    async def stop_capture(self, session_id: str) -> None:
        """Stop listening; any partial utterance is discarded."""
        ...
