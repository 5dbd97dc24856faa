"""WebSocket message schemas — contract between the voice client and the backend.

Version: v1
All WS communication flows through these typed envelopes.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
import uuid


# ---- Enums ----

class WSMessageType(str, Enum):
    # Client → Server
    START_CAPTURE = "start_capture"
    STOP_CAPTURE = "stop_capture"
    UTTERANCE = "utterance"              # final utterance from the client recognizer
    TEXT_INPUT = "text_input"            # typed / trigger utterance, bypasses capture
    CAPTURE_ERROR = "capture_error"
    PLAYBACK_COMPLETE = "playback_complete"
    PLAYBACK_ERROR = "playback_error"
    RESET = "reset"

    # Server → Client
    SESSION_READY = "session_ready"
    CAPTURE_START = "capture_start"      # "open the microphone"
    CAPTURE_STOP = "capture_stop"        # "close the microphone"
    TTS_AUDIO = "tts_audio"
    TURN_RESULT = "turn_result"
    COMMAND = "command"
    ERROR = "error"


# ---- Base Envelope ----

class WSEnvelope(BaseModel):
    """Every WS message is wrapped in this envelope."""
    type: WSMessageType
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payload: dict = Field(default_factory=dict)


# =====================================================
#  Client → Server Payloads
# =====================================================

class UtterancePayload(BaseModel):
    text: str


class CaptureErrorPayload(BaseModel):
    kind: str = "other"     # no-speech | not-allowed | network | aborted | other
    detail: str = ""


class PlaybackErrorPayload(BaseModel):
    reason: str = ""


# =====================================================
#  Server → Client Payloads
# =====================================================

class SessionReadyPayload(BaseModel):
    session_id: str
    mode: str
    phase: str
    app_id: Optional[str] = None


class CapturePayload(BaseModel):
    session_id: str


class TTSAudioPayload(BaseModel):
    """Speech for the client to play. format=text when synthesis is mocked."""
    text: str
    session_id: str
    format: str = "text"    # "text" (client speaks it) | "mp3"
    audio: Optional[str] = None     # base64
    audio_size_bytes: int = 0
    is_mock: bool = False


class CommandPayload(BaseModel):
    session_id: str
    command: Dict[str, Any]


class ErrorPayload(BaseModel):
    message: str
    code: str
    recoverable: bool = True
