"""WebSocket server — voice session gateway.

One connection owns one Session and one TurnOrchestrator. The browser is the
capture and playback device:

  - capture:  we send capture_start / capture_stop; the client's recognizer
              answers with utterance or capture_error
  - playback: we send tts_audio; the client answers with playback_complete
              or playback_error once the speaker is done
  - commands: build / edit commands are forwarded as command messages, and
              POSTed to the artifact builder when ARTIFACT_BUILDER_URL is set

Turns run as tasks so the receive loop keeps reading playback acks while a
turn is in flight.
"""
import base64
import json
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from core.exceptions import VoiceBuildError
from dialogue.orchestrator import TurnOrchestrator, TurnOutcome
from dialogue.session import Session
from dispatcher.channel import CommandChannel
from dispatcher.dispatcher import CommandDispatcher
from dispatcher.http_client import get_http_builder
from prompting.llm_gateway import get_response_client
from schemas.commands import Command
from schemas.responses import Mode
from schemas.ws_messages import (
    WSMessageType,
    WSEnvelope,
    UtterancePayload,
    CaptureErrorPayload,
    PlaybackErrorPayload,
    SessionReadyPayload,
    CapturePayload,
    TTSAudioPayload,
    CommandPayload,
    ErrorPayload,
)
from stt.provider.interface import CaptureProvider
from tts.orchestrator import get_tts_provider
from tts.playback import SynthesizedPlayback
from tts.provider.interface import TTSResult

logger = logging.getLogger(__name__)


def _make_envelope(msg_type: WSMessageType, payload: dict) -> str:
    """Create a JSON string envelope for sending."""
    envelope = WSEnvelope(type=msg_type, payload=payload)
    return envelope.model_dump_json()


async def _send(ws: WebSocket, msg_type: WSMessageType, payload_model) -> None:
    """Send a typed message to the client."""
    data = _make_envelope(msg_type, payload_model.model_dump())
    await ws.send_text(data)


async def _send_error(ws: WebSocket, error: VoiceBuildError) -> None:
    await _send(ws, WSMessageType.ERROR, ErrorPayload(
        message=error.user_message,
        code=error.code,
    ))


class RemoteCaptureProvider(CaptureProvider):
    """Capture runs on the client; we only tell it when to listen."""

    def __init__(self, ws: WebSocket):
        self.ws = ws

    async def start_capture(self, session_id: str) -> None:
        await _send(self.ws, WSMessageType.CAPTURE_START, CapturePayload(session_id=session_id))

    async def stop_capture(self, session_id: str) -> None:
        await _send(self.ws, WSMessageType.CAPTURE_STOP, CapturePayload(session_id=session_id))


def _audio_sink(ws: WebSocket, session_id: str):
    async def _sink(result: TTSResult) -> None:
        if result.is_mock or not result.audio_bytes:
            await _send(ws, WSMessageType.TTS_AUDIO, TTSAudioPayload(
                text=result.text, session_id=session_id, format="text", is_mock=True,
            ))
            return
        await _send(ws, WSMessageType.TTS_AUDIO, TTSAudioPayload(
            text=result.text,
            session_id=session_id,
            format=result.format,
            audio=base64.b64encode(result.audio_bytes).decode("ascii"),
            audio_size_bytes=len(result.audio_bytes),
        ))
    return _sink


def _command_forwarder(ws: WebSocket, session_id: str):
    async def _forward(command: Command) -> None:
        await _send(ws, WSMessageType.COMMAND, CommandPayload(
            session_id=session_id,
            command=command.model_dump(by_alias=True),
        ))
    return _forward


def _turn_listener(ws: WebSocket):
    async def _on_outcome(outcome: TurnOutcome) -> None:
        await ws.send_text(_make_envelope(WSMessageType.TURN_RESULT, outcome.to_payload()))
        if outcome.error is not None:
            await _send_error(ws, outcome.error)
    return _on_outcome


def _create_session(mode: str, app_id: Optional[str]) -> Session:
    if Mode(mode) == Mode.EDITING:
        return Session.for_editing(app_id or "")
    return Session.for_discovery()


async def handle_ws_connection(websocket: WebSocket, mode: str = "discovery",
                               app_id: Optional[str] = None) -> None:
    """Main WebSocket handler. Protocol:

    1. Client connects with ?mode=discovery|editing (&app_id=... for editing)
    2. Server sends SESSION_READY
    3. Client drives turns with start_capture / utterance / text_input
    4. Client acks every tts_audio with playback_complete or playback_error
    """
    await websocket.accept()

    try:
        session = _create_session(mode, app_id)
    except ValueError as e:
        await _send(websocket, WSMessageType.ERROR, ErrorPayload(
            message=str(e), code="INVALID_SESSION", recoverable=False,
        ))
        await websocket.close(code=4001, reason="Invalid session parameters")
        return

    session_id = session.session_id
    channel = CommandChannel()
    unsubscribers = [channel.subscribe(_command_forwarder(websocket, session_id))]
    builder = get_http_builder()
    if builder is not None:
        unsubscribers.append(channel.subscribe(builder))

    orchestrator = TurnOrchestrator(
        session=session,
        client=get_response_client(),
        capture=RemoteCaptureProvider(websocket),
        playback=SynthesizedPlayback(get_tts_provider(), _audio_sink(websocket, session_id)),
        dispatcher=CommandDispatcher(channel),
        listener=_turn_listener(websocket),
    )

    try:
        await _send(websocket, WSMessageType.SESSION_READY, SessionReadyPayload(
            session_id=session_id,
            mode=session.mode.value,
            phase=session.phase.value,
            app_id=session.app_id,
        ))
        logger.info("WS session ready: session=%s mode=%s app=%s builder=%s",
                    session_id, session.mode.value, session.app_id, builder is not None)

        while True:
            raw = await websocket.receive_text()
            msg = json.loads(raw)
            msg_type = msg.get("type")
            payload = msg.get("payload", {})

            try:
                await _handle_message(websocket, orchestrator, msg_type, payload)
            except VoiceBuildError as e:
                logger.warning("WS request rejected: session=%s type=%s code=%s",
                               session_id, msg_type, e.code)
                await _send_error(websocket, e)
            except ValidationError as e:
                await _send(websocket, WSMessageType.ERROR, ErrorPayload(
                    message=f"Invalid {msg_type} payload: {e.error_count()} error(s)",
                    code="INVALID_PAYLOAD",
                ))

    except WebSocketDisconnect:
        logger.info("WS disconnected: session=%s", session_id)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON received on WS: session=%s", session_id)
    except Exception as e:
        logger.error("WS error: session=%s error=%s", session_id, str(e), exc_info=True)
    finally:
        await orchestrator.close()
        for unsubscribe in unsubscribers:
            unsubscribe()
        logger.info("WS session closed: session=%s phase=%s turns=%d",
                    session_id, session.phase.value, len(session.turns))


async def _handle_message(ws: WebSocket, orchestrator: TurnOrchestrator, msg_type: str, payload: dict) -> None:
    if msg_type == WSMessageType.START_CAPTURE.value:
        await orchestrator.start_capture()

    elif msg_type == WSMessageType.STOP_CAPTURE.value:
        await orchestrator.stop_capture()

    elif msg_type == WSMessageType.UTTERANCE.value:
        utterance = UtterancePayload(**payload)
        await orchestrator.on_utterance(utterance.text)

    elif msg_type == WSMessageType.TEXT_INPUT.value:
        utterance = UtterancePayload(**payload)
        await orchestrator.submit_utterance(utterance.text)

    elif msg_type == WSMessageType.CAPTURE_ERROR.value:
        err = CaptureErrorPayload(**payload)
        await orchestrator.on_capture_error(err.kind, err.detail)

    elif msg_type == WSMessageType.PLAYBACK_COMPLETE.value:
        orchestrator.on_playback_complete()
        await orchestrator.settle()

    elif msg_type == WSMessageType.PLAYBACK_ERROR.value:
        err = PlaybackErrorPayload(**payload)
        orchestrator.on_playback_error(err.reason or "client playback failed")
        await orchestrator.settle()

    elif msg_type == WSMessageType.RESET.value:
        orchestrator.reset()
        session = orchestrator.session
        await _send(ws, WSMessageType.SESSION_READY, SessionReadyPayload(
            session_id=session.session_id,
            mode=session.mode.value,
            phase=session.phase.value,
            app_id=session.app_id,
        ))

    else:
        await _send(ws, WSMessageType.ERROR, ErrorPayload(
            message=f"Unknown message type: {msg_type}",
            code="UNKNOWN_MSG_TYPE",
        ))
