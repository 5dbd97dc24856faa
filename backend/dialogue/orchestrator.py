"""Turn Orchestrator — sequences capture → inference → side effects → speech.

Per-session state machine:

    IDLE → CAPTURING → INFERRING → RESPONDING → IDLE
      └──────── trigger utterance ──┘

Rules:
  - One turn in flight per session. start_capture / submit_utterance are
    only accepted in IDLE (SessionBusyError otherwise).
  - CAPTURING is the only cancellable state (stop_capture → IDLE, the model
    is never contacted). An in-flight inference always runs to completion.
  - The user Turn is appended as soon as inference starts; the assistant
    Turn only after a response exists, so a user Turn always precedes the
    assistant Turn that answers it.
  - Upstream failures (auth / quota / transport) abort the turn: no command,
    no assistant Turn, back to IDLE. Content problems never get here; the
    gateway has already replaced them with a fallback response.
  - Dispatch and playback failures are non-fatal and surfaced.

Everything runs on one event loop. Inbound events are plain method calls;
the turn itself runs as a task so the caller can keep delivering events
(e.g. playback acks) while it is in flight.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.exceptions import CaptureError, DispatchError, SessionBusyError, UpstreamError, VoiceBuildError
from dialogue.policy import decide
from dialogue.session import DialoguePhase, Session
from dispatcher.dispatcher import CommandDispatcher
from prompting.llm_gateway import StructuredResponseClient
from schemas.commands import Command
from schemas.responses import StructuredResponse
from schemas.turns import Turn
from stt.provider.interface import (
    CaptureErrorKind,
    CaptureProvider,
    capture_error_message,
    parse_capture_error_kind,
)
from tts.playback import PlaybackChannel

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    IDLE = "IDLE"
    CAPTURING = "CAPTURING"
    INFERRING = "INFERRING"
    RESPONDING = "RESPONDING"


@dataclass
class TurnOutcome:
    """What one turn (or one failed capture) produced, for the user-facing layer."""
    session_id: str
    phase: DialoguePhase
    utterance: str = ""
    response: Optional[StructuredResponse] = None
    question: str = ""
    command: Optional[Command] = None
    dispatched: bool = False
    repaired: bool = False
    fallback: bool = False
    rejected: bool = False
    error: Optional[VoiceBuildError] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "utterance": self.utterance,
            "response": self.response.to_wire() if self.response else None,
            "question": self.question,
            "command": self.command.model_dump(by_alias=True) if self.command else None,
            "dispatched": self.dispatched,
            "repaired": self.repaired,
            "fallback": self.fallback,
            "rejected": self.rejected,
            "error": self.error.to_payload() if self.error else None,
        }


TurnListener = Callable[[TurnOutcome], Awaitable[None]]


class TurnOrchestrator:

    def __init__(
        self,
        session: Session,
        client: StructuredResponseClient,
        capture: CaptureProvider,
        playback: PlaybackChannel,
        dispatcher: CommandDispatcher,
        listener: Optional[TurnListener] = None,
    ):
        self.session = session
        self.client = client
        self.capture = capture
        self.playback = playback
        self.dispatcher = dispatcher
        self.listener = listener
        self.state = TurnState.IDLE
        self._turn_task: Optional[asyncio.Task] = None
        self._playback_done: Optional[asyncio.Future] = None
        self._closed = False

    @property
    def transcript(self) -> List[Turn]:
        return self.session.transcript

    def _set_state(self, state: TurnState) -> None:
        if state != self.state:
            logger.debug("[Orchestrator] session=%s %s → %s",
                         self.session.session_id, self.state.value, state.value)
        self.state = state

    # =====================================================
    #  Outbound: capture control
    # =====================================================

    async def start_capture(self) -> None:
        if self.state != TurnState.IDLE:
            raise SessionBusyError(f"Cannot start capture while {self.state.value}")
        self._set_state(TurnState.CAPTURING)
        try:
            await self.capture.start_capture(self.session.session_id)
        except Exception as e:
            self._set_state(TurnState.IDLE)
            raise CaptureError(
                CaptureErrorKind.OTHER.value,
                capture_error_message(CaptureErrorKind.OTHER, str(e)),
            ) from e
        logger.info("[Orchestrator] session=%s capture started", self.session.session_id)

    async def stop_capture(self) -> bool:
        """Cancel an active capture. Returns False if nothing was capturing."""
        if self.state != TurnState.CAPTURING:
            logger.info("[Orchestrator] session=%s stop_capture ignored in %s",
                        self.session.session_id, self.state.value)
            return False
        self._set_state(TurnState.IDLE)
        await self.capture.stop_capture(self.session.session_id)
        logger.info("[Orchestrator] session=%s capture cancelled", self.session.session_id)
        return True

    # =====================================================
    #  Inbound events
    # =====================================================

    async def on_utterance(self, text: str) -> Optional[asyncio.Task]:
        """Final utterance from the capture provider. Starts the turn task."""
        if self.state != TurnState.CAPTURING:
            logger.warning("[Orchestrator] session=%s utterance dropped in %s: '%s'",
                           self.session.session_id, self.state.value, text[:50])
            return None
        return self._begin_turn(text)

    async def submit_utterance(self, text: str) -> Optional[asyncio.Task]:
        """Trigger utterance injected directly, bypassing capture."""
        if self.state != TurnState.IDLE:
            raise SessionBusyError(f"Cannot accept an utterance while {self.state.value}")
        return self._begin_turn(text)

    async def on_capture_error(self, kind: str, detail: str = "") -> TurnOutcome:
        error_kind = parse_capture_error_kind(kind)
        error = CaptureError(error_kind.value, capture_error_message(error_kind, detail or kind))
        logger.warning("[Orchestrator] session=%s capture error kind=%s detail=%s",
                       self.session.session_id, error_kind.value, detail)
        if self.state == TurnState.CAPTURING:
            self._set_state(TurnState.IDLE)
        outcome = TurnOutcome(
            session_id=self.session.session_id,
            phase=self.session.phase,
            error=error,
        )
        await self._notify(outcome)
        return outcome

    def on_playback_complete(self) -> None:
        if self._playback_done is None or self._playback_done.done():
            logger.debug("[Orchestrator] session=%s stray playback_complete", self.session.session_id)
            return
        self._playback_done.set_result(None)

    def on_playback_error(self, err: Any) -> None:
        logger.warning("[Orchestrator] session=%s playback failed (not retried): %s",
                       self.session.session_id, err)
        if self._playback_done is not None and not self._playback_done.done():
            self._playback_done.set_result(None)

    async def settle(self) -> None:
        """Wait out a turn whose playback has just been acknowledged."""
        task = self._turn_task
        if task is None or task.done():
            return
        if self._playback_done is not None and self._playback_done.done():
            await asyncio.wait({task})

    # =====================================================
    #  Session control
    # =====================================================

    def reset(self) -> None:
        if self.state != TurnState.IDLE:
            raise SessionBusyError(f"Cannot reset while {self.state.value}")
        self.session.reset()

    async def close(self) -> None:
        """Owner is going away: cancel capture, release playback, drain the turn."""
        self._closed = True
        if self.state == TurnState.CAPTURING:
            try:
                await self.stop_capture()
            except Exception as e:
                logger.warning("[Orchestrator] session=%s capture stop failed on close: %s",
                               self.session.session_id, str(e))
        self.on_playback_complete()
        if self._turn_task is not None and not self._turn_task.done():
            await asyncio.wait({self._turn_task})

    # =====================================================
    #  Turn
    # =====================================================

    def _begin_turn(self, text: str) -> Optional[asyncio.Task]:
        utterance = text.strip()
        if not utterance:
            logger.info("[Orchestrator] session=%s empty utterance ignored", self.session.session_id)
            self._set_state(TurnState.IDLE)
            return None

        self._set_state(TurnState.INFERRING)
        history = self.session.transcript
        turn_no = len(history)
        self.session.append_turn("user", utterance)
        logger.info("[Orchestrator] session=%s turn=%d utterance='%s'",
                    self.session.session_id, turn_no, utterance[:80])

        task = asyncio.create_task(self._run_turn(utterance, history, turn_no))
        task.add_done_callback(self._on_turn_done)
        self._turn_task = task
        return task

    def _on_turn_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("[Orchestrator] session=%s turn crashed: %s",
                         self.session.session_id, exc, exc_info=exc)

    async def _run_turn(self, utterance: str, history: List[Turn], turn_no: int) -> TurnOutcome:
        session = self.session
        outcome = TurnOutcome(session_id=session.session_id, phase=session.phase, utterance=utterance)
        try:
            try:
                result = await self.client.respond(history, utterance, session.mode,
                                                   session_id=session.session_id)
            except UpstreamError as e:
                outcome.error = e
                logger.warning("[Orchestrator] session=%s turn=%d aborted: %s",
                               session.session_id, turn_no, e.code)
                self._set_state(TurnState.IDLE)
                await self._notify(outcome)
                return outcome

            self._set_state(TurnState.RESPONDING)
            response = result.response
            decision = decide(session.phase, response, session.app_id)
            previous = session.phase
            session.phase = decision.next_phase
            session.pending_response = response

            outcome.phase = decision.next_phase
            outcome.response = response
            outcome.question = decision.question
            outcome.command = decision.command
            outcome.repaired = result.repaired
            outcome.fallback = result.fallback
            outcome.rejected = decision.rejected

            if decision.command is not None:
                try:
                    await self.dispatcher.dispatch(session, decision.command, turn_no)
                    outcome.dispatched = True
                except DispatchError as e:
                    outcome.error = e

            session.append_turn("assistant", response.speech or response.next_question or "Response received")
            logger.info(
                "[Orchestrator] session=%s turn=%d phase %s → %s command=%s dispatched=%s fallback=%s",
                session.session_id, turn_no, previous.value, session.phase.value,
                decision.command.kind if decision.command else None, outcome.dispatched, result.fallback,
            )

            await self._notify(outcome)
            await self._play(response.speech)
            return outcome
        finally:
            self._playback_done = None
            self._set_state(TurnState.IDLE)

    async def _play(self, text: str) -> None:
        if self._closed or not text.strip():
            return
        self._playback_done = asyncio.get_running_loop().create_future()
        try:
            await self.playback.speak(text)
        except Exception as e:
            self.on_playback_error(e)
        await self._playback_done

    async def _notify(self, outcome: TurnOutcome) -> None:
        if self.listener is None:
            return
        try:
            await self.listener(outcome)
        except Exception as e:
            logger.error("[Orchestrator] session=%s listener failed: %s", self.session.session_id, str(e))
