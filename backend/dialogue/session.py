"""Session — the single-owner conversational context for one interaction.

A Session is either a discovery session (planning a new site) or an editing
session (changing an existing one, identified by app_id). It is mutated only
by the TurnOrchestrator that owns it; there is no process-wide registry.

Phases:
  discovery: DISCOVERING ⇄ CONFIRMING → BUILT (terminal until reset)
  editing:   EDITING_IDLE (never changes)
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from schemas.responses import Mode, StructuredResponse
from schemas.turns import Role, Turn

logger = logging.getLogger(__name__)


class DialoguePhase(str, Enum):
    DISCOVERING = "DISCOVERING"
    CONFIRMING = "CONFIRMING"
    BUILT = "BUILT"
    EDITING_IDLE = "EDITING_IDLE"


def initial_phase(mode: Mode) -> DialoguePhase:
    return DialoguePhase.EDITING_IDLE if mode == Mode.EDITING else DialoguePhase.DISCOVERING


@dataclass
class Session:
    mode: Mode
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    app_id: Optional[str] = None
    phase: DialoguePhase = DialoguePhase.DISCOVERING
    turns: List[Turn] = field(default_factory=list)
    pending_response: Optional[StructuredResponse] = None
    # idempotency_key -> dispatch record (see dispatcher.idempotency)
    dispatches: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_discovery(cls) -> "Session":
        return cls(mode=Mode.DISCOVERY, phase=DialoguePhase.DISCOVERING)

    @classmethod
    def for_editing(cls, app_id: str, history: Iterable[Turn] = ()) -> "Session":
        if not app_id:
            raise ValueError("Editing sessions require an app_id")
        session = cls(mode=Mode.EDITING, app_id=app_id, phase=DialoguePhase.EDITING_IDLE)
        session.turns.extend(history)
        return session

    def append_turn(self, role: Role, content: str) -> Turn:
        turn = Turn(role=role, content=content)
        self.turns.append(turn)
        return turn

    @property
    def transcript(self) -> List[Turn]:
        """Snapshot of the turns so far, safe to hand to the gateway."""
        return list(self.turns)

    def reset(self) -> None:
        """Start over: fresh transcript, initial phase, no dispatch history."""
        logger.info("[Session] session=%s reset from phase=%s turns=%d",
                    self.session_id, self.phase.value, len(self.turns))
        self.turns = []
        self.pending_response = None
        self.dispatches.clear()
        self.phase = initial_phase(self.mode)
