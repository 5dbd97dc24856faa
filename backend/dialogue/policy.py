"""Dialogue Policy — pure transition function.

    (phase, structured response) → (next phase, command | None, question)

No I/O, no session mutation. The orchestrator applies the decision.

Discovery:
  - readyToBuild=false: stay in discovery. DISCOVERING while the assistant is
    still asking something; CONFIRMING when it has nothing left to ask and is
    waiting for the user's go-ahead.
  - readyToBuild=true: BUILT, exactly one BuildCommand, question forced empty.
  - BUILT: any further response is answered but never emits a command.
Editing:
  - one EditCommand per non-null websiteChange; phase never changes.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from dialogue.session import DialoguePhase
from schemas.commands import BuildCommand, Command, EditCommand
from schemas.responses import DiscoveryResponse, EditingResponse, StructuredResponse

logger = logging.getLogger(__name__)

_DISCOVERY_PHASES = {DialoguePhase.DISCOVERING, DialoguePhase.CONFIRMING, DialoguePhase.BUILT}


@dataclass(frozen=True)
class PolicyDecision:
    next_phase: DialoguePhase
    command: Optional[Command] = None
    question: str = ""        # what the user-facing layer should surface
    rejected: bool = False    # response arrived after BUILT


def decide(
    phase: DialoguePhase,
    response: StructuredResponse,
    app_id: Optional[str] = None,
) -> PolicyDecision:
    if isinstance(response, DiscoveryResponse):
        return _decide_discovery(phase, response)
    if isinstance(response, EditingResponse):
        return _decide_editing(phase, response, app_id)
    raise TypeError(f"Unsupported response type: {type(response).__name__}")


def _decide_discovery(phase: DialoguePhase, response: DiscoveryResponse) -> PolicyDecision:
    if phase not in _DISCOVERY_PHASES:
        raise ValueError(f"Discovery response in non-discovery phase {phase.value}")

    if phase == DialoguePhase.BUILT:
        logger.info("[Policy] Response after BUILT ignored (ready=%s)", response.ready_to_build)
        return PolicyDecision(next_phase=DialoguePhase.BUILT, rejected=True)

    if response.ready_to_build:
        if not response.prompt.strip():
            # Shape is valid, content is not ours to judge. Flag it.
            logger.warning("[Policy] readyToBuild=true with empty prompt")
        return PolicyDecision(
            next_phase=DialoguePhase.BUILT,
            command=BuildCommand(
                prompt=response.prompt,
                preview_instructions=list(response.preview_instructions),
            ),
            question="",
        )

    question = response.next_question
    if question.strip():
        return PolicyDecision(next_phase=DialoguePhase.DISCOVERING, question=question)
    return PolicyDecision(next_phase=DialoguePhase.CONFIRMING)


def _decide_editing(
    phase: DialoguePhase,
    response: EditingResponse,
    app_id: Optional[str],
) -> PolicyDecision:
    if phase != DialoguePhase.EDITING_IDLE:
        raise ValueError(f"Editing response in non-editing phase {phase.value}")

    command = None
    if response.website_change is not None:
        command = EditCommand(change_description=response.website_change, app_id=app_id or "")
    return PolicyDecision(
        next_phase=DialoguePhase.EDITING_IDLE,
        command=command,
        question=response.next_question,
    )
