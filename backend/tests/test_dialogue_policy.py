"""Tests for the dialogue policy transition function and session bookkeeping."""
import pytest

from dialogue.policy import decide
from dialogue.session import DialoguePhase, Session
from schemas.commands import BuildCommand, EditCommand
from schemas.responses import DiscoveryResponse, EditingResponse, Mode


def _discovery(ready=False, question="What's the vibe?", prompt="A portfolio for a photographer"):
    return DiscoveryResponse(
        prompt=prompt,
        preview_instructions=["Dark theme", "Full-bleed gallery", "Contact form"],
        next_question=question,
        speech="Love it!",
        ready_to_build=ready,
    )


def _editing(change):
    return EditingResponse(website_change=change, speech="On it!", next_question="")


# ── Discovery ───────────────────────────────────────────────────────────────

def test_open_question_keeps_discovering():
    decision = decide(DialoguePhase.DISCOVERING, _discovery())
    assert decision.next_phase == DialoguePhase.DISCOVERING
    assert decision.command is None
    assert decision.question == "What's the vibe?"


def test_nothing_left_to_ask_moves_to_confirming():
    decision = decide(DialoguePhase.DISCOVERING, _discovery(question=""))
    assert decision.next_phase == DialoguePhase.CONFIRMING
    assert decision.command is None


def test_new_question_from_confirming_returns_to_discovering():
    decision = decide(DialoguePhase.CONFIRMING, _discovery(question="Any colours you love?"))
    assert decision.next_phase == DialoguePhase.DISCOVERING


def test_ready_to_build_emits_single_build_command():
    response = _discovery(ready=True, question="")
    decision = decide(DialoguePhase.CONFIRMING, response)

    assert decision.next_phase == DialoguePhase.BUILT
    assert isinstance(decision.command, BuildCommand)
    assert decision.command.prompt == response.prompt
    assert decision.command.preview_instructions == list(response.preview_instructions)
    assert decision.question == ""


def test_ready_to_build_straight_from_discovering():
    decision = decide(DialoguePhase.DISCOVERING, _discovery(ready=True, question=""))
    assert decision.next_phase == DialoguePhase.BUILT
    assert decision.command is not None


def test_response_after_built_is_rejected():
    decision = decide(DialoguePhase.BUILT, _discovery(ready=True, question=""))
    assert decision.next_phase == DialoguePhase.BUILT
    assert decision.command is None
    assert decision.rejected is True


def test_discovery_response_in_editing_phase_is_an_error():
    with pytest.raises(ValueError):
        decide(DialoguePhase.EDITING_IDLE, _discovery())


# ── Editing ─────────────────────────────────────────────────────────────────

def test_website_change_emits_edit_command():
    decision = decide(DialoguePhase.EDITING_IDLE, _editing("Increase heading size to 3rem"), app_id="app-42")

    assert decision.next_phase == DialoguePhase.EDITING_IDLE
    assert isinstance(decision.command, EditCommand)
    assert decision.command.change_description == "Increase heading size to 3rem"
    assert decision.command.app_id == "app-42"


def test_null_website_change_emits_nothing():
    decision = decide(DialoguePhase.EDITING_IDLE, _editing(None), app_id="app-42")
    assert decision.command is None
    assert decision.next_phase == DialoguePhase.EDITING_IDLE


def test_editing_response_in_discovery_phase_is_an_error():
    with pytest.raises(ValueError):
        decide(DialoguePhase.DISCOVERING, _editing("x"))


# ── Session ─────────────────────────────────────────────────────────────────

def test_editing_session_requires_app_id():
    with pytest.raises(ValueError):
        Session.for_editing("")


def test_session_reset_restores_initial_state():
    session = Session.for_discovery()
    session.append_turn("user", "a bakery")
    session.append_turn("assistant", "yum!")
    session.phase = DialoguePhase.BUILT
    session.dispatches["k"] = {"status": "delivered"}

    session.reset()

    assert session.turns == []
    assert session.phase == DialoguePhase.DISCOVERING
    assert session.dispatches == {}
    assert session.mode == Mode.DISCOVERY


def test_transcript_is_a_snapshot():
    session = Session.for_discovery()
    session.append_turn("user", "hi")
    snapshot = session.transcript
    session.append_turn("assistant", "hello!")
    assert len(snapshot) == 1
