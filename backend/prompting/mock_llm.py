"""Mock language model — deterministic stand-in for the Responses API.

Returns raw JSON text, like the real endpoint, so callers exercise the same
parse → repair → validate path with MOCK_LLM=true.
"""
import json
import logging
import re
from types import SimpleNamespace
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

_CONFIRM_RE = re.compile(r"\b(build it|let'?s go|go ahead|sounds (great|good|perfect)|yes|do it)\b", re.IGNORECASE)
_CHANGE_RE = re.compile(r"\b(make|change|add|remove|increase|decrease|move|set|use)\b", re.IGNORECASE)

_DEFAULT_PREVIEW = [
    "Clean modern layout",
    "Friendly sans-serif typography",
    "Responsive on mobile and desktop",
]


def _last_user_text(items: List[Dict[str, Any]]) -> str:
    for item in reversed(items):
        if item.get("role") == "user":
            return " ".join(c.get("text", "") for c in item.get("content", []))
    return ""


def _discovery(utterance: str, turns: int) -> Dict[str, Any]:
    if turns > 0 and _CONFIRM_RE.search(utterance):
        return {
            "prompt": f"Build a polished website based on the conversation so far. Latest request: {utterance[:200]}",
            "previewInstructions": _DEFAULT_PREVIEW,
            "nextQuestion": "",
            "speech": "Woohoo! Building it right now!",
            "readyToBuild": True,
        }
    return {
        "prompt": f"Website idea: {utterance[:200]}",
        "previewInstructions": _DEFAULT_PREVIEW,
        "nextQuestion": "What's the vibe you're going for?",
        "speech": "Ooh, I love it! What's the vibe you're going for?",
        "readyToBuild": False,
    }


def _editing(utterance: str) -> Dict[str, Any]:
    if _CHANGE_RE.search(utterance):
        return {
            "websiteChange": f"Apply the user's requested change: {utterance[:300]}",
            "speech": "On it! Making that change now!",
            "nextQuestion": "",
        }
    return {
        "websiteChange": None,
        "speech": "I can help you edit your site! What would you like to change?",
        "nextQuestion": "What would you like to change?",
    }


class _MockResponses:
    async def create(self, **request: Any) -> SimpleNamespace:
        items = request.get("input", [])
        utterance = _last_user_text(items)
        prior_turns = sum(1 for i in items if i.get("role") == "assistant")
        schema_name = request.get("text", {}).get("format", {}).get("name", "")

        if schema_name == "TalEditorResponse":
            payload = _editing(utterance)
        else:
            payload = _discovery(utterance, prior_turns)

        logger.info("[LLM:MOCK] schema=%s utterance='%s'", schema_name, utterance[:60])
        return SimpleNamespace(
            output_text=json.dumps(payload),
            status="completed",
            usage=None,
        )


class MockResponsesClient:
    """Quacks like ``openai.AsyncOpenAI`` for the one call the gateway makes."""

    def __init__(self):
        self.responses = _MockResponses()
