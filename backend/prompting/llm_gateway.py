"""LLM Gateway — the ONLY path that calls the language model.

Every call is schema-constrained (Responses API, json_schema format, strict).
Two failure families are treated very differently:

  - Content problems (truncated / malformed / schema-violating output) are
    recovered here: one repair pass, then a fixed fallback response for the
    mode. They never reach the caller as errors.
  - Service problems (auth, quota, network, timeout) are classified into
    core.exceptions types and raised. They are never turned into fallbacks.

The gateway is stateless: a pure function of transcript + utterance + mode,
apart from the outbound network call.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openai
from pydantic import ValidationError

from config.feature_flags import is_mock_llm
from config.settings import get_settings
from core.exceptions import (
    ContentFormatError,
    QuotaError,
    TransportError,
    UpstreamAuthError,
    UpstreamError,
)
from prompting.json_repair import is_valid_json, repair_json, strip_code_fences
from prompting.system_prompts import get_system_prompt
from schemas.responses import (
    DiscoveryResponse,
    EditingResponse,
    Mode,
    StructuredResponse,
    response_format,
    validate_response,
)
from schemas.turns import Turn

logger = logging.getLogger(__name__)


@dataclass
class InferenceResult:
    """Outcome of one structured inference call."""
    response: StructuredResponse
    mode: Mode
    repaired: bool = False
    fallback: bool = False
    latency_ms: float = 0.0
    usage: Optional[Dict[str, Any]] = None


# =====================================================
#  Fallbacks
# =====================================================

def fallback_response(mode: Mode) -> StructuredResponse:
    """Neutral, schema-valid response used when model output is unusable."""
    if mode == Mode.EDITING:
        return EditingResponse(
            website_change=None,
            speech="Sorry, I didn't quite catch that! Could you tell me again what you'd like to change?",
            next_question="What would you like to change?",
        )
    return DiscoveryResponse(
        prompt="",
        preview_instructions=[
            "Clean modern layout",
            "Readable typography",
            "Responsive design",
        ],
        next_question="Could you tell me a bit more about what you'd like to build?",
        speech="Oops, I missed that! Could you tell me again what you'd like to build?",
        ready_to_build=False,
    )


# =====================================================
#  Output decoding
# =====================================================

def _decode_damaged(text: str) -> Tuple[Any, bool]:
    """Fenced or truncated output. Fences are only unwrapped around the whole text."""
    text = strip_code_fences(text)
    if is_valid_json(text):
        return json.loads(text), False
    try:
        return json.loads(repair_json(text)), True
    except json.JSONDecodeError as e:
        raise ContentFormatError(f"Unrepairable JSON: {e}") from e


def _decode(raw: str, mode: Mode) -> Tuple[StructuredResponse, bool]:
    """Decode and validate. Returns (response, repaired). Raises ContentFormatError."""
    text = (raw or "").strip()
    if not text:
        raise ContentFormatError("Empty model output")

    repaired = False
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data, repaired = _decode_damaged(text)

    try:
        return validate_response(data, mode), repaired
    except ValidationError as e:
        raise ContentFormatError(f"Schema validation failed: {e.error_count()} error(s)") from e


def parse_structured_output(raw: str, mode: Mode) -> Tuple[StructuredResponse, bool, bool]:
    """Parse raw model text for ``mode``. Never raises.

    Returns (response, repaired, fallback).
    """
    try:
        response, repaired = _decode(raw, mode)
    except ContentFormatError as e:
        logger.warning(
            "[LLMGateway] Content format error mode=%s → fallback: %s raw='%s'",
            mode.value, e.message, (raw or "")[:120],
        )
        return fallback_response(mode), False, True
    if repaired:
        logger.info("[LLMGateway] Repaired truncated output mode=%s", mode.value)
    return response, repaired, False


# =====================================================
#  Error classification
# =====================================================

def classify_api_error(exc: openai.APIError) -> UpstreamError:
    """Map an SDK error onto the upstream error taxonomy."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return UpstreamAuthError(str(exc))
    if isinstance(exc, openai.RateLimitError):
        return QuotaError(str(exc))
    if isinstance(exc, openai.APITimeoutError):
        return TransportError(f"Model request timed out: {exc}")
    if isinstance(exc, openai.APIConnectionError):
        return TransportError(str(exc))
    if isinstance(exc, openai.APIStatusError) and exc.status_code >= 500:
        return TransportError(f"Model service unavailable ({exc.status_code})")
    return UpstreamError(str(exc))


# =====================================================
#  Client
# =====================================================

def build_input(transcript: Sequence[Turn], utterance: str, mode: Mode) -> List[Dict[str, Any]]:
    """System instruction, then the transcript, then the new utterance."""
    items: List[Dict[str, Any]] = [
        {
            "role": "system",
            "content": [{"type": "input_text", "text": get_system_prompt(mode)}],
        },
    ]
    for turn in transcript:
        items.append({
            "role": turn.role,
            "content": [{
                "type": "output_text" if turn.role == "assistant" else "input_text",
                "text": turn.content,
            }],
        })
    items.append({
        "role": "user",
        "content": [{"type": "input_text", "text": utterance}],
    })
    return items


class StructuredResponseClient:
    """Schema-constrained language model client.

    ``api`` is anything exposing ``await api.responses.create(**request)``:
    an ``openai.AsyncOpenAI`` in production, prompting.mock_llm in mock mode.
    """

    def __init__(
        self,
        api: Any,
        model: str,
        reasoning_effort: str = "",
        max_output_tokens: Optional[Dict[Mode, int]] = None,
    ):
        self._api = api
        self.model = model
        self.reasoning_effort = reasoning_effort
        self.max_output_tokens = max_output_tokens or {Mode.DISCOVERY: 600, Mode.EDITING: 400}

    def build_request(self, transcript: Sequence[Turn], utterance: str, mode: Mode) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "stream": False,
            "max_output_tokens": self.max_output_tokens[mode],
            "input": build_input(transcript, utterance, mode),
            "text": {"format": response_format(mode)},
        }
        if self.reasoning_effort:
            request["reasoning"] = {"effort": self.reasoning_effort}
        return request

    async def respond(
        self,
        transcript: Sequence[Turn],
        utterance: str,
        mode: Mode,
        session_id: str = "",
    ) -> InferenceResult:
        """Run one inference. Raises UpstreamError subclasses on service failure."""
        request = self.build_request(transcript, utterance, mode)
        start = time.monotonic()

        try:
            completion = await self._api.responses.create(**request)
        except openai.APIError as e:
            error = classify_api_error(e)
            logger.error(
                "[LLMGateway] session=%s mode=%s upstream failure code=%s: %s",
                session_id, mode.value, error.code, str(e)[:200],
            )
            raise error from e

        latency_ms = (time.monotonic() - start) * 1000
        status = getattr(completion, "status", None)
        if status == "incomplete":
            details = getattr(completion, "incomplete_details", None)
            logger.warning(
                "[LLMGateway] session=%s output incomplete: %s", session_id, details,
            )

        raw = getattr(completion, "output_text", "") or ""
        response, repaired, fallback = parse_structured_output(raw, mode)

        logger.info(
            "[LLMGateway] session=%s mode=%s model=%s history=%d repaired=%s fallback=%s latency=%.0fms",
            session_id, mode.value, self.model, len(transcript), repaired, fallback, latency_ms,
        )

        return InferenceResult(
            response=response,
            mode=mode,
            repaired=repaired,
            fallback=fallback,
            latency_ms=latency_ms,
            usage=_usage_dict(getattr(completion, "usage", None)),
        )


def _usage_dict(usage: Any) -> Optional[Dict[str, Any]]:
    if usage is None:
        return None
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    if isinstance(usage, dict):
        return usage
    return None


def _create_client() -> StructuredResponseClient:
    settings = get_settings()
    if is_mock_llm():
        from prompting.mock_llm import MockResponsesClient
        logger.info("[LLMGateway] Provider=MockResponsesClient (MOCK_LLM=true)")
        api = MockResponsesClient()
    else:
        logger.info("[LLMGateway] Provider=OpenAI model=%s (MOCK_LLM=false)", settings.LLM_MODEL)
        api = openai.AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL or None,
            timeout=settings.LLM_TIMEOUT_S,
            max_retries=settings.LLM_MAX_RETRIES,
        )
    return StructuredResponseClient(
        api=api,
        model=settings.LLM_MODEL,
        reasoning_effort=settings.LLM_REASONING_EFFORT,
        max_output_tokens={
            Mode.DISCOVERY: settings.DISCOVERY_MAX_OUTPUT_TOKENS,
            Mode.EDITING: settings.EDITOR_MAX_OUTPUT_TOKENS,
        },
    )


_client: Optional[StructuredResponseClient] = None


def get_response_client() -> StructuredResponseClient:
    global _client
    if _client is None:
        _client = _create_client()
    return _client
