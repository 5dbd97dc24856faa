"""Log redaction — provider keys and tokens never reach log output."""
import json
import logging

from core.logging_config import JSONFormatter
from observability.redaction import redact, redact_dict


def test_openai_key_is_redacted():
    out = redact("auth failed for sk-proj-abcdefghijklmnop1234")
    assert "sk-proj" not in out
    assert "[REDACTED_OPENAI_KEY]" in out


def test_bearer_token_is_redacted():
    assert redact("Authorization: Bearer abc.def-ghi") == "Authorization: [REDACTED_BEARER]"


def test_redact_dict_masks_sensitive_keys():
    headers = {"Authorization": "Bearer tok", "Idempotency-Key": "sid:build"}
    out = redact_dict(headers)
    assert out["Authorization"] == "[REDACTED]"
    assert out["Idempotency-Key"] == "sid:build"


def test_json_formatter_lifts_session_id():
    record = logging.LogRecord(
        "dialogue.orchestrator", logging.INFO, __file__, 1,
        "[Orchestrator] session=%s capture started", ("abc-123",), None,
    )
    entry = json.loads(JSONFormatter().format(record))
    assert entry["session_id"] == "abc-123"
    assert entry["level"] == "INFO"
