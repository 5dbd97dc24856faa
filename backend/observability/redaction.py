"""Secret / PII scrubbing for log output and diagnostic dumps.

Model and speech provider keys are the main concern: upstream SDK errors
sometimes echo the request headers back. User speech is logged truncated
but may still carry contact details, so emails and phone numbers go too.
"""
import re
from typing import Dict, Iterable, Optional

_RULES = (
    ("OPENAI_KEY", re.compile(r"\bsk-(?:proj-)?[A-Za-z0-9_\-]{16,}")),
    ("ELEVENLABS_KEY", re.compile(r"\bsk_[A-Za-z0-9]{32,}")),
    ("BEARER", re.compile(r"\bBearer\s+[A-Za-z0-9_\-\.=]+", re.IGNORECASE)),
    ("SECRET", re.compile(
        r"\b(?:xi-api-key|api[_-]?key|token|secret|password)[\"']?\s*[:=]\s*[\"']?[A-Za-z0-9_\-\.]{20,}[\"']?",
        re.IGNORECASE,
    )),
    ("EMAIL", re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b")),
    ("PHONE", re.compile(r"(?<![\w-])\+?\d(?:[ \-]?\d){9,14}(?![\w-])")),
)

SENSITIVE_KEYS = frozenset({
    "authorization", "xi-api-key", "api_key", "apikey", "token", "secret", "password",
})


def redact(text: str) -> str:
    for label, pattern in _RULES:
        text = pattern.sub(f"[REDACTED_{label}]", text)
    return text


def redact_dict(data: Dict, sensitive_keys: Optional[Iterable[str]] = None) -> Dict:
    """Copy of ``data`` with sensitive values masked, nested dicts included."""
    keys = SENSITIVE_KEYS if sensitive_keys is None else frozenset(k.lower() for k in sensitive_keys)
    masked = {}
    for key, value in data.items():
        if str(key).lower() in keys:
            masked[key] = "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = redact_dict(value, keys)
        elif isinstance(value, str):
            masked[key] = redact(value)
        else:
            masked[key] = value
    return masked
