"""Repair pass for model output cut off by the output-token budget.

Only one kind of damage is handled: text that is a valid JSON prefix but ends
early. The repair closes an open string, drops a dangling comma or completes a
dangling key with null, then closes every open object/array in order. Anything
structurally broken is returned as-is and left for the caller's fallback.
"""
import json

_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove a ```json fenced block wrapper if the model added one."""
    text = text.strip()
    if not text.startswith("```"):
        return text
    body = text[3:]
    if body.startswith("json"):
        body = body[4:]
    return body.split("```")[0].strip()


def is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return False
    return True


def repair_json(raw: str) -> str:
    """Append the minimal closing sequence to truncated JSON.

    Already-valid JSON comes back unchanged, so repairing twice is a no-op.
    """
    if is_valid_json(raw):
        return raw

    stack = []
    in_string = False
    escaped = False
    for ch in raw:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]":
            if not stack or stack[-1] != ch:
                return raw
            stack.pop()

    text = raw
    if in_string:
        if escaped:
            text = text[:-1]  # half an escape sequence
        text += '"'
    else:
        text = text.rstrip()
        if text.endswith(","):
            text = text[:-1]
        elif text.endswith(":"):
            text += " null"

    return text + "".join(reversed(stack))
