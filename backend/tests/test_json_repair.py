"""Tests for truncated-output repair and code fence stripping."""
import json

import pytest

from prompting.json_repair import is_valid_json, repair_json, strip_code_fences


# ── Test 1: valid input is untouched ────────────────────────────────────────

def test_valid_json_returned_unchanged():
    raw = '{"speech": "Hi!", "nextQuestion": ""}'
    assert repair_json(raw) == raw


def test_repair_is_idempotent():
    truncated = '{"speech": "Ooh, I love'
    once = repair_json(truncated)
    assert repair_json(once) == once


# ── Test 2: truncation shapes that must become valid ────────────────────────

@pytest.mark.parametrize("truncated", [
    '{"speech": "Ooh, I love',
    '{"previewInstructions": ["Dark theme", "Big hero',
    '{"previewInstructions": ["Dark theme",',
    '{"prompt": "x", "nextQuestion":',
    '{"a": {"b": [1, 2',
    '{"speech": "tab\\',
])
def test_truncated_output_becomes_valid_json(truncated):
    assert is_valid_json(repair_json(truncated))


def test_open_string_is_closed_and_kept():
    data = json.loads(repair_json('{"speech": "Ooh, I love'))
    assert data == {"speech": "Ooh, I love"}


def test_dangling_key_completes_with_null():
    data = json.loads(repair_json('{"prompt": "x", "websiteChange":'))
    assert data == {"prompt": "x", "websiteChange": None}


def test_nested_containers_close_in_order():
    data = json.loads(repair_json('{"a": {"b": [1, 2'))
    assert data == {"a": {"b": [1, 2]}}


def test_brackets_inside_strings_are_ignored():
    data = json.loads(repair_json('{"speech": "use [brackets] and {braces'))
    assert data == {"speech": "use [brackets] and {braces"}


# ── Test 3: structural damage is not guessed at ─────────────────────────────

def test_mismatched_closer_returned_as_is():
    raw = '{"a": [1, 2}'
    assert repair_json(raw) == raw
    assert not is_valid_json(repair_json(raw))


# ── Test 4: fences ──────────────────────────────────────────────────────────

def test_strip_json_fence():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'


def test_strip_plain_fence():
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'


def test_no_fence_is_trimmed_only():
    assert strip_code_fences('  {"a": 1} \n') == '{"a": 1}'


def test_fence_text_inside_json_is_not_unwrapped():
    raw = '{"speech": "use a ```json block```"}'
    assert strip_code_fences(raw) == raw
