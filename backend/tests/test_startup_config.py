from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from types import SimpleNamespace

import pytest

from config.validators import _require_provider_keys, validate_startup_config


def _settings(**overrides):
    base = {
        "ENV": "dev",
        "MOCK_LLM": False,
        "MOCK_TTS": False,
        "OPENAI_API_KEY": "sk-test",
        "ELEVENLABS_API_KEY": "el-test",
        "LLM_TIMEOUT_S": 30.0,
        "ARTIFACT_BUILDER_URL": "https://builder.example.com/commands",
    }
    base.update(overrides)
    return SimpleNamespace(**base)


@pytest.mark.parametrize("api_key", ["", "   "])
def test_require_provider_keys_fails_when_openai_key_empty(api_key):
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        _require_provider_keys(_settings(OPENAI_API_KEY=api_key))


def test_require_provider_keys_skips_mocked_providers():
    _require_provider_keys(_settings(MOCK_LLM=True, MOCK_TTS=True, OPENAI_API_KEY="", ELEVENLABS_API_KEY=""))


def test_validate_startup_config_raises_on_missing_elevenlabs_key():
    with pytest.raises(RuntimeError, match="ELEVENLABS_API_KEY"):
        validate_startup_config(_settings(ELEVENLABS_API_KEY=""))


def test_validate_startup_config_rejects_mocks_in_prod():
    with pytest.raises(RuntimeError, match="production"):
        validate_startup_config(_settings(ENV="prod", MOCK_LLM=True))


def test_validate_startup_config_rejects_non_positive_timeout():
    with pytest.raises(RuntimeError, match="LLM_TIMEOUT_S"):
        validate_startup_config(_settings(LLM_TIMEOUT_S=0))


def test_validate_startup_config_logs_warning_for_missing_builder_url(caplog):
    caplog.set_level("WARNING")

    validate_startup_config(_settings(ARTIFACT_BUILDER_URL=""))

    assert "ARTIFACT_BUILDER_URL" in caplog.text


def test_validate_startup_config_passes_with_valid_required_config():
    validate_startup_config(_settings())
