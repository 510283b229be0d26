import os
from pathlib import Path
from unittest import mock

from core.config import Settings


def test_settings_defaults():
    """Test that default values are set correctly."""
    with mock.patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)
    assert settings.LLM_PROVIDER == "qianfan"
    assert settings.EVALUATION_MODEL == "ernie-4.5-turbo-128k"
    assert settings.SUMMARY_SCORE_THRESHOLD == 70
    assert settings.MIN_DESCRIPTION_CHARS == 10
    assert settings.CONCURRENT_STAGES is False
    assert settings.TECHNICAL_MAX_RETRIES == 3
    assert settings.BUSINESS_TIMEOUT_MS == 180000
    assert settings.RECORD_DIR == Path("./output/evaluations")


def test_settings_env_override():
    """Test that environment variables override defaults."""
    with mock.patch.dict(os.environ, {"BUSINESS_MAX_RETRIES": "2", "CONCURRENT_STAGES": "true"}):
        settings = Settings(_env_file=None)
        assert settings.BUSINESS_MAX_RETRIES == 2
        assert settings.CONCURRENT_STAGES is True


def test_base_url_follows_provider():
    with mock.patch.dict(os.environ, {}, clear=True):
        assert Settings(_env_file=None).get_base_url() == "https://qianfan.baidubce.com/v2"
        assert Settings(_env_file=None, LLM_PROVIDER="openrouter").get_base_url() == "https://openrouter.ai/api/v1"
        assert Settings(_env_file=None, LLM_PROVIDER="openai").get_base_url() is None
        assert Settings(_env_file=None, LLM_BASE_URL="http://localhost:8000/v1").get_base_url() == "http://localhost:8000/v1"


def test_intent_model_defaults_to_evaluation_model():
    with mock.patch.dict(os.environ, {}, clear=True):
        assert Settings(_env_file=None).get_intent_model() == "ernie-4.5-turbo-128k"
        assert Settings(_env_file=None, INTENT_MODEL="small-model").get_intent_model() == "small-model"
