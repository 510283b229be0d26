from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.client import ChatEndpoint, LLMClientFactory
from core.errors import UpstreamAPIError


def completion(content="{}", extra=None, choices=True):
    return SimpleNamespace(
        model_extra=extra or {},
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))] if choices else [],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=8, total_tokens=20),
    )


def endpoint_returning(result):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=result)
    return ChatEndpoint(client=client, model="test-model"), client


@patch("core.client.AsyncOpenAI")
def test_factory_disables_sdk_retries(mock_openai):
    LLMClientFactory.create_async(provider="openai", api_key="sk-test")
    kwargs = mock_openai.call_args.kwargs
    assert kwargs["max_retries"] == 0
    assert kwargs["api_key"] == "sk-test"
    assert "base_url" not in kwargs


@patch("core.client.AsyncOpenAI")
def test_factory_resolves_provider_base_url(mock_openai):
    LLMClientFactory.create_async(provider="openrouter", api_key="sk-or-test")
    assert "openrouter.ai" in mock_openai.call_args.kwargs["base_url"]


@patch("core.client.AsyncOpenAI")
def test_factory_base_url_override(mock_openai):
    LLMClientFactory.create_async(provider="qianfan", api_key="k", base_url="http://localhost:8000/v1")
    assert mock_openai.call_args.kwargs["base_url"] == "http://localhost:8000/v1"


@patch("core.client.AsyncOpenAI")
@patch("instructor.from_openai")
def test_structured_client_uses_json_mode_for_qianfan(mock_from_openai, mock_openai):
    import instructor

    LLMClientFactory.create_structured_async(provider="qianfan", api_key="k")
    mock_from_openai.assert_called_once()
    assert mock_from_openai.call_args.kwargs["mode"] == instructor.Mode.JSON


def test_missing_key_raises():
    with patch("core.client.settings") as mock_settings:
        mock_settings.LLM_PROVIDER = "qianfan"
        mock_settings.LLM_API_KEY = ""
        with pytest.raises(ValueError, match="LLM_API_KEY"):
            LLMClientFactory.create_async()


@pytest.mark.asyncio
async def test_complete_returns_content_and_usage():
    endpoint, client = endpoint_returning(completion('{"score": 80}'))

    result = await endpoint.complete([{"role": "user", "content": "hi"}], temperature=0.1)

    assert result.content == '{"score": 80}'
    assert result.usage.total_tokens == 20
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["temperature"] == 0.1
    assert kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_free_text_call_omits_response_format():
    endpoint, client = endpoint_returning(completion("A summary."))
    await endpoint.complete([{"role": "user", "content": "hi"}], json_mode=False)
    assert "response_format" not in client.chat.completions.create.await_args.kwargs


@pytest.mark.asyncio
async def test_error_payload_raises_upstream_error():
    endpoint, _ = endpoint_returning(completion(extra={"error_code": "336100", "error_msg": "system busy"}))
    with pytest.raises(UpstreamAPIError) as exc_info:
        await endpoint.complete([{"role": "user", "content": "hi"}])
    assert exc_info.value.code == "336100"
    assert "system busy" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_choices_raises_upstream_error():
    endpoint, _ = endpoint_returning(completion(choices=False))
    with pytest.raises(UpstreamAPIError):
        await endpoint.complete([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_null_content_becomes_empty_string():
    endpoint, _ = endpoint_returning(completion(content=None))
    result = await endpoint.complete([{"role": "user", "content": "hi"}])
    assert result.content == ""
