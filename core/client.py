"""
Centralized LLM Client Factory.
Handles initialization of OpenAI-compatible clients for the configured provider,
plus the chat endpoint wrapper the evaluators call.
"""
from typing import Any, Dict, List, NamedTuple, Optional

import instructor
from openai import AsyncOpenAI

from .config import PROVIDER_BASE_URLS, settings
from .errors import UpstreamAPIError
from .utils import get_logger

logger = get_logger("LLMClient")


class LLMClientFactory:
    """Factory for creating LLM clients."""

    @staticmethod
    def create_async(
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> AsyncOpenAI:
        """
        Create a raw async OpenAI-compatible client.

        SDK-level retries are disabled; retrying is owned by core.retry.
        """
        client_args = LLMClientFactory._get_client_args(provider, api_key, base_url)
        return AsyncOpenAI(max_retries=0, **client_args)

    @staticmethod
    def create_structured_async(
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        mode: Optional[Any] = None,
    ) -> Any:
        """Create an Instructor-patched async client for response_model calls."""
        if mode is None:
            # Qianfan does not support tool calling on every model
            mode = instructor.Mode.JSON if (provider or settings.LLM_PROVIDER) == "qianfan" else instructor.Mode.TOOLS
        base_client = LLMClientFactory.create_async(provider, api_key, base_url)
        return instructor.from_openai(base_client, mode=mode)

    @staticmethod
    def _get_client_args(provider, api_key, base_url) -> Dict[str, Any]:
        provider = provider or settings.LLM_PROVIDER
        key = api_key or settings.LLM_API_KEY
        if not key:
            raise ValueError("LLM_API_KEY not set")

        client_args: Dict[str, Any] = {"api_key": key}
        if provider == settings.LLM_PROVIDER:
            url = base_url or settings.get_base_url()
        else:
            url = base_url or PROVIDER_BASE_URLS.get(provider)
        if url:
            client_args["base_url"] = url
        return client_args


class TokenUsage(NamedTuple):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResult(NamedTuple):
    content: str
    usage: TokenUsage


class ChatEndpoint:
    """
    Thin wrapper over /chat/completions.

    Distinguishes three outcomes: a completion (returned), an error payload on
    a successful HTTP response (UpstreamAPIError), and transport failures
    (raised by the SDK unchanged).
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.EVALUATION_MODEL

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the async client."""
        if self._client is None:
            self._client = LLMClientFactory.create_async()
        return self._client

    async def complete(
        self,
        messages: List[Dict[str, str]],
        json_mode: bool = True,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> ChatResult:
        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        completion = await self.client.chat.completions.create(**kwargs)

        extra = getattr(completion, "model_extra", None) or {}
        if extra.get("error_code") or extra.get("error_msg"):
            raise UpstreamAPIError(extra.get("error_code"), str(extra.get("error_msg") or "unknown error"))
        if not completion.choices:
            raise UpstreamAPIError(None, "response contained no choices")

        content = completion.choices[0].message.content or ""
        logger.debug(f"Completion from {kwargs['model']}: {len(content)} chars")
        usage = completion.usage
        tally = TokenUsage(
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
        )
        return ChatResult(content=content, usage=tally)
