"""Google Gemini provider implementation."""

from __future__ import annotations

from typing import Any, AsyncIterator, List, Optional

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from .base import BaseLLMProvider, LLMMessage, LLMResponse
from .exceptions import APIKeyMissingError, ProviderAPIError, RateLimitExceededError

logger = structlog.get_logger(__name__)


def _to_langchain(message: LLMMessage) -> BaseMessage:
    if message.role == "system":
        return SystemMessage(content=message.content)
    if message.role == "assistant":
        return AIMessage(content=message.content)
    return HumanMessage(content=message.content)


def _text_of(content: Any) -> str:
    """Flatten LangChain message content (a string or a list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return ""


def _map_error(exc: Exception, action: str) -> Exception:
    error_msg = str(exc).lower()
    if "rate" in error_msg or "429" in error_msg or "resource_exhausted" in error_msg:
        return RateLimitExceededError(f"Gemini rate limit exceeded: {exc}")
    return ProviderAPIError(f"Gemini {action} error: {exc}")


class GeminiProvider(BaseLLMProvider):
    """Gemini through ``langchain_google_genai``."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        client: Optional[Any] = None,
        **options: Any,
    ) -> None:
        if not api_key and client is None:
            raise APIKeyMissingError("Google API key is required (GOOGLE_API_KEY)")
        super().__init__(api_key, model_name, temperature, max_tokens, **options)
        self.client = client or ChatGoogleGenerativeAI(
            model=model_name,
            api_key=api_key,
            temperature=temperature,
            max_output_tokens=max_tokens,
            **options,
        )

    async def chat(self, messages: List[LLMMessage], **kwargs: Any) -> LLMResponse:
        try:
            reply = await self.client.ainvoke([_to_langchain(m) for m in messages], **kwargs)
        except Exception as exc:
            logger.error("Gemini call failed", model=self.model_name, error=str(exc))
            raise _map_error(exc, "API") from exc

        tokens = getattr(reply, "usage_metadata", None) or {}
        finish = (getattr(reply, "response_metadata", None) or {}).get("finish_reason")
        return LLMResponse(
            content=_text_of(reply.content),
            model=self.model_name,
            usage={
                "prompt_tokens": int(tokens.get("input_tokens", 0)),
                "completion_tokens": int(tokens.get("output_tokens", 0)),
                "total_tokens": int(tokens.get("total_tokens", 0)),
            }
            if tokens
            else {},
            finish_reason=finish,
        )

    async def stream(self, messages: List[LLMMessage], **kwargs: Any) -> AsyncIterator[str]:
        try:
            async for chunk in self.client.astream(
                [_to_langchain(m) for m in messages], **kwargs
            ):
                fragment = _text_of(chunk.content)
                if fragment:
                    yield fragment
        except Exception as exc:
            logger.error("Gemini stream broke off", model=self.model_name, error=str(exc))
            raise _map_error(exc, "streaming") from exc


__all__ = ["GeminiProvider"]
