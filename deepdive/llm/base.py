"""Provider-neutral message types and the provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

# Plain text, or parts such as {"type": "text", "text": ...} and
# {"type": "media", "mime_type": ..., "data": <base64>} for binary journals.
MessageContent = Union[str, List[Dict[str, Any]]]


class LLMMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: MessageContent


class LLMResponse(BaseModel):
    content: str
    model: str
    usage: Dict[str, int] = Field(default_factory=dict)
    finish_reason: Optional[str] = None


class BaseLLMProvider(ABC):
    """One configured model.

    ``chat`` returns the complete answer; ``stream`` yields text fragments in
    arrival order. Both raise :class:`RateLimitExceededError` or
    :class:`ProviderAPIError` on failure.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        **options: Any,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.options = options

    @abstractmethod
    async def chat(self, messages: List[LLMMessage], **kwargs: Any) -> LLMResponse:
        """Send the conversation and wait for the full answer."""

    @abstractmethod
    def stream(self, messages: List[LLMMessage], **kwargs: Any) -> AsyncIterator[str]:
        """Send the conversation and yield the answer as it is generated."""
