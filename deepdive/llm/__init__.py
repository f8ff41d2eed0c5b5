"""LLM provider layer."""

from .base import BaseLLMProvider, LLMMessage, LLMResponse, MessageContent
from .exceptions import (
    APIKeyMissingError,
    LLMProviderError,
    ProviderAPIError,
    RateLimitExceededError,
)
from .gemini_provider import GeminiProvider

__all__ = [
    "APIKeyMissingError",
    "BaseLLMProvider",
    "GeminiProvider",
    "LLMMessage",
    "LLMProviderError",
    "LLMResponse",
    "MessageContent",
    "ProviderAPIError",
    "RateLimitExceededError",
]
