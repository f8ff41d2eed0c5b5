"""Errors raised by the model providers.

The analysis and chat services wrap these into
:class:`~deepdive.core.errors.AnalysisCallError` and
:class:`~deepdive.core.errors.ChatCallError`.
"""

from __future__ import annotations


class LLMProviderError(Exception):
    """A model call could not be completed."""


class APIKeyMissingError(LLMProviderError):
    """No API key was configured for the provider."""


class RateLimitExceededError(LLMProviderError):
    """The provider rejected the call for quota reasons."""


class ProviderAPIError(LLMProviderError):
    """Any other failure reported by the provider or its client library."""
