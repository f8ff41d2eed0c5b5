"""Wires the session controller from settings."""

from __future__ import annotations

from typing import Optional, Tuple

import structlog

from ..cache import FallbackCache, create_fallback_cache
from ..config.settings import Settings
from ..llm import GeminiProvider
from ..store import PersistentStore, create_store
from .analysis import AnalysisService, GeminiAnalysisService
from .chat import ChatService, GeminiChatService
from .session_controller import SessionController

logger = structlog.get_logger(__name__)


def create_llm_services(
    settings: Settings,
) -> Tuple[Optional[AnalysisService], Optional[ChatService]]:
    """Gemini-backed analyze and chat collaborators, or ``(None, None)`` without an API key.

    The analysis model is asked for a JSON answer; the chat model streams plain text.
    """
    if not settings.google_api_key:
        logger.warning("GOOGLE_API_KEY is not set, analysis and chat are disabled")
        return None, None
    analysis_provider = GeminiProvider(
        api_key=settings.google_api_key,
        model_name=settings.gemini_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_output_tokens,
        response_mime_type="application/json",
    )
    chat_provider = GeminiProvider(
        api_key=settings.google_api_key,
        model_name=settings.gemini_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_output_tokens,
    )
    return GeminiAnalysisService(analysis_provider), GeminiChatService(chat_provider)


def create_session_controller(
    settings: Settings,
    *,
    store: Optional[PersistentStore] = None,
    fallback: Optional[FallbackCache] = None,
    analyzer: Optional[AnalysisService] = None,
    chat_service: Optional[ChatService] = None,
) -> SessionController:
    if analyzer is None or chat_service is None:
        default_analyzer, default_chat = create_llm_services(settings)
        analyzer = analyzer or default_analyzer
        chat_service = chat_service or default_chat
    return SessionController(
        store or create_store(settings),
        fallback or create_fallback_cache(settings),
        analyzer,
        chat_service,
        recovery_enabled=settings.degraded_recovery_enabled,
        recovery_interval=settings.degraded_retry_interval_seconds,
    )


__all__ = ["create_llm_services", "create_session_controller"]
