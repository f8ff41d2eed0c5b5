"""Analysis, chat and session orchestration."""

from .analysis import AnalysisService, GeminiAnalysisService, file_message_content
from .analysis_parser import ParsedAnalysis, ParseStatus, parse_analysis_response
from .chat import ChatService, GeminiChatService, conversation
from .factory import create_llm_services, create_session_controller
from .session_controller import (
    ANALYSIS_ERROR_MESSAGE,
    CHAT_ERROR_MESSAGE,
    MigrationReport,
    SessionController,
)
from .session_state import BackendMode, SessionState
from .stream_accumulator import StreamAccumulator

__all__ = [
    "ANALYSIS_ERROR_MESSAGE",
    "AnalysisService",
    "BackendMode",
    "CHAT_ERROR_MESSAGE",
    "ChatService",
    "GeminiAnalysisService",
    "GeminiChatService",
    "MigrationReport",
    "ParseStatus",
    "ParsedAnalysis",
    "SessionController",
    "SessionState",
    "StreamAccumulator",
    "conversation",
    "create_llm_services",
    "create_session_controller",
    "file_message_content",
]
