"""Analyze collaborator: one journal in, one structured result out."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from ..core.errors import AnalysisCallError
from ..llm import BaseLLMProvider, LLMMessage, LLMProviderError, MessageContent
from ..schemas import AnalysisResult, UploadedFile
from .analysis_parser import ParseStatus, parse_analysis_response
from .prompts import ANALYSIS_PROMPT, text_prompt

logger = structlog.get_logger(__name__)


def file_message_content(file: UploadedFile) -> MessageContent:
    """The prompt plus the journal: inline text, or a base64 media part for binaries."""
    if file.is_binary:
        return [
            {"type": "text", "text": ANALYSIS_PROMPT},
            {"type": "media", "mime_type": file.mime_type, "data": file.content},
        ]
    return text_prompt(file.content)


class AnalysisService(ABC):
    @abstractmethod
    async def analyze(self, file: UploadedFile) -> AnalysisResult:
        """Analyse ``file``.

        Raises:
            AnalysisCallError: The model could not be reached or refused the request
        """


class GeminiAnalysisService(AnalysisService):
    """Sends the journal to the provider and parses the JSON answer."""

    def __init__(self, provider: BaseLLMProvider) -> None:
        self.provider = provider

    async def analyze(self, file: UploadedFile) -> AnalysisResult:
        messages = [LLMMessage(role="user", content=file_message_content(file))]
        try:
            response = await self.provider.chat(messages)
        except LLMProviderError as exc:
            logger.error("Analysis call failed", file_id=file.id, error=str(exc))
            raise AnalysisCallError(details={"file_id": file.id, "error": str(exc)}) from exc

        parsed = parse_analysis_response(response.content)
        if parsed.status is not ParseStatus.VALID:
            logger.warning("Analysis response degraded", file_id=file.id, status=parsed.status.value)
        return parsed.result
