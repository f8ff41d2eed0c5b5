"""Chat collaborator: streams the model's reply to a follow-up question."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Sequence

import structlog

from ..core.errors import ChatCallError
from ..llm import BaseLLMProvider, LLMMessage, LLMProviderError
from ..schemas import ChatMessage, UploadedFile
from .analysis import file_message_content

logger = structlog.get_logger(__name__)


class ChatService(ABC):
    @abstractmethod
    def stream_reply(
        self,
        file: UploadedFile,
        report: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        """Yield reply fragments in order.

        Raises:
            ChatCallError: The stream could not be opened or broke off
        """


def conversation(
    file: UploadedFile,
    report: str,
    history: Sequence[ChatMessage],
    message: str,
) -> List[LLMMessage]:
    """Replay the analysis as the first exchange, then the chat so far, then ``message``.

    ``history`` may already end with ``message`` as the pending user turn; it
    is sent once.
    """
    turns = list(history)
    if turns and turns[-1].role == "user" and turns[-1].text == message:
        turns.pop()
    messages = [
        LLMMessage(role="user", content=file_message_content(file)),
        LLMMessage(role="assistant", content=report),
    ]
    messages.extend(
        LLMMessage(role="assistant" if turn.role == "model" else "user", content=turn.text)
        for turn in turns
    )
    messages.append(LLMMessage(role="user", content=message))
    return messages


class GeminiChatService(ChatService):
    def __init__(self, provider: BaseLLMProvider) -> None:
        self.provider = provider

    async def stream_reply(
        self,
        file: UploadedFile,
        report: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        messages = conversation(file, report, history, message)
        try:
            async for fragment in self.provider.stream(messages):
                yield fragment
        except LLMProviderError as exc:
            logger.error("Chat stream failed", file_id=file.id, error=str(exc))
            raise ChatCallError(details={"file_id": file.id, "error": str(exc)}) from exc
