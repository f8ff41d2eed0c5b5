"""Tests for the analyze and chat collaborators."""

from __future__ import annotations

import json

import pytest

from deepdive.config import Settings
from deepdive.core.errors import AnalysisCallError, ChatCallError
from deepdive.llm import ProviderAPIError
from deepdive.schemas import ChatMessage
from deepdive.services import (
    GeminiAnalysisService,
    GeminiChatService,
    conversation,
    create_llm_services,
    file_message_content,
)
from deepdive.services.prompts import ANALYSIS_PROMPT

from ..factories import ScriptedProvider, make_file


def test_text_files_are_sent_inline() -> None:
    content = file_message_content(make_file(content="a,b\n1,2\n"))

    assert isinstance(content, str)
    assert content.startswith(ANALYSIS_PROMPT)
    assert "a,b\n1,2" in content


def test_binary_files_are_sent_as_media() -> None:
    file = make_file("journal.pdf-1", mime_type="application/pdf", content="JVBERi0=", is_binary=True)

    content = file_message_content(file)

    assert content[0] == {"type": "text", "text": ANALYSIS_PROMPT}
    assert content[1] == {"type": "media", "mime_type": "application/pdf", "data": "JVBERi0="}


@pytest.mark.asyncio
async def test_analysis_service_parses_reply() -> None:
    provider = ScriptedProvider(
        reply=json.dumps({"markdownReport": "## Executive Summary", "suggestedQuestions": ["Q1"]})
    )

    result = await GeminiAnalysisService(provider).analyze(make_file())

    assert result.markdown_report == "## Executive Summary"
    assert result.suggested_questions == ["Q1"]
    assert provider.sent[0][0].role == "user"


@pytest.mark.asyncio
async def test_analysis_service_wraps_provider_errors() -> None:
    provider = ScriptedProvider(error=ProviderAPIError("Gemini API error: invalid key"))

    with pytest.raises(AnalysisCallError) as exc_info:
        await GeminiAnalysisService(provider).analyze(make_file())

    assert exc_info.value.message.startswith("An error occurred during analysis.")


def test_conversation_primes_with_analysis_and_sends_message_once() -> None:
    history = [
        ChatMessage(role="user", text="first?"),
        ChatMessage(role="model", text="answer"),
        ChatMessage(role="user", text="second?"),
    ]

    messages = conversation(make_file(), "## Report", history, "second?")

    assert [m.role for m in messages] == ["user", "assistant", "user", "assistant", "user"]
    assert messages[1].content == "## Report"
    assert messages[-1].content == "second?"


@pytest.mark.asyncio
async def test_chat_service_streams_fragments() -> None:
    provider = ScriptedProvider(chunks=["Cut ", "size."])

    fragments = [
        fragment
        async for fragment in GeminiChatService(provider).stream_reply(make_file(), "## Report", [], "How?")
    ]

    assert fragments == ["Cut ", "size."]


@pytest.mark.asyncio
async def test_chat_service_wraps_stream_errors() -> None:
    provider = ScriptedProvider(chunks=["Cut "], error=ProviderAPIError("boom"))

    with pytest.raises(ChatCallError):
        async for _ in GeminiChatService(provider).stream_reply(make_file(), "## Report", [], "How?"):
            pass


def test_services_disabled_without_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    assert create_llm_services(Settings(_env_file=None)) == (None, None)
