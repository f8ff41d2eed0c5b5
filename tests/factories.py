"""Builders and fake collaborators shared by the test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any, List, Optional

from deepdive.core.errors import AnalysisCallError, ChatCallError, StoreConnectionError
from deepdive.db import DatabaseManager
from deepdive.llm import BaseLLMProvider, LLMMessage, LLMResponse
from deepdive.schemas import AnalysisResult, ChartData, ChatMessage, UploadedFile
from deepdive.services import AnalysisService, ChatService
from deepdive.store import SQLiteStore


def make_file(file_id: str = "trades.csv-2024-01-01T00:00:00.000Z", **overrides) -> UploadedFile:
    data = {
        "id": file_id,
        "name": file_id.split("-")[0],
        "mime_type": "text/csv",
        "content": "date,instrument,pnl\n2024-01-02,ES,125.5\n2024-01-03,NQ,-40\n",
        "is_binary": False,
    }
    data.update(overrides)
    return UploadedFile(**data)


def make_chart_data() -> ChartData:
    return ChartData.model_validate(
        {
            "timeOfDay": [{"hour": "09:00-09:59", "pnl": 125.5, "tradeCount": 1}],
            "weekday": [{"weekday": "Tuesday", "pnl": 125.5, "tradeCount": 1}],
            "equityCurve": [
                {"tradeNumber": 1, "cumulativePnl": 125.5},
                {"tradeNumber": 2, "cumulativePnl": 85.5},
            ],
            "instrumentPerformance": [
                {"instrument": "ES", "netPnl": 125.5, "winRate": 100, "totalTrades": 1, "profitFactor": 3.2}
            ],
        }
    )


def make_result(report: str = "## Executive Summary\n- **Total Net PnL**: $85.50") -> AnalysisResult:
    return AnalysisResult(
        markdown_report=report,
        chart_data=make_chart_data(),
        suggested_questions=["Why is NQ losing?", "Which hour is best?"],
    )


class FakeAnalyzer(AnalysisService):
    """Returns canned results; optionally fails or waits on an event."""

    def __init__(self, result: Optional[AnalysisResult] = None) -> None:
        self.result = result or make_result()
        self.calls: List[str] = []
        self.fail = False
        self.gate = None

    async def analyze(self, file: UploadedFile) -> AnalysisResult:
        self.calls.append(file.id)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise AnalysisCallError(details={"file_id": file.id})
        return self.result.model_copy(
            update={"markdown_report": f"{self.result.markdown_report}\n\nfile: {file.id}"}
        )


class FakeChat(ChatService):
    """Streams canned fragments; optionally fails after ``fail_after`` fragments."""

    def __init__(self, fragments: Sequence[str] = ("Hello", " trader", "!")) -> None:
        self.fragments = list(fragments)
        self.fail_after: Optional[int] = None
        self.calls: List[dict] = []

    async def stream_reply(
        self,
        file: UploadedFile,
        report: str,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        self.calls.append(
            {"file_id": file.id, "report": report, "history": list(history), "message": message}
        )
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise ChatCallError(details={"file_id": file.id})
            yield fragment
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise ChatCallError(details={"file_id": file.id})


class UnreachableStore(SQLiteStore):
    """SQLite store whose health check fails until ``reachable`` is set."""

    backend_name = "unreachable"

    def __init__(self, db: DatabaseManager, **kwargs) -> None:
        super().__init__(db, **kwargs)
        self.reachable = False

    async def health_check(self) -> None:
        if not self.reachable:
            raise StoreConnectionError()
        await super().health_check()


class ScriptedProvider(BaseLLMProvider):
    def __init__(
        self,
        reply: str = "",
        chunks: Sequence[str] = (),
        error: Optional[Exception] = None,
    ) -> None:
        super().__init__(api_key="test", model_name="scripted")
        self.reply = reply
        self.chunks = list(chunks)
        self.error = error
        self.sent: List[List[LLMMessage]] = []

    async def chat(self, messages: List[LLMMessage], **kwargs: Any) -> LLMResponse:
        self.sent.append(messages)
        if self.error:
            raise self.error
        return LLMResponse(content=self.reply, model=self.model_name)

    async def stream(self, messages: List[LLMMessage], **kwargs: Any) -> AsyncIterator[str]:
        self.sent.append(messages)
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise self.error
