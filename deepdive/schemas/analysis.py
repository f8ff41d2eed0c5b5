"""Analysis result and chart data schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _ChartPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TimeOfDayPoint(_ChartPoint):
    hour: Union[str, int] = ""
    pnl: float = 0.0
    trade_count: int = Field(default=0, alias="tradeCount")


class WeekdayPoint(_ChartPoint):
    weekday: str = ""
    pnl: float = 0.0
    trade_count: int = Field(default=0, alias="tradeCount")


class EquityCurvePoint(_ChartPoint):
    trade_number: int = Field(default=0, alias="tradeNumber")
    cumulative_pnl: float = Field(default=0.0, alias="cumulativePnl")


class InstrumentPerformance(_ChartPoint):
    instrument: str = ""
    net_pnl: float = Field(default=0.0, alias="netPnl")
    win_rate: float = Field(default=0.0, alias="winRate")
    total_trades: int = Field(default=0, alias="totalTrades")
    profit_factor: Optional[Union[float, str]] = Field(default=None, alias="profitFactor")


class ChartData(_ChartPoint):
    """The four chart series derived from a journal. All four are required."""

    time_of_day: List[TimeOfDayPoint] = Field(alias="timeOfDay")
    weekday: List[WeekdayPoint]
    equity_curve: List[EquityCurvePoint] = Field(alias="equityCurve")
    instrument_performance: List[InstrumentPerformance] = Field(alias="instrumentPerformance")


class AnalysisResult(BaseModel):
    """The AI generated report for one file, plus store metadata when known."""

    model_config = ConfigDict(populate_by_name=True)

    markdown_report: str = Field(default="", alias="markdownReport")
    chart_data: Optional[ChartData] = Field(default=None, alias="chartData")
    suggested_questions: List[str] = Field(default_factory=list, alias="suggestedQuestions")
    file_id: Optional[str] = Field(default=None, alias="fileId")
    analyzed_at: Optional[datetime] = Field(default=None, alias="analysisDate")
    processing_time_ms: Optional[int] = Field(default=None, alias="processingTimeMs")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class AnalysisCreateRequest(BaseModel):
    """Body of ``POST /analysis``."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(..., alias="fileId", min_length=1)
    result: AnalysisResult
    processing_time_ms: Optional[int] = Field(default=None, alias="processingTimeMs")


class AnalysisCreatedResponse(BaseModel):
    message: str = "Analysis result saved"
    id: int


__all__ = [
    "AnalysisCreateRequest",
    "AnalysisCreatedResponse",
    "AnalysisResult",
    "ChartData",
    "EquityCurvePoint",
    "InstrumentPerformance",
    "TimeOfDayPoint",
    "WeekdayPoint",
]
