"""Turns the model's raw analysis answer into an :class:`AnalysisResult`.

The answer should be a JSON object with ``markdownReport``, ``chartData`` and
``suggestedQuestions``. Each field degrades on its own: a broken chart payload
drops only the charts, and an answer that is not JSON at all becomes a report
explaining that and quoting the raw text.
"""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..schemas import AnalysisResult, ChartData

logger = structlog.get_logger(__name__)

MISSING_REPORT = "## Report Not Available\n\nThe AI did not return a valid report."
INVALID_JSON_TEMPLATE = (
    "## AI Response Error\n\n"
    "The AI returned a response that could not be processed as valid JSON. "
    "The raw response is provided below:\n\n---\n\n{raw}"
)

CHART_SERIES = ("timeOfDay", "weekday", "equityCurve", "instrumentPerformance")

_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL | re.IGNORECASE)


class ParseStatus(str, enum.Enum):
    VALID = "valid"
    CHART_DATA_DROPPED = "chart_data_dropped"
    UNPARSEABLE = "unparseable"


@dataclass(frozen=True)
class ParsedAnalysis:
    status: ParseStatus
    result: AnalysisResult
    raw_text: str


def _strip_fence(text: str) -> str:
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text


def _parse_chart_data(value: Any) -> Optional[ChartData]:
    if not isinstance(value, dict):
        return None
    if not all(isinstance(value.get(series), list) for series in CHART_SERIES):
        return None
    try:
        return ChartData.model_validate(value)
    except PydanticValidationError as exc:
        logger.warning("Chart data points are malformed", error=str(exc))
        return None


def _parse_questions(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def parse_analysis_response(raw: str) -> ParsedAnalysis:
    """Parse the model output. Never raises."""
    raw_text = (raw or "").strip()
    try:
        payload = json.loads(_strip_fence(raw_text))
    except json.JSONDecodeError:
        payload = None

    if not isinstance(payload, dict):
        logger.warning("Analysis response is not a JSON object", length=len(raw_text))
        return ParsedAnalysis(
            status=ParseStatus.UNPARSEABLE,
            result=AnalysisResult(
                markdown_report=INVALID_JSON_TEMPLATE.format(raw=raw_text),
                chart_data=None,
                suggested_questions=[],
            ),
            raw_text=raw_text,
        )

    report = payload.get("markdownReport")
    if not isinstance(report, str) or not report.strip():
        report = MISSING_REPORT

    raw_chart = payload.get("chartData")
    chart_data = _parse_chart_data(raw_chart)
    status = ParseStatus.VALID
    if raw_chart is not None and chart_data is None:
        logger.warning("Analysis returned malformed chart data, discarding it")
        status = ParseStatus.CHART_DATA_DROPPED

    return ParsedAnalysis(
        status=status,
        result=AnalysisResult(
            markdown_report=report,
            chart_data=chart_data,
            suggested_questions=_parse_questions(payload.get("suggestedQuestions")),
        ),
        raw_text=raw_text,
    )


__all__ = [
    "INVALID_JSON_TEMPLATE",
    "MISSING_REPORT",
    "ParseStatus",
    "ParsedAnalysis",
    "parse_analysis_response",
]
