"""Tests for parsing the model's analysis answer."""

from __future__ import annotations

import json

from deepdive.services.analysis_parser import (
    MISSING_REPORT,
    ParseStatus,
    parse_analysis_response,
)

CHART_DATA = {
    "timeOfDay": [{"hour": "09:00-09:59", "pnl": 310.0, "tradeCount": 4}],
    "weekday": [{"weekday": "Monday", "pnl": 120.0, "tradeCount": 3}],
    "equityCurve": [{"tradeNumber": 1, "cumulativePnl": 50.0}],
    "instrumentPerformance": [
        {"instrument": "ES", "netPnl": 310.0, "winRate": 55.5, "totalTrades": 4, "profitFactor": "Infinity"}
    ],
}


def test_valid_payload() -> None:
    raw = json.dumps(
        {
            "markdownReport": "## Executive Summary",
            "chartData": CHART_DATA,
            "suggestedQuestions": ["Why Mondays?", "  ", "What about ES?"],
        }
    )

    parsed = parse_analysis_response(raw)

    assert parsed.status is ParseStatus.VALID
    assert parsed.result.markdown_report == "## Executive Summary"
    assert parsed.result.chart_data.time_of_day[0].hour == "09:00-09:59"
    assert parsed.result.chart_data.instrument_performance[0].profit_factor == "Infinity"
    assert parsed.result.suggested_questions == ["Why Mondays?", "What about ES?"]


def test_fenced_json_is_accepted() -> None:
    raw = "```json\n" + json.dumps({"markdownReport": "## Report", "chartData": CHART_DATA}) + "\n```"

    parsed = parse_analysis_response(raw)

    assert parsed.status is ParseStatus.VALID
    assert parsed.result.markdown_report == "## Report"


def test_malformed_chart_data_is_dropped_but_report_kept() -> None:
    broken = dict(CHART_DATA)
    broken.pop("equityCurve")
    raw = json.dumps({"markdownReport": "## Report", "chartData": broken, "suggestedQuestions": ["Q?"]})

    parsed = parse_analysis_response(raw)

    assert parsed.status is ParseStatus.CHART_DATA_DROPPED
    assert parsed.result.chart_data is None
    assert parsed.result.markdown_report == "## Report"
    assert parsed.result.suggested_questions == ["Q?"]


def test_missing_chart_data_is_valid() -> None:
    parsed = parse_analysis_response(json.dumps({"markdownReport": "## Report"}))

    assert parsed.status is ParseStatus.VALID
    assert parsed.result.chart_data is None
    assert parsed.result.suggested_questions == []


def test_missing_report_uses_placeholder() -> None:
    parsed = parse_analysis_response(json.dumps({"chartData": CHART_DATA}))

    assert parsed.result.markdown_report == MISSING_REPORT


def test_non_json_answer_becomes_error_report() -> None:
    parsed = parse_analysis_response("Sorry, I cannot help with that.")

    assert parsed.status is ParseStatus.UNPARSEABLE
    assert parsed.result.markdown_report.startswith("## AI Response Error")
    assert parsed.result.markdown_report.endswith("Sorry, I cannot help with that.")
    assert parsed.result.chart_data is None
    assert parsed.result.suggested_questions == []


def test_json_array_is_unparseable() -> None:
    assert parse_analysis_response("[1, 2, 3]").status is ParseStatus.UNPARSEABLE
