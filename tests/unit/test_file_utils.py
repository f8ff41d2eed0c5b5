"""Tests for journal ingestion and report export."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from pathlib import Path

from deepdive.schemas import AnalysisResult
from deepdive.utils import build_uploaded_file, export_report_markdown, is_binary_journal

NOW = datetime(2024, 3, 1, 14, 30, 0, tzinfo=timezone.utc)


def test_text_journal_is_read_inline(tmp_path: Path) -> None:
    path = tmp_path / "trades.csv"
    path.write_text("date,pnl\n2024-02-01,10\n", encoding="utf-8")

    file = build_uploaded_file(path, now=NOW)

    assert file.id == "trades.csv-2024-03-01T14:30:00.000Z"
    assert file.name == "trades.csv"
    assert file.mime_type == "text/csv"
    assert file.content == "date,pnl\n2024-02-01,10\n"
    assert file.is_binary is False
    assert file.size_bytes == len("date,pnl\n2024-02-01,10\n")


def test_pdf_journal_is_base64(tmp_path: Path) -> None:
    raw = b"%PDF-1.4 fake"
    path = tmp_path / "statement.pdf"
    path.write_bytes(raw)

    file = build_uploaded_file(path, now=NOW)

    assert file.is_binary is True
    assert file.mime_type == "application/pdf"
    assert base64.b64decode(file.content) == raw


def test_unknown_extension_defaults_to_text(tmp_path: Path) -> None:
    path = tmp_path / "journal.tradelog"
    path.write_text("x", encoding="utf-8")

    file = build_uploaded_file(path, now=NOW)

    assert file.mime_type == "text/plain"
    assert file.is_binary is False


def test_binary_detection_by_extension_or_type() -> None:
    assert is_binary_journal("book.XLSX", "")
    assert is_binary_journal("export", "application/vnd.ms-excel")
    assert not is_binary_journal("trades.csv", "text/csv")


def test_export_writes_markdown(tmp_path: Path) -> None:
    target = export_report_markdown(
        AnalysisResult(markdown_report="## Executive Summary\n"), tmp_path / "out" / "report.md"
    )

    assert target.read_text(encoding="utf-8") == "## Executive Summary\n"
