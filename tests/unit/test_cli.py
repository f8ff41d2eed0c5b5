"""End-to-end runs of the command line driver on a temporary SQLite store."""

from __future__ import annotations

from pathlib import Path

import pytest

from deepdive.cli import build_parser, main
from deepdive.config import reset_settings
from deepdive.services import ANALYSIS_ERROR_MESSAGE


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("STORE_API_URL", "GOOGLE_API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("FALLBACK_CACHE_BACKEND", "memory")
    monkeypatch.setenv("BACKUP_DIR", str(tmp_path / "backups"))
    reset_settings()
    yield tmp_path
    reset_settings()


def test_parser_defaults() -> None:
    parser = build_parser()

    export = parser.parse_args(["export", "abc"])
    backup = parser.parse_args(["backup"])

    assert export.path == "deepdive-report.md"
    assert backup.path is None
    with pytest.raises(SystemExit):
        parser.parse_args([])


def test_upload_list_and_stats(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    journal = workdir / "trades.csv"
    journal.write_text("date,pnl\n2024-01-02,10\n", encoding="utf-8")

    assert main(["upload", str(journal)]) == 0
    file_id = capsys.readouterr().out.strip()
    assert file_id.startswith("trades.csv-")

    assert main(["files"]) == 0
    assert file_id in capsys.readouterr().out

    assert main(["stats"]) == 0
    assert "Files:     1" in capsys.readouterr().out


def test_upload_missing_path_fails(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["upload", str(workdir / "absent.csv")]) == 1
    assert "cannot read" in capsys.readouterr().err


def test_analyze_without_api_key(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    journal = workdir / "trades.csv"
    journal.write_text("date,pnl\n", encoding="utf-8")
    main(["upload", str(journal)])
    file_id = capsys.readouterr().out.strip()

    assert main(["analyze", file_id]) == 1
    assert ANALYSIS_ERROR_MESSAGE in capsys.readouterr().err


def test_unknown_file_is_reported(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["analyze", "nope"]) == 1
    assert "File not found" in capsys.readouterr().err


def test_export_without_analysis(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["export", "nope"]) == 1
    assert "Analysis result not found" in capsys.readouterr().err
