"""Reading journals from disk and writing reports back."""

from __future__ import annotations

import base64
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import structlog

from ..schemas import AnalysisResult, UploadedFile

logger = structlog.get_logger(__name__)

BINARY_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)
BINARY_EXTENSIONS = (".pdf", ".xls", ".xlsx")
DEFAULT_REPORT_NAME = "deepdive-report.md"


def is_binary_journal(name: str, mime_type: str) -> bool:
    """PDF and Excel journals travel as base64; everything else as text."""
    return mime_type in BINARY_MIME_TYPES or name.lower().endswith(BINARY_EXTENSIONS)


def build_uploaded_file(
    path: Union[str, Path], *, now: Optional[datetime] = None
) -> UploadedFile:
    """Load ``path`` as an :class:`UploadedFile` ready for the session controller.

    The id is the file name plus the upload timestamp, so uploading the same
    file twice yields two entries.
    """
    source = Path(path)
    uploaded_at = now or datetime.now(timezone.utc)
    guessed, _ = mimetypes.guess_type(source.name)
    binary = is_binary_journal(source.name, guessed or "")
    mime_type = guessed or ("application/octet-stream" if binary else "text/plain")

    raw = source.read_bytes()
    if binary:
        content = base64.b64encode(raw).decode("ascii")
    else:
        content = raw.decode("utf-8", errors="replace")

    iso = uploaded_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    logger.debug("Journal loaded", path=str(source), binary=binary, size=len(raw))
    return UploadedFile(
        id=f"{source.name}-{iso}",
        name=source.name,
        mime_type=mime_type,
        content=content,
        is_binary=binary,
        size_bytes=len(raw),
        uploaded_at=uploaded_at,
    )


def export_report_markdown(
    result: AnalysisResult, path: Union[str, Path] = DEFAULT_REPORT_NAME
) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(result.markdown_report, encoding="utf-8")
    logger.info("Report exported", path=str(target))
    return target


__all__ = [
    "BINARY_MIME_TYPES",
    "DEFAULT_REPORT_NAME",
    "build_uploaded_file",
    "export_report_markdown",
    "is_binary_journal",
]
