"""Filesystem helpers."""

from .files import (
    BINARY_MIME_TYPES,
    DEFAULT_REPORT_NAME,
    build_uploaded_file,
    export_report_markdown,
    is_binary_journal,
)

__all__ = [
    "BINARY_MIME_TYPES",
    "DEFAULT_REPORT_NAME",
    "build_uploaded_file",
    "export_report_markdown",
    "is_binary_journal",
]
