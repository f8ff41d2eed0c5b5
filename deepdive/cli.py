"""Command line driver: each command runs one session against the configured store."""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence

import structlog

from .config import Settings, get_settings
from .core.errors import DeepDiveError
from .core.logging import configure_logging
from .services import BackendMode, SessionController, create_session_controller
from .utils import DEFAULT_REPORT_NAME, build_uploaded_file, export_report_markdown

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def open_session(settings: Settings) -> AsyncIterator[SessionController]:
    controller = create_session_controller(settings)
    await controller.start()
    if controller.state.mode is BackendMode.DEGRADED:
        print("Store unreachable, working from the fallback cache.", file=sys.stderr)
    try:
        yield controller
    finally:
        await controller.close()


def _report_error(controller: SessionController) -> int:
    if controller.state.last_error:
        print(f"Error: {controller.state.last_error}", file=sys.stderr)
        return 1
    return 0


async def _select(controller: SessionController, file_id: str) -> bool:
    if await controller.select_file(file_id):
        return True
    print(f"Error: File not found: {file_id}", file=sys.stderr)
    return False


async def cmd_files(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        for file in controller.state.files:
            analysed = "analysed" if file.id in controller.state.analyses else "-"
            print(f"{file.id}\t{file.name}\t{file.size_bytes or 0} B\t{analysed}")
    return 0


async def cmd_upload(settings: Settings, args: argparse.Namespace) -> int:
    try:
        file = build_uploaded_file(args.path)
    except OSError as exc:
        print(f"Error: cannot read {args.path}: {exc}", file=sys.stderr)
        return 1
    async with open_session(settings) as controller:
        stored = await controller.upload_file(file)
        if stored is None:
            return _report_error(controller)
        print(stored.id)
    return 0


async def cmd_analyze(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        if not await _select(controller, args.file_id):
            return 1
        result = await controller.analyze()
        if result is None:
            return _report_error(controller) or 1
        print(result.markdown_report)
        if result.suggested_questions:
            print("\nSuggested questions:")
            for question in result.suggested_questions:
                print(f"- {question}")
    return 0


async def cmd_chat(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        if not await _select(controller, args.file_id):
            return 1
        if controller.state.current_result is None:
            print("Error: analyse the file before chatting about it.", file=sys.stderr)
            return 1
        reply = await controller.send_message(args.message)
        if reply is None:
            return _report_error(controller) or 1
        print(reply)
    return 0


async def cmd_delete(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        await controller.delete_file(args.file_id)
        return _report_error(controller)


async def cmd_stats(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        stats = await controller.store.stats()
        print(f"Files:     {stats.file_count}")
        print(f"Analyses:  {stats.analysis_count}")
        print(f"Messages:  {stats.message_count}")
        print(f"Storage:   {stats.storage_size}")
    return 0


async def cmd_backup(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        result = await controller.store.backup(args.path)
        print(f"{result.message}: {result.path}")
    return 0


async def cmd_export(settings: Settings, args: argparse.Namespace) -> int:
    async with open_session(settings) as controller:
        result = controller.state.analyses.get(args.file_id)
        if result is None:
            print("Error: Analysis result not found", file=sys.stderr)
            return 1
        target = export_report_markdown(result, args.path)
        print(target)
    return 0


def cmd_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "deepdive.main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deepdive",
        description="Analyse trading journals and chat about the results.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the store HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT)")
    serve.set_defaults(handler=cmd_serve)

    sub.add_parser("files", help="List stored journals").set_defaults(handler=cmd_files)

    upload = sub.add_parser("upload", help="Store a journal file")
    upload.add_argument("path", help="CSV, TXT, PDF, XLS or XLSX journal")
    upload.set_defaults(handler=cmd_upload)

    analyze = sub.add_parser("analyze", help="Analyse a stored journal")
    analyze.add_argument("file_id")
    analyze.set_defaults(handler=cmd_analyze)

    chat = sub.add_parser("chat", help="Ask a follow-up question about an analysis")
    chat.add_argument("file_id")
    chat.add_argument("message")
    chat.set_defaults(handler=cmd_chat)

    delete = sub.add_parser("delete", help="Delete a journal with its analyses and chat")
    delete.add_argument("file_id")
    delete.set_defaults(handler=cmd_delete)

    sub.add_parser("stats", help="Show store statistics").set_defaults(handler=cmd_stats)

    backup = sub.add_parser("backup", help="Back up the store")
    backup.add_argument("path", nargs="?", default=None)
    backup.set_defaults(handler=cmd_backup)

    export = sub.add_parser("export", help="Write an analysis report as Markdown")
    export.add_argument("file_id")
    export.add_argument("path", nargs="?", default=DEFAULT_REPORT_NAME)
    export.set_defaults(handler=cmd_export)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    if args.command == "serve":
        return cmd_serve(settings, args)
    try:
        return asyncio.run(args.handler(settings, args))
    except DeepDiveError as exc:
        logger.error("Command failed", command=args.command, error=exc.message)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1


__all__ = ["build_parser", "main"]
