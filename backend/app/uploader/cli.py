"""Command line interface for guests sharing event photos and videos."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Sequence

import httpx
from rich.logging import RichHandler
from rich.markup import escape

from .console import BatchStatusView
from .models import BatchState
from .orchestrator import UploadOrchestrator
from .selection import SelectionError, select_files

DEFAULT_SERVER_URL = "http://localhost:8000"
REQUEST_TIMEOUT_SECONDS = 120.0

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if not debug and not log_level:
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(rich_tracebacks=True, markup=False, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


def parse_share_link(link: str) -> tuple[str, str]:
    """Split a guest share link (``https://host/?code=X``) into server URL and event code."""
    url = httpx.URL(link.strip())
    if url.scheme not in {"http", "https"} or not url.host:
        raise CLIError(f"not a valid share link: {link}")
    code = url.params.get("code", "").strip()
    if not code:
        raise CLIError("share link has no ?code= parameter")
    server = f"{url.scheme}://{url.netloc.decode('ascii')}"
    return server, code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guest-upload",
        description="Share your photos and videos from the event.",
    )
    parser.add_argument("files", nargs="*", help="Image or video files to upload (max 50)")
    parser.add_argument("--code", help="Event code (default: $EVENT_CODE)")
    parser.add_argument("--link", help="Share link containing ?code=, e.g. https://host/?code=abc")
    parser.add_argument("--server", help=f"Upload server URL (default: $UPLOAD_SERVER_URL or {DEFAULT_SERVER_URL})")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-level", help="Logging level (INFO, WARNING, ...)")
    return parser


def _resolve_target(args: argparse.Namespace) -> tuple[str, str]:
    server = args.server or os.getenv("UPLOAD_SERVER_URL") or DEFAULT_SERVER_URL
    code = args.code or os.getenv("EVENT_CODE") or ""
    if args.link:
        link_server, link_code = parse_share_link(args.link)
        server = args.server or link_server
        code = args.code or link_code
    return server.rstrip("/"), code


def build_client(server: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=server, timeout=REQUEST_TIMEOUT_SECONDS)


async def _run_batch(server: str, state: BatchState, view: BatchStatusView) -> BatchState:
    async with build_client(server) as client:
        orchestrator = UploadOrchestrator(client, on_update=view.update)
        with view:
            return await orchestrator.run(state)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    log_mode = _setup_logging(args.debug, args.log_level)

    view = BatchStatusView()
    try:
        server, code = _resolve_target(args)
        files = select_files(args.files)
    except (CLIError, SelectionError) as exc:
        view.console.print(f"[red]{escape(str(exc))}[/red]")
        return 2

    logger.debug("Uploading %d file(s) to %s (logging: %s)", len(files), server, log_mode)
    state = BatchState(event_code=code, files=files)
    asyncio.run(_run_batch(server, state, view))
    view.print_summary(state)
    return 0 if state.all_complete else 1


if __name__ == "__main__":
    sys.exit(main())
