"""Console rendering for the guest upload CLI."""
from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.table import Table

from .models import BatchState, UploadStatus

_STATUS_STYLES = {
    UploadStatus.PENDING: ("dim", "pending"),
    UploadStatus.UPLOADING: ("yellow", "uploading"),
    UploadStatus.SUCCESS: ("green", "done"),
    UploadStatus.ERROR: ("red", "failed"),
}


def build_status_table(state: BatchState) -> Table:
    table = Table(title="Uploads", expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("File")
    table.add_column("Status")
    table.add_column("Details", overflow="fold")

    for index, status in enumerate(state.statuses, start=1):
        style, label = _STATUS_STYLES[status.status]
        table.add_row(str(index), escape(status.name), f"[{style}]{label}[/{style}]", escape(status.error or ""))
    return table


class BatchStatusView:
    """Live table redrawn on every orchestrator update."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._live: Optional[Live] = None

    def __enter__(self) -> "BatchStatusView":
        self._live = Live(console=self.console, auto_refresh=False, transient=False)
        self._live.__enter__()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._live:
            self._live.__exit__(*exc_info)
            self._live = None

    def update(self, state: BatchState) -> None:
        if self._live and state.statuses:
            self._live.update(build_status_table(state), refresh=True)

    def print_summary(self, state: BatchState) -> None:
        if state.file_error:
            self.console.print(f"[red]{escape(state.file_error)}[/red]")
        if state.event_code_error:
            self.console.print(f"[red]{escape(state.event_code_error)}[/red]")
        if state.global_error:
            self.console.print(f"[yellow]{escape(state.global_error)}[/yellow]")
        if state.all_complete:
            self.console.print(
                f"[green]All {state.success_count} file(s) uploaded. Thank you for sharing![/green]"
            )
