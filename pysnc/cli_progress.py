"""CLI progress display for sync runs.

This module provides a Rich-based display that consumes the
SyncProgressTracker events emitted by the copy and sweep passes.
"""

from typing import Optional

from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

from .config import SyncConfig
from .output import OutputFormatter
from .sync import SyncEngine, SyncReport
from .sync.progress import SyncProgressEvent, SyncProgressInfo, SyncProgressTracker

_PASS_DESCRIPTIONS = {
    "copy": "Copying files...",
    "sweep": "Removing missing files...",
}


class SyncProgressDisplay:
    """Renders sync progress events.

    Each new, updated or deleted file is printed as one line. With ``live``
    enabled a spinner with running counters is shown below those lines
    while a pass is in progress. Errors are only counted here; the engine
    lists them in its summary.
    """

    def __init__(self, output: OutputFormatter, live: bool = True) -> None:
        """Initialize the progress display.

        Args:
            output: Output formatter used for the per-file lines
            live: Show a live spinner with counters
        """
        self.output = output
        self.live = live and not (output.quiet or output.json_output)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self.counts = {"new": 0, "updated": 0, "deleted": 0, "skipped": 0, "errors": 0}

    def create_tracker(self) -> SyncProgressTracker:
        """Create a SyncProgressTracker that updates this display.

        Returns:
            A configured SyncProgressTracker
        """
        return SyncProgressTracker(callback=self._handle_event)

    def _format_counts(self) -> str:
        c = self.counts
        return (
            f"{c['new']} new, {c['updated']} updated, {c['deleted']} deleted, "
            f"{c['skipped']} unchanged, {c['errors']} errors"
        )

    def _handle_event(self, info: SyncProgressInfo) -> None:
        """Handle a progress event from the tracker.

        Args:
            info: Progress information
        """
        prefix = "(dry run) " if info.dry_run else ""

        if info.event == SyncProgressEvent.PASS_START:
            if self._progress is not None and self._task is not None:
                description = _PASS_DESCRIPTIONS.get(info.pass_name, "Syncing...")
                self._progress.update(self._task, description=prefix + description)
            return

        path = escape(info.relative_path)
        if info.event == SyncProgressEvent.NEW_FILE:
            self.counts["new"] += 1
            self.output.info(f"{prefix}[green]+[/green] New file: {path}")
        elif info.event == SyncProgressEvent.UPDATED_FILE:
            self.counts["updated"] += 1
            self.output.info(f"{prefix}[yellow]~[/yellow] Modified file: {path}")
        elif info.event == SyncProgressEvent.DELETED_FILE:
            self.counts["deleted"] += 1
            self.output.info(f"{prefix}[red]-[/red] Deleted missing file: {path}")
        elif info.event == SyncProgressEvent.SKIPPED_FILE:
            self.counts["skipped"] += 1
            self.output.debug(f"= Unchanged: {path} ({escape(info.message)})")
        elif info.event == SyncProgressEvent.FILE_ERROR:
            self.counts["errors"] += 1

        if self._progress is not None and self._task is not None:
            self._progress.update(self._task, counts=self._format_counts())

    def __enter__(self) -> "SyncProgressDisplay":
        """Enter context manager - start progress display."""
        if not self.live:
            return self

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            TextColumn("[cyan]{task.fields[counts]}"),
            TimeElapsedColumn(),
            console=self.output.console,
            transient=True,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task(
            "Preparing sync...", total=None, counts=self._format_counts()
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None


def run_sync_with_progress(
    config: SyncConfig,
    output: OutputFormatter,
    show_progress: bool = True,
) -> SyncReport:
    """Run a sync with per-file output and an optional live display.

    Args:
        config: Run configuration
        output: Output formatter for messages and the summary
        show_progress: Show the live spinner (per-file lines are printed
            either way, subject to the output level)

    Returns:
        The run report
    """
    display = SyncProgressDisplay(output, live=show_progress)
    engine = SyncEngine(config, output=output, tracker=display.create_tracker())
    with display:
        report = engine.run()
    return report
