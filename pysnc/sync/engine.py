"""Core sync engine that runs the validation, copy and sweep phases."""

import logging
import time
from typing import Optional

from rich.markup import escape

from ..config import SyncConfig
from ..exceptions import UnsupportedMethodError, ValidationError
from ..output import OutputFormatter
from ..utils import format_size
from ..validation import validate_sync_roots
from .comparator import create_update_strategy
from .models import RunPhase, RunStatus, RunTally, SyncReport
from .operations import FileTransfer
from .progress import SyncProgressTracker
from .sweeper import MissingSweeper
from .walker import TreeDiffWalker

logger = logging.getLogger(__name__)


class SyncEngine:
    """Runs one synchronization of a source tree into a target tree.

    A run moves through ``IDLE -> VALIDATING_ROOTS -> COPYING ->
    (SWEEPING) -> DONE``. Selecting the update strategy and validating the
    roots are fatal steps: a failure ends the run as ``ABORTED`` before any
    file is touched. Once started, the copy and sweep passes always run to
    completion; per-file errors only turn the outcome into
    ``COMPLETED_WITH_ERRORS``.
    """

    def __init__(
        self,
        config: SyncConfig,
        output: Optional[OutputFormatter] = None,
        tracker: Optional[SyncProgressTracker] = None,
    ):
        """Initialize sync engine.

        Args:
            config: Run configuration
            output: Output formatter for status messages and the summary
            tracker: Receives per-file progress events
        """
        self.config = config
        self.output = output or OutputFormatter(level=config.log_level)
        self.tracker = tracker or SyncProgressTracker()
        self.phase = RunPhase.IDLE

    def run(self) -> SyncReport:
        """Execute the run.

        Returns:
            SyncReport with the tallies of both passes and the outcome

        Examples:
            >>> engine = SyncEngine(SyncConfig(source="src", target="dst"))
            >>> report = engine.run()
            >>> report.exit_code
            0
        """
        cfg = self.config
        start = time.time()
        logger.debug("Starting sync with configuration %s", cfg.to_dict())

        if not self.output.quiet:
            source, target = escape(str(cfg.source)), escape(str(cfg.target))
            self.output.info(f"Syncing: {source} -> {target}")
            self.output.info(f"Update method: {escape(str(cfg.update_method))}")
            if cfg.dry_run:
                self.output.info("Dry run: No changes will be made")

        try:
            strategy = create_update_strategy(cfg.update_method)
        except UnsupportedMethodError as e:
            return self._abort(str(e))

        self.phase = RunPhase.VALIDATING_ROOTS
        try:
            validate_sync_roots(cfg.source, cfg.target, create_target=not cfg.dry_run)
        except ValidationError as e:
            return self._abort(str(e))

        self.phase = RunPhase.COPYING
        walker = TreeDiffWalker(
            strategy,
            transfer=FileTransfer(atomic=cfg.atomic),
            tracker=self.tracker,
            dry_run=cfg.dry_run,
            max_workers=cfg.workers,
        )
        copy_tally = walker.diff(cfg.source, cfg.target)

        sweep_tally: Optional[RunTally] = None
        if cfg.delete_missing:
            self.phase = RunPhase.SWEEPING
            if cfg.target.is_dir():
                sweeper = MissingSweeper(tracker=self.tracker, dry_run=cfg.dry_run)
                sweep_tally = sweeper.sweep(cfg.source, cfg.target)
            else:
                # Only reachable in dry-run mode, where the target is not created
                sweep_tally = RunTally(name="sweep")
        else:
            logger.debug("Sweep skipped (delete missing disabled)")

        self.phase = RunPhase.DONE
        has_errors = copy_tally.has_errors or (
            sweep_tally is not None and sweep_tally.has_errors
        )
        report = SyncReport(
            status=RunStatus.COMPLETED_WITH_ERRORS if has_errors else RunStatus.SUCCESS,
            copy=copy_tally,
            sweep=sweep_tally,
            dry_run=cfg.dry_run,
        )

        elapsed = time.time() - start
        logger.debug("Sync finished in %.2fs (%s)", elapsed, report.status.value)
        self._display_summary(report)
        return report

    def _abort(self, message: str) -> SyncReport:
        self.phase = RunPhase.DONE
        logger.debug("Sync aborted: %s", message)
        self.output.error(escape(message))
        return SyncReport(
            status=RunStatus.ABORTED, error=message, dry_run=self.config.dry_run
        )

    def _display_summary(self, report: SyncReport) -> None:
        """Display the run summary.

        Args:
            report: Finished run report
        """
        if self.output.quiet:
            return

        self.output.print("")
        copy = report.copy
        items = []
        if copy is not None:
            items.extend(
                [
                    ("Files checked", str(copy.files_seen)),
                    ("New", str(copy.new_files)),
                    ("Updated", str(copy.updated_files)),
                    ("Unchanged", str(copy.skipped)),
                    ("Transferred", format_size(copy.bytes_copied)),
                ]
            )
        if report.sweep is not None:
            items.append(("Deleted", str(report.sweep.deleted)))
        items.append(("Errors", str(report.total_errors)))
        title = "Dry run summary" if report.dry_run else "Sync summary"
        self.output.print_summary(title, items)

        for tally in report.tallies:
            for failure in tally.failures:
                self.output.error(f"{escape(failure.path)}: {escape(failure.message)}")

        if report.status == RunStatus.SUCCESS:
            if report.dry_run:
                self.output.success("Dry run complete!")
            else:
                self.output.success("Sync complete!")
        else:
            self.output.warning(
                f"Sync completed with {report.total_errors} error(s) - "
                "see messages above for details"
            )
