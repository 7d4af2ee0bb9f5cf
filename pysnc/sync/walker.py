"""Copy pass: walks the source tree and brings the target up to date."""

import logging
import os
import stat
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Optional

from ..exceptions import FileOperationError, StatError, TargetTypeError
from .comparator import UpdateStrategy
from .models import RunTally
from .operations import FileTransfer
from .progress import SyncProgressEvent, SyncProgressTracker
from .scanner import DirectoryScanner, EntryKind, ScanEntry, relative_entry

logger = logging.getLogger(__name__)

PASS_NAME = "copy"


class SyncAction(str, Enum):
    """Outcome of processing one source entry."""

    NEW = "new"
    """Target file did not exist and was copied"""

    UPDATE = "update"
    """Target file was stale and was overwritten"""

    SKIP = "skip"
    """Target file is up to date, or the entry is not a regular file"""

    ERROR = "error"
    """Processing the entry failed"""


@dataclass
class SyncDecision:
    """Represents what happened to a single source entry."""

    action: SyncAction
    """Action taken"""

    reason: str
    """Human-readable reason for this decision"""

    source_path: Path
    """Path of the entry in the source tree"""

    relative_path: str = ""
    """Relative path (forward slashes), empty if it could not be computed"""

    destination_path: Optional[Path] = None
    """Counterpart path in the target tree"""

    operation: str = ""
    """Failed operation for ERROR decisions"""

    bytes_copied: int = 0
    """Bytes written to the target (0 for dry runs and skips)"""


class TreeDiffWalker:
    """Walks a source tree and copies new or changed regular files.

    Every entry is processed in isolation: a failure is turned into an
    ``ERROR`` decision and counted, and the walk moves on to the next entry.

    Examples:
        >>> walker = TreeDiffWalker(create_update_strategy("modtime"))
        >>> tally = walker.diff(Path("/data/src"), Path("/data/backup"))
        >>> print(f"{tally.copied} copied, {tally.errors} errors")
    """

    def __init__(
        self,
        strategy: UpdateStrategy,
        transfer: Optional[FileTransfer] = None,
        tracker: Optional[SyncProgressTracker] = None,
        scanner: Optional[DirectoryScanner] = None,
        dry_run: bool = False,
        max_workers: int = 1,
    ):
        """Initialize the walker.

        Args:
            strategy: Change detection strategy for existing target files
            transfer: File copier (defaults to an in-place FileTransfer)
            tracker: Receives progress events
            scanner: Directory walker
            dry_run: Decide what to do without copying anything
            max_workers: Number of parallel workers for per-file work
        """
        self.strategy = strategy
        self.transfer = transfer or FileTransfer()
        self.tracker = tracker or SyncProgressTracker()
        self.scanner = scanner or DirectoryScanner()
        self.dry_run = dry_run
        self.max_workers = max_workers

    def diff(self, source_root: Path, dest_root: Path) -> RunTally:
        """Run the copy pass.

        Args:
            source_root: Root of the tree to copy from
            dest_root: Root of the tree to bring up to date

        Returns:
            Tally of the pass; ``has_errors`` tells whether any entry failed
        """
        source_root = Path(source_root)
        dest_root = Path(dest_root)
        tally = RunTally(name=PASS_NAME)
        start = time.time()

        logger.debug(
            "Copy pass %s -> %s using %s (workers=%d, dry_run=%s)",
            source_root,
            dest_root,
            self.strategy.name,
            self.max_workers,
            self.dry_run,
        )
        self.tracker.event(
            SyncProgressEvent.PASS_START,
            PASS_NAME,
            path=source_root,
            dry_run=self.dry_run,
        )

        entries = self.scanner.walk(source_root)
        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self.process_entry, entry, source_root, dest_root)
                    for entry in entries
                ]
                # Tally is only touched from this thread
                for future in as_completed(futures):
                    self._record(future.result(), tally)
        else:
            for entry in entries:
                self._record(self.process_entry(entry, source_root, dest_root), tally)

        elapsed = time.time() - start
        logger.debug(
            "Copy pass finished in %.2fs: %d seen, %d copied, %d skipped, %d errors",
            elapsed,
            tally.files_seen,
            tally.copied,
            tally.skipped,
            tally.errors,
        )
        self.tracker.event(
            SyncProgressEvent.PASS_COMPLETE,
            PASS_NAME,
            path=source_root,
            dry_run=self.dry_run,
        )
        return tally

    def process_entry(
        self, entry: ScanEntry, source_root: Path, dest_root: Path
    ) -> SyncDecision:
        """Decide on and carry out the action for one source entry.

        Never raises for file-level problems; they come back as ``ERROR``
        decisions.
        """
        if entry.kind == EntryKind.ERROR:
            return SyncDecision(
                action=SyncAction.ERROR,
                reason=f"Error accessing {entry.path}: {entry.error}",
                source_path=entry.path,
                operation="walk",
            )

        try:
            rel = relative_entry(entry.path, source_root)
        except FileOperationError as e:
            return _error_decision(entry.path, "", None, e)

        relative_path = rel.as_posix()
        if entry.kind != EntryKind.FILE:
            logger.warning(
                "Skipping non-regular file (%s): %s", entry.kind.value, entry.path
            )
            return SyncDecision(
                action=SyncAction.SKIP,
                reason=f"Not a regular file ({entry.kind.value})",
                source_path=entry.path,
                relative_path=relative_path,
            )

        destination = dest_root / rel
        try:
            _check_target_parents(dest_root, rel)
            decision = self._decide(entry.path, destination, relative_path)
            copy_needed = decision.action in (SyncAction.NEW, SyncAction.UPDATE)
            if copy_needed and not self.dry_run:
                decision.bytes_copied = self.transfer.copy(entry.path, destination)
        except FileOperationError as e:
            return _error_decision(entry.path, relative_path, destination, e)
        return decision

    def _decide(
        self, source: Path, destination: Path, relative_path: str
    ) -> SyncDecision:
        try:
            mode = os.lstat(destination).st_mode
        except FileNotFoundError:
            return SyncDecision(
                action=SyncAction.NEW,
                reason="New file",
                source_path=source,
                relative_path=relative_path,
                destination_path=destination,
            )
        except OSError as e:
            raise StatError(destination, e) from e

        if not stat.S_ISREG(mode):
            raise TargetTypeError(destination, _describe_mode(mode))

        if self.strategy.needs_update(source, destination):
            return SyncDecision(
                action=SyncAction.UPDATE,
                reason=f"Modified file ({self.strategy.name})",
                source_path=source,
                relative_path=relative_path,
                destination_path=destination,
            )
        return SyncDecision(
            action=SyncAction.SKIP,
            reason="Unchanged file",
            source_path=source,
            relative_path=relative_path,
            destination_path=destination,
        )

    def _record(self, decision: SyncDecision, tally: RunTally) -> None:
        tally.files_seen += 1
        display = decision.relative_path or str(decision.source_path)

        if decision.action == SyncAction.NEW:
            tally.new_files += 1
            tally.bytes_copied += decision.bytes_copied
            event = SyncProgressEvent.NEW_FILE
        elif decision.action == SyncAction.UPDATE:
            tally.updated_files += 1
            tally.bytes_copied += decision.bytes_copied
            event = SyncProgressEvent.UPDATED_FILE
        elif decision.action == SyncAction.SKIP:
            tally.skipped += 1
            event = SyncProgressEvent.SKIPPED_FILE
            logger.debug("Skipping %s: %s", display, decision.reason)
        else:
            tally.record_failure(display, decision.operation, decision.reason)
            event = SyncProgressEvent.FILE_ERROR
            logger.debug("Failed to process %s: %s", display, decision.reason)

        self.tracker.event(
            event,
            PASS_NAME,
            relative_path=decision.relative_path,
            path=decision.destination_path or decision.source_path,
            message=decision.reason,
            dry_run=self.dry_run,
        )


def _error_decision(
    source: Path,
    relative_path: str,
    destination: Optional[Path],
    error: FileOperationError,
) -> SyncDecision:
    return SyncDecision(
        action=SyncAction.ERROR,
        reason=str(error),
        source_path=source,
        relative_path=relative_path,
        destination_path=destination,
        operation=error.operation,
    )


def _describe_mode(mode: int) -> str:
    if stat.S_ISLNK(mode):
        return "symlink"
    if stat.S_ISDIR(mode):
        return "directory"
    return "special"


def _check_target_parents(dest_root: Path, rel: PurePath) -> None:
    """Reject a counterpart path that would be reached through a symlink.

    Parent directories below ``dest_root`` that do not exist yet are fine;
    the copy creates them.

    Raises:
        TargetTypeError: If a parent directory is a symbolic link
        StatError: If a parent cannot be inspected
    """
    parent = dest_root
    for part in rel.parts[:-1]:
        parent = parent / part
        try:
            mode = os.lstat(parent).st_mode
        except FileNotFoundError:
            return
        except OSError as e:
            raise StatError(parent, e) from e
        if stat.S_ISLNK(mode):
            raise TargetTypeError(parent, "symlink")
