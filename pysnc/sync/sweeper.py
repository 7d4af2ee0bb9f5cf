"""Delete pass: removes target files that no longer exist in the source."""

import logging
import os
import time
from pathlib import Path
from typing import Optional

from ..exceptions import FileOperationError, StatError
from .models import RunTally
from .operations import delete_file
from .progress import SyncProgressEvent, SyncProgressTracker
from .scanner import DirectoryScanner, EntryKind, relative_entry

logger = logging.getLogger(__name__)

PASS_NAME = "sweep"


class MissingSweeper:
    """Deletes regular files under the target root with no source counterpart.

    Deletion is conservative: a file is only removed once its absence from
    the source is positively confirmed. If the source counterpart cannot be
    inspected the file is kept and an error is recorded. Only regular files
    are candidates; directories left empty are not pruned.

    The source tree is checked on disk for every file, never from a listing
    cached before the pass started.
    """

    def __init__(
        self,
        tracker: Optional[SyncProgressTracker] = None,
        scanner: Optional[DirectoryScanner] = None,
        dry_run: bool = False,
    ):
        self.tracker = tracker or SyncProgressTracker()
        self.scanner = scanner or DirectoryScanner()
        self.dry_run = dry_run

    def sweep(self, source_root: Path, dest_root: Path) -> RunTally:
        """Run the delete pass.

        Args:
            source_root: Reference tree
            dest_root: Tree to remove extra files from

        Returns:
            Tally of the pass
        """
        source_root = Path(source_root)
        dest_root = Path(dest_root)
        tally = RunTally(name=PASS_NAME)
        start = time.time()

        logger.debug("Sweep pass over %s (reference %s)", dest_root, source_root)
        self.tracker.event(
            SyncProgressEvent.PASS_START,
            PASS_NAME,
            path=dest_root,
            dry_run=self.dry_run,
        )

        for entry in self.scanner.walk(dest_root):
            tally.files_seen += 1

            if entry.kind == EntryKind.ERROR:
                self._fail(
                    tally,
                    str(entry.path),
                    entry.path,
                    "walk",
                    f"Error accessing {entry.path}: {entry.error}",
                )
                continue

            try:
                rel = relative_entry(entry.path, dest_root)
            except FileOperationError as e:
                self._fail(tally, str(entry.path), entry.path, e.operation, str(e))
                continue

            relative_path = rel.as_posix()
            if entry.kind != EntryKind.FILE:
                logger.debug("Keeping non-regular file: %s", entry.path)
                tally.skipped += 1
                continue

            try:
                if self._exists_in_source(source_root / rel):
                    logger.debug("File exists in source, keeping: %s", relative_path)
                    tally.skipped += 1
                    continue
                if not self.dry_run:
                    delete_file(entry.path)
            except FileOperationError as e:
                self._fail(tally, relative_path, entry.path, e.operation, str(e))
                continue

            tally.deleted += 1
            self.tracker.event(
                SyncProgressEvent.DELETED_FILE,
                PASS_NAME,
                relative_path=relative_path,
                path=entry.path,
                message="Missing from source",
                dry_run=self.dry_run,
            )

        elapsed = time.time() - start
        logger.debug(
            "Sweep finished in %.2fs: %d checked, %d deleted, %d errors",
            elapsed,
            tally.files_seen,
            tally.deleted,
            tally.errors,
        )
        self.tracker.event(
            SyncProgressEvent.PASS_COMPLETE,
            PASS_NAME,
            path=dest_root,
            dry_run=self.dry_run,
        )
        return tally

    def _exists_in_source(self, source_path: Path) -> bool:
        """Return False only if the source counterpart is confirmed absent.

        Raises:
            StatError: If the counterpart cannot be inspected
        """
        try:
            os.lstat(source_path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise StatError(source_path, e) from e
        return True

    def _fail(
        self,
        tally: RunTally,
        display: str,
        path: Path,
        operation: str,
        message: str,
    ) -> None:
        tally.record_failure(display, operation, message)
        logger.debug("Sweep failed for %s: %s", display, message)
        self.tracker.event(
            SyncProgressEvent.FILE_ERROR,
            PASS_NAME,
            relative_path=display,
            path=path,
            message=message,
            dry_run=self.dry_run,
        )
