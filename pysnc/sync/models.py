"""Result types for sync passes and runs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


@dataclass
class FileFailure:
    """A per-file error recorded during a pass."""

    path: str
    """Path the error refers to"""

    operation: str
    """Operation that failed (stat, copy, delete, ...)"""

    message: str
    """Human-readable error including the underlying cause"""

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "operation": self.operation, "message": self.message}


@dataclass
class RunTally:
    """Counters produced by one pass over a tree.

    For the copy pass ``copied`` counts new and updated files; for the sweep
    ``deleted`` counts removed files. Each visited entry ends up in exactly
    one of copied, deleted, skipped or errors.
    """

    name: str
    """Pass name (``copy`` or ``sweep``)"""

    files_seen: int = 0
    new_files: int = 0
    updated_files: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0
    bytes_copied: int = 0
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def copied(self) -> int:
        """Number of files copied (new plus updated)."""
        return self.new_files + self.updated_files

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def record_failure(self, path: str, operation: str, message: str) -> None:
        """Count one per-file error and keep its details."""
        self.errors += 1
        self.failures.append(
            FileFailure(path=path, operation=operation, message=message)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "files_seen": self.files_seen,
            "copied": self.copied,
            "new_files": self.new_files,
            "updated_files": self.updated_files,
            "deleted": self.deleted,
            "skipped": self.skipped,
            "errors": self.errors,
            "bytes_copied": self.bytes_copied,
            "failures": [f.to_dict() for f in self.failures],
        }


class RunPhase(str, Enum):
    """States of a synchronization run."""

    IDLE = "idle"
    VALIDATING_ROOTS = "validating_roots"
    COPYING = "copying"
    SWEEPING = "sweeping"
    DONE = "done"


class RunStatus(str, Enum):
    """Caller-visible outcome of a run."""

    SUCCESS = "success"
    """Both passes finished without any error"""

    COMPLETED_WITH_ERRORS = "completed_with_errors"
    """Passes ran to completion but some files failed"""

    ABORTED = "aborted"
    """A fatal error stopped the run before traversal"""


@dataclass
class SyncReport:
    """Outcome of a synchronization run."""

    status: RunStatus
    copy: Optional[RunTally] = None
    sweep: Optional[RunTally] = None
    error: Optional[str] = None
    """Message of the fatal error for aborted runs"""

    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.status == RunStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 on full success, 1 otherwise."""
        return 0 if self.success else 1

    @property
    def tallies(self) -> list[RunTally]:
        return [t for t in (self.copy, self.sweep) if t is not None]

    @property
    def total_errors(self) -> int:
        return sum(t.errors for t in self.tallies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "success": self.success,
            "dry_run": self.dry_run,
            "error": self.error,
            "copy": self.copy.to_dict() if self.copy else None,
            "sweep": self.sweep.to_dict() if self.sweep else None,
        }
