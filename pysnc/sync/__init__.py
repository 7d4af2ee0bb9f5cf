"""Sync engine for pysnc - one-way copy and delete-missing passes."""

from .comparator import (
    ModTimeStrategy,
    SHA256Strategy,
    UpdateMethod,
    UpdateStrategy,
    create_update_strategy,
)
from .engine import SyncEngine
from .models import FileFailure, RunPhase, RunStatus, RunTally, SyncReport
from .operations import FileTransfer, delete_file
from .progress import SyncProgressEvent, SyncProgressInfo, SyncProgressTracker
from .scanner import DirectoryScanner, EntryKind, ScanEntry, relative_entry
from .sweeper import MissingSweeper
from .walker import SyncAction, SyncDecision, TreeDiffWalker

__all__ = [
    "SyncEngine",
    "TreeDiffWalker",
    "MissingSweeper",
    "FileTransfer",
    "delete_file",
    "SyncAction",
    "SyncDecision",
    "UpdateMethod",
    "UpdateStrategy",
    "ModTimeStrategy",
    "SHA256Strategy",
    "create_update_strategy",
    "DirectoryScanner",
    "EntryKind",
    "ScanEntry",
    "relative_entry",
    "RunTally",
    "FileFailure",
    "RunPhase",
    "RunStatus",
    "SyncReport",
    "SyncProgressEvent",
    "SyncProgressInfo",
    "SyncProgressTracker",
]
