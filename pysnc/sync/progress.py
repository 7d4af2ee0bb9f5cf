"""Progress events emitted by the sync passes.

The passes report what they do through a :class:`SyncProgressTracker`.
Observers (the CLI progress display, tests) receive
:class:`SyncProgressInfo` objects; the passes never depend on the events
being consumed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SyncProgressEvent(str, Enum):
    """Kinds of progress events."""

    PASS_START = "pass_start"
    NEW_FILE = "new_file"
    UPDATED_FILE = "updated_file"
    SKIPPED_FILE = "skipped_file"
    DELETED_FILE = "deleted_file"
    FILE_ERROR = "file_error"
    PASS_COMPLETE = "pass_complete"


@dataclass
class SyncProgressInfo:
    """Payload of a progress event."""

    event: SyncProgressEvent
    pass_name: str
    """``copy`` or ``sweep``"""

    relative_path: str = ""
    """Relative path (POSIX separators) of the file concerned"""

    path: Optional[Path] = None
    """Full path of the file concerned"""

    message: str = ""
    """Reason or error message"""

    dry_run: bool = False


class SyncProgressTracker:
    """Forwards progress events to a callback.

    Exceptions raised by the callback are logged and swallowed so that a
    broken observer cannot interrupt a pass.
    """

    def __init__(self, callback: Optional[Callable[[SyncProgressInfo], None]] = None):
        self.callback = callback

    def emit(self, info: SyncProgressInfo) -> None:
        if self.callback is None:
            return
        try:
            self.callback(info)
        except Exception as e:
            logger.warning("Progress callback failed for %s: %s", info.event.value, e)

    def event(
        self,
        event: SyncProgressEvent,
        pass_name: str,
        relative_path: str = "",
        path: Optional[Path] = None,
        message: str = "",
        dry_run: bool = False,
    ) -> None:
        """Build and emit a progress event."""
        self.emit(
            SyncProgressInfo(
                event=event,
                pass_name=pass_name,
                relative_path=relative_path,
                path=path,
                message=message,
                dry_run=dry_run,
            )
        )
