"""Directory walking utilities for sync passes."""

import logging
import stat
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Optional

from ..exceptions import RelativePathError

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kind of a non-directory entry found during a walk."""

    FILE = "file"
    """Regular file, candidate for copy or delete"""

    SYMLINK = "symlink"
    """Symbolic link, never followed"""

    SPECIAL = "special"
    """Device, socket, FIFO or other non-regular file"""

    ERROR = "error"
    """Entry or directory that could not be inspected"""


@dataclass
class ScanEntry:
    """A single entry produced by a directory walk."""

    path: Path
    """Absolute (or root-joined) path of the entry"""

    kind: EntryKind
    """What the entry is"""

    error: Optional[OSError] = None
    """Underlying error for ERROR entries"""

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE


def relative_entry(path: Path, root: Path) -> PurePath:
    """Express ``path`` relative to ``root``.

    Joining the result with ``root`` gives back ``path``, and joining it with
    the other sync root locates the counterpart.

    Raises:
        RelativePathError: If ``path`` is not located under ``root``

    Examples:
        >>> relative_entry(Path("/src/sub/b.txt"), Path("/src")).as_posix()
        'sub/b.txt'
    """
    try:
        return path.relative_to(root)
    except ValueError as e:
        raise RelativePathError(path, root, e) from e


class DirectoryScanner:
    """Walks a directory tree depth-first.

    Directories themselves are not yielded; every other entry is yielded
    exactly once. Symbolic links are reported as ``SYMLINK`` and never
    followed, so a link to a directory is not descended into. Errors
    (unreadable directories, entries that vanish mid-walk) are yielded as
    ``ERROR`` entries and the walk continues with the next sibling.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> for entry in scanner.walk(Path("/sync/folder")):
        ...     if entry.is_file:
        ...         print(entry.path)
    """

    def __init__(self, sort_entries: bool = True):
        """Initialize directory scanner.

        Args:
            sort_entries: Visit siblings in name order (otherwise directory
                order, which is filesystem dependent)
        """
        self.sort_entries = sort_entries

    def walk(self, directory: Path) -> Iterator[ScanEntry]:
        """Recursively walk a directory.

        Args:
            directory: Directory to walk

        Yields:
            ScanEntry for every non-directory entry and every error
        """
        try:
            children = list(directory.iterdir())
        except OSError as e:
            logger.debug("Cannot list directory %s: %s", directory, e)
            yield ScanEntry(path=directory, kind=EntryKind.ERROR, error=e)
            return

        if self.sort_entries:
            children.sort(key=lambda p: p.name)

        for item in children:
            try:
                mode = item.lstat().st_mode
            except OSError as e:
                yield ScanEntry(path=item, kind=EntryKind.ERROR, error=e)
                continue

            if stat.S_ISDIR(mode):
                yield from self.walk(item)
            elif stat.S_ISREG(mode):
                yield ScanEntry(path=item, kind=EntryKind.FILE)
            elif stat.S_ISLNK(mode):
                yield ScanEntry(path=item, kind=EntryKind.SYMLINK)
            else:
                yield ScanEntry(path=item, kind=EntryKind.SPECIAL)
