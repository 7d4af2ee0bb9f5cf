"""Change detection strategies for the copy pass.

A strategy decides whether an existing target file is stale compared to its
source counterpart. Two strategies are available:

- ``modtime``: compares size and modification time. Fast (two ``stat``
  calls) but trusts metadata: a file rewritten with the same size and
  timestamp is reported up to date, and a touched but identical file is
  reported stale.
- ``sha256``: compares SHA-256 digests of both files. Reads every byte of
  both files, ignores timestamps entirely.
"""

import logging
import os
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..exceptions import StatError, UnsupportedMethodError
from ..utils import calculate_sha256

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class UpdateMethod(str, Enum):
    """Supported change detection methods."""

    MODTIME = "modtime"
    """Compare size and modification time"""

    SHA256 = "sha256"
    """Compare SHA-256 content digests"""

    @classmethod
    def names(cls) -> tuple[str, ...]:
        """Return the supported method names."""
        return tuple(method.value for method in cls)


class UpdateStrategy(ABC):
    """Decides whether a target file needs to be overwritten."""

    method: UpdateMethod

    @property
    def name(self) -> str:
        """Method name of this strategy."""
        return self.method.value

    @abstractmethod
    def needs_update(self, source: PathLike, destination: PathLike) -> bool:
        """Return True if ``destination`` is stale compared to ``source``.

        Raises:
            StatError: If either file cannot be inspected or read
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ModTimeStrategy(UpdateStrategy):
    """Size and modification time comparison.

    Timestamps are compared at full ``st_mtime_ns`` precision, not truncated
    to seconds.
    """

    method = UpdateMethod.MODTIME

    def needs_update(self, source: PathLike, destination: PathLike) -> bool:
        src_stat = _stat(source)
        dst_stat = _stat(destination)

        if src_stat.st_size != dst_stat.st_size:
            logger.debug(
                "Size differs for %s (%d vs %d)",
                destination,
                src_stat.st_size,
                dst_stat.st_size,
            )
            return True
        if src_stat.st_mtime_ns != dst_stat.st_mtime_ns:
            logger.debug("Modification time differs for %s", destination)
            return True
        return False


class SHA256Strategy(UpdateStrategy):
    """Content digest comparison."""

    method = UpdateMethod.SHA256

    def needs_update(self, source: PathLike, destination: PathLike) -> bool:
        src_hash = _digest(source)
        dst_hash = _digest(destination)
        return src_hash != dst_hash


def _stat(path: PathLike) -> os.stat_result:
    try:
        return os.stat(path)
    except OSError as e:
        raise StatError(path, e) from e


def _digest(path: PathLike) -> str:
    try:
        return calculate_sha256(path)
    except OSError as e:
        raise StatError(path, e) from e


_STRATEGIES: dict[UpdateMethod, type[UpdateStrategy]] = {
    UpdateMethod.MODTIME: ModTimeStrategy,
    UpdateMethod.SHA256: SHA256Strategy,
}


def create_update_strategy(method: Optional[str]) -> UpdateStrategy:
    """Create the strategy for a method name.

    There is no fallback: an unknown name must stop the run before any file
    is touched.

    Args:
        method: ``"modtime"`` or ``"sha256"``

    Returns:
        A new strategy instance

    Raises:
        UnsupportedMethodError: For any other value, including ``""``

    Examples:
        >>> create_update_strategy("sha256").name
        'sha256'
    """
    try:
        update_method = UpdateMethod(method)
    except ValueError:
        raise UnsupportedMethodError(method, UpdateMethod.names()) from None
    return _STRATEGIES[update_method]()
