"""File copy and delete operations used by the sync passes."""

import logging
import os
import stat
import tempfile
import time
from pathlib import Path
from typing import BinaryIO, Optional, Union

from ..exceptions import DeleteError, TransferError
from ..utils import DEFAULT_COPY_CHUNK_SIZE, DEFAULT_DIR_MODE, TEMP_FILE_PREFIX

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FileTransfer:
    """Copies one file's bytes and modification time to a destination.

    By default the destination is truncated and written in place, so an I/O
    error in the middle of a copy leaves a partial file behind. With
    ``atomic=True`` the bytes go to a temporary sibling that replaces the
    destination only after the copy succeeded.
    """

    def __init__(
        self,
        atomic: bool = False,
        chunk_size: int = DEFAULT_COPY_CHUNK_SIZE,
        dir_mode: int = DEFAULT_DIR_MODE,
    ):
        """Initialize file transfer.

        Args:
            atomic: Write to a temporary file and rename on success
            chunk_size: Number of bytes copied per read
            dir_mode: Permission bits for created parent directories
        """
        self.atomic = atomic
        self.chunk_size = chunk_size
        self.dir_mode = dir_mode

    def copy(self, source: PathLike, destination: PathLike) -> int:
        """Copy ``source`` to ``destination``.

        Missing parent directories of the destination are created. Every
        byte is flushed to the destination before it is closed, so write
        errors (a full disk included) fail the copy. Failing to preserve the
        modification time, or a close error after the flush, is logged as a
        warning and does not fail the copy.

        Args:
            source: File to read
            destination: File to create or overwrite

        Returns:
            Number of bytes copied

        Raises:
            TransferError: If the copy failed; ``stage`` tells where
        """
        source = Path(source)
        destination = Path(destination)
        logger.debug("Starting copy: %s -> %s", source, destination)
        start = time.time()

        try:
            destination.parent.mkdir(mode=self.dir_mode, parents=True, exist_ok=True)
        except OSError as e:
            raise TransferError(source, destination, "mkdir", e) from e

        try:
            src_file = open(source, "rb")
        except OSError as e:
            raise TransferError(source, destination, "open_source", e) from e

        try:
            if self.atomic:
                copied = self._copy_atomic(src_file, source, destination)
            else:
                copied = self._copy_in_place(src_file, source, destination)
            src_stat = self._stat_source(src_file, source)
        finally:
            _close(src_file, source)

        if src_stat is not None:
            self._preserve_mtime(destination, src_stat.st_mtime_ns)

        elapsed = time.time() - start
        logger.debug(
            "Copied %s -> %s (%d bytes) in %.2fs", source, destination, copied, elapsed
        )
        return copied

    def _copy_in_place(
        self, src_file: BinaryIO, source: Path, destination: Path
    ) -> int:
        try:
            dst_file = open(destination, "wb")
        except OSError as e:
            raise TransferError(source, destination, "create_destination", e) from e

        try:
            return self._stream(src_file, dst_file, source, destination)
        finally:
            _close(dst_file, destination)

    def _copy_atomic(self, src_file: BinaryIO, source: Path, destination: Path) -> int:
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=TEMP_FILE_PREFIX, suffix=".tmp", dir=destination.parent
            )
        except OSError as e:
            raise TransferError(source, destination, "create_destination", e) from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as dst_file:
                copied = self._stream(src_file, dst_file, source, destination)
            # mkstemp creates 0600 files; give the copy the source permissions
            os.chmod(tmp_path, stat.S_IMODE(os.fstat(src_file.fileno()).st_mode))
            os.replace(tmp_path, destination)
        except TransferError:
            _remove_quietly(tmp_path)
            raise
        except OSError as e:
            _remove_quietly(tmp_path)
            raise TransferError(source, destination, "copy", e) from e
        return copied

    def _stream(
        self, src_file: BinaryIO, dst_file: BinaryIO, source: Path, destination: Path
    ) -> int:
        copied = 0
        try:
            while True:
                chunk = src_file.read(self.chunk_size)
                if not chunk:
                    break
                dst_file.write(chunk)
                copied += len(chunk)
            # Buffered bytes must reach the file here, not in close()
            dst_file.flush()
        except OSError as e:
            raise TransferError(source, destination, "copy", e) from e
        return copied

    def _stat_source(
        self, src_file: BinaryIO, source: Path
    ) -> Optional[os.stat_result]:
        try:
            return os.fstat(src_file.fileno())
        except OSError as e:
            logger.warning("Failed to stat source file %s for modtime: %s", source, e)
            return None

    def _preserve_mtime(self, destination: Path, mtime_ns: int) -> None:
        try:
            os.utime(destination, ns=(time.time_ns(), mtime_ns))
        except OSError as e:
            logger.warning("Failed to preserve modtime for %s: %s", destination, e)


def delete_file(path: PathLike) -> None:
    """Delete a single file.

    Args:
        path: File to remove

    Raises:
        DeleteError: If the file cannot be removed
    """
    try:
        Path(path).unlink()
    except OSError as e:
        raise DeleteError(path, e) from e


def _close(handle: BinaryIO, path: Path) -> None:
    try:
        handle.close()
    except OSError as e:
        logger.warning("Failed to close %s: %s", path, e)


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temporary file %s: %s", path, e)
