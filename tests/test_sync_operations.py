"""Tests for file copy and delete operations."""

import builtins
import errno
import logging
import os
import stat
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from pysnc.exceptions import DeleteError, TransferError
from pysnc.sync.operations import FileTransfer, delete_file
from pysnc.utils import TEMP_FILE_PREFIX

_real_open = builtins.open

OPEN_TARGET = "pysnc.sync.operations.open"

SOURCE_MTIME_NS = 1_600_000_000_123_456_789


class FailingReader:
    """File wrapper whose second read raises an I/O error."""

    def __init__(self, handle):
        self._handle = handle
        self._reads = 0

    def read(self, size=-1):
        self._reads += 1
        if self._reads > 1:
            raise OSError(5, "Input/output error")
        return self._handle.read(size)

    def fileno(self):
        return self._handle.fileno()

    def close(self):
        self._handle.close()


class FullDiskWriter:
    """File wrapper that accepts writes but cannot flush them to disk."""

    def __init__(self, handle):
        self._handle = handle

    def write(self, data):
        return len(data)

    def flush(self):
        raise OSError(errno.ENOSPC, "No space left on device")

    def close(self):
        self._handle.close()
        raise OSError(errno.ENOSPC, "No space left on device")


class FailingCloser:
    """File wrapper whose close reports an error after all data was flushed."""

    def __init__(self, handle):
        self._handle = handle

    def write(self, data):
        return self._handle.write(data)

    def flush(self):
        self._handle.flush()

    def close(self):
        self._handle.close()
        raise OSError(5, "Input/output error")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_file(temp_dir):
    """Create a source file with a pinned modification time."""
    path = temp_dir / "src" / "data.txt"
    path.parent.mkdir()
    path.write_bytes(b"0123456789abcdef")
    os.utime(path, ns=(SOURCE_MTIME_NS, SOURCE_MTIME_NS))
    return path


class TestFileTransferCopy:
    """Tests for in-place copies."""

    def test_copy_new_file(self, temp_dir, source_file):
        """Test copying bytes and modification time."""
        destination = temp_dir / "dst" / "data.txt"

        copied = FileTransfer().copy(source_file, destination)

        assert copied == 16
        assert destination.read_bytes() == b"0123456789abcdef"
        assert os.stat(destination).st_mtime_ns == SOURCE_MTIME_NS

    def test_creates_missing_parents(self, temp_dir, source_file):
        """Test that intermediate directories are created."""
        destination = temp_dir / "dst" / "a" / "b" / "c" / "data.txt"

        FileTransfer().copy(source_file, destination)

        assert destination.read_bytes() == b"0123456789abcdef"
        mode = stat.S_IMODE(os.stat(temp_dir / "dst" / "a").st_mode)
        assert mode & 0o700 == 0o700

    def test_overwrite_truncates(self, temp_dir, source_file):
        """Test that a longer existing file is fully replaced."""
        destination = temp_dir / "data.txt"
        destination.write_bytes(b"x" * 100)

        FileTransfer().copy(source_file, destination)

        assert destination.read_bytes() == b"0123456789abcdef"

    def test_copy_empty_file(self, temp_dir):
        """Test copying a zero-length file."""
        source = temp_dir / "empty.txt"
        source.write_bytes(b"")
        destination = temp_dir / "out" / "empty.txt"

        assert FileTransfer().copy(source, destination) == 0
        assert destination.exists()
        assert destination.read_bytes() == b""

    def test_small_chunks(self, temp_dir, source_file):
        """Test that content survives many small reads."""
        destination = temp_dir / "data.txt"

        FileTransfer(chunk_size=3).copy(source_file, destination)

        assert destination.read_bytes() == b"0123456789abcdef"

    def test_missing_source(self, temp_dir):
        """Test that an unreadable source fails at open_source."""
        with pytest.raises(TransferError) as exc_info:
            FileTransfer().copy(temp_dir / "missing.txt", temp_dir / "out.txt")

        assert exc_info.value.stage == "open_source"
        assert exc_info.value.operation == "copy"
        assert not (temp_dir / "out.txt").exists()

    def test_parent_is_a_file(self, temp_dir, source_file):
        """Test that a blocked parent directory fails at mkdir."""
        (temp_dir / "blocker").write_text("not a directory")

        with pytest.raises(TransferError) as exc_info:
            FileTransfer().copy(source_file, temp_dir / "blocker" / "data.txt")

        assert exc_info.value.stage == "mkdir"

    def test_destination_is_a_directory(self, temp_dir, source_file):
        """Test that a directory in the way fails at create_destination."""
        destination = temp_dir / "data.txt"
        destination.mkdir()

        with pytest.raises(TransferError) as exc_info:
            FileTransfer().copy(source_file, destination)

        assert exc_info.value.stage == "create_destination"
        assert destination.is_dir()

    def test_read_failure_leaves_partial_file(self, temp_dir, source_file):
        """Test that an I/O error mid-copy leaves the partial destination."""
        destination = temp_dir / "data.txt"

        def fake_open(path, mode="r", *args, **kwargs):
            handle = _real_open(path, mode, *args, **kwargs)
            if Path(path) == source_file:
                return FailingReader(handle)
            return handle

        with patch(OPEN_TARGET, side_effect=fake_open, create=True):
            with pytest.raises(TransferError) as exc_info:
                FileTransfer(chunk_size=4).copy(source_file, destination)

        assert exc_info.value.stage == "copy"
        assert isinstance(exc_info.value.cause, OSError)
        assert destination.read_bytes() == b"0123"

    def test_mtime_failure_is_warning(self, temp_dir, source_file, caplog):
        """Test that failing to set the modtime does not fail the copy."""
        destination = temp_dir / "data.txt"

        with caplog.at_level(logging.WARNING, logger="pysnc"):
            with patch("pysnc.sync.operations.os.utime", side_effect=PermissionError):
                copied = FileTransfer().copy(source_file, destination)

        assert copied == 16
        assert destination.read_bytes() == b"0123456789abcdef"
        assert "Failed to preserve modtime" in caplog.text

    def test_buffered_write_failure_fails_copy(self, temp_dir, source_file):
        """Test that a write error surfacing at flush fails the copy."""
        destination = temp_dir / "data.txt"

        def fake_open(path, mode="r", *args, **kwargs):
            handle = _real_open(path, mode, *args, **kwargs)
            if "w" in mode:
                return FullDiskWriter(handle)
            return handle

        with patch(OPEN_TARGET, side_effect=fake_open, create=True):
            with pytest.raises(TransferError) as exc_info:
                FileTransfer().copy(source_file, destination)

        assert exc_info.value.stage == "copy"
        assert exc_info.value.cause.errno == errno.ENOSPC

    @pytest.mark.skipif(not os.path.exists("/dev/full"), reason="needs /dev/full")
    def test_small_copy_to_full_device_fails(self, temp_dir):
        """Test that a small file that fits in the write buffer still fails."""
        source = temp_dir / "small.txt"
        source.write_bytes(b"hello")

        with pytest.raises(TransferError) as exc_info:
            FileTransfer().copy(source, Path("/dev/full"))

        assert exc_info.value.stage == "copy"
        assert exc_info.value.cause.errno == errno.ENOSPC

    def test_close_failure_after_flush_is_warning(
        self, temp_dir, source_file, caplog
    ):
        """Test that a close error after a successful flush is only logged."""
        destination = temp_dir / "data.txt"

        def fake_open(path, mode="r", *args, **kwargs):
            handle = _real_open(path, mode, *args, **kwargs)
            if "w" in mode:
                return FailingCloser(handle)
            return handle

        with caplog.at_level(logging.WARNING, logger="pysnc"):
            with patch(OPEN_TARGET, side_effect=fake_open, create=True):
                FileTransfer().copy(source_file, destination)

        assert destination.read_bytes() == b"0123456789abcdef"
        assert "Failed to close" in caplog.text


class TestAtomicFileTransfer:
    """Tests for copies through a temporary file."""

    def test_atomic_copy(self, temp_dir, source_file):
        """Test content, modtime and permissions of an atomic copy."""
        source_file.chmod(0o640)
        destination = temp_dir / "dst" / "data.txt"

        FileTransfer(atomic=True).copy(source_file, destination)

        assert destination.read_bytes() == b"0123456789abcdef"
        assert os.stat(destination).st_mtime_ns == SOURCE_MTIME_NS
        assert stat.S_IMODE(os.stat(destination).st_mode) == 0o640
        assert [p.name for p in destination.parent.iterdir()] == ["data.txt"]

    def test_read_failure_keeps_old_content(self, temp_dir, source_file):
        """Test that a failed atomic copy leaves the destination untouched."""
        destination = temp_dir / "out" / "data.txt"
        destination.parent.mkdir()
        destination.write_bytes(b"previous")

        def fake_open(path, mode="r", *args, **kwargs):
            handle = _real_open(path, mode, *args, **kwargs)
            if Path(path) == source_file:
                return FailingReader(handle)
            return handle

        with patch(OPEN_TARGET, side_effect=fake_open, create=True):
            with pytest.raises(TransferError) as exc_info:
                FileTransfer(atomic=True, chunk_size=4).copy(source_file, destination)

        assert exc_info.value.stage == "copy"
        assert destination.read_bytes() == b"previous"
        leftovers = [
            p
            for p in destination.parent.iterdir()
            if p.name.startswith(TEMP_FILE_PREFIX)
        ]
        assert leftovers == []


class TestDeleteFile:
    """Tests for delete_file function."""

    def test_delete_existing(self, temp_dir):
        """Test deleting a file."""
        path = temp_dir / "gone.txt"
        path.write_text("bye")

        delete_file(path)

        assert not path.exists()

    def test_delete_missing(self, temp_dir):
        """Test that deleting a missing file raises DeleteError."""
        with pytest.raises(DeleteError) as exc_info:
            delete_file(temp_dir / "missing.txt")

        assert exc_info.value.operation == "delete"
        assert "Failed to delete" in str(exc_info.value)
