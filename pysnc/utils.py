"""Utility functions for pysnc."""

import hashlib
from pathlib import Path
from typing import Union

# =============================================================================
# Constants for file operations
# =============================================================================

# Buffer size used when streaming file contents (1 MB)
DEFAULT_COPY_CHUNK_SIZE: int = 1024 * 1024

# Permissions for directories created on the target side (rwxr-xr-x)
DEFAULT_DIR_MODE: int = 0o755

# Prefix of temporary files written by atomic copies
TEMP_FILE_PREFIX: str = ".pysnc-"


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_sha256(
    file_path: Union[str, Path], chunk_size: int = DEFAULT_COPY_CHUNK_SIZE
) -> str:
    """Calculate the SHA-256 digest of a file's contents.

    The file is read in chunks so large files are never loaded into memory
    at once.

    Args:
        file_path: Path of the file to hash
        chunk_size: Number of bytes read per iteration

    Returns:
        Hex-encoded SHA-256 digest

    Raises:
        OSError: If the file cannot be opened or read

    Examples:
        >>> import tempfile, os
        >>> with tempfile.NamedTemporaryFile(delete=False) as f:
        ...     _ = f.write(b"hello")
        >>> calculate_sha256(f.name)[:16]
        '2cf24dba5fb0a30e'
        >>> os.unlink(f.name)
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
