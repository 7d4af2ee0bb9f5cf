"""Validation of sync root directories.

Both roots are checked once per run before any traversal starts: the
source must be an existing directory, the target is created (with any
missing ancestors) when absent.
"""

import logging
from pathlib import Path
from typing import Union

from .exceptions import ValidationError
from .utils import DEFAULT_DIR_MODE

logger = logging.getLogger(__name__)


def validate_directory(
    path: Union[str, Path],
    allow_create: bool = False,
    mode: int = DEFAULT_DIR_MODE,
) -> Path:
    """Check that a path is a usable directory.

    Args:
        path: Directory path to check
        allow_create: Create the directory (and parents) if it does not exist
        mode: Permission bits for created directories

    Returns:
        The validated path

    Raises:
        ValidationError: If the path is not a directory, cannot be
            inspected, or cannot be created
    """
    path = Path(path)
    try:
        if path.is_dir():
            return path
        if path.exists():
            raise ValidationError(f"Path is not a directory: {path}", path)
    except OSError as e:
        raise ValidationError(f"Path is not accessible: {path}: {e}", path) from e

    if not allow_create:
        raise ValidationError(f"Directory does not exist: {path}", path)

    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as e:
        raise ValidationError(f"Cannot create directory {path}: {e}", path) from e

    logger.debug("Created directory %s", path)
    return path


def validate_sync_roots(
    source: Union[str, Path],
    target: Union[str, Path],
    create_target: bool = True,
) -> None:
    """Validate the source and target directories of a run.

    The source must exist; the target is created if missing.

    Args:
        source: Source directory
        target: Target directory
        create_target: Create a missing target. When False a missing target
            is accepted as is (dry runs must not create it).

    Raises:
        ValidationError: If either root is unusable
    """
    try:
        validate_directory(source)
    except ValidationError as e:
        raise ValidationError(f"Source directory validation failed: {e}", e.path) from e

    target = Path(target)
    if not create_target and not target.exists():
        logger.debug("Target %s does not exist and will not be created", target)
        return

    try:
        validate_directory(target, allow_create=True)
    except ValidationError as e:
        raise ValidationError(f"Target directory validation failed: {e}", e.path) from e
