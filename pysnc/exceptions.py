"""Exceptions raised by pysnc."""

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class SncError(Exception):
    """Base exception for all pysnc errors."""

    pass


class SyncConfigError(SncError):
    """Raised when sync configuration is invalid or cannot be loaded."""

    pass


class ValidationError(SncError):
    """Raised when a sync root fails existence, type or creation checks.

    Validation errors are fatal: the run stops before any traversal.
    """

    def __init__(self, message: str, path: Optional[PathLike] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class UnsupportedMethodError(SncError):
    """Raised when an unknown change-detection method is requested."""

    def __init__(self, method: object, supported: tuple[str, ...]):
        self.method = method
        self.supported = supported
        super().__init__(
            f"Unsupported update method: {method!r} "
            f"(supported: {', '.join(supported)})"
        )


class FileOperationError(SncError):
    """Base class for errors tied to a single file during a pass.

    These are recorded in the pass tally and never abort the walk.
    """

    operation = "file operation"

    def __init__(
        self,
        path: PathLike,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
    ):
        self.path = Path(path)
        self.cause = cause
        if message is None:
            message = f"{self.operation} failed for {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class RelativePathError(FileOperationError):
    """Raised when a path cannot be expressed relative to its sync root."""

    operation = "relative path"

    def __init__(self, path: PathLike, root: PathLike, cause=None):
        self.root = Path(root)
        super().__init__(
            path,
            cause,
            message=f"Cannot compute relative path for {path} against {root}",
        )


class StatError(FileOperationError):
    """Raised when a path cannot be inspected for a reason other than absence."""

    operation = "stat"

    def __init__(self, path: PathLike, cause=None):
        super().__init__(path, cause, message=f"Cannot stat {path}")


class TransferError(FileOperationError):
    """Raised when copying a file fails.

    The ``stage`` attribute tells where the copy failed: ``mkdir``,
    ``open_source``, ``create_destination`` or ``copy``.
    """

    operation = "copy"

    def __init__(
        self,
        source: PathLike,
        destination: PathLike,
        stage: str,
        cause=None,
    ):
        self.source = Path(source)
        self.destination = Path(destination)
        self.stage = stage
        messages = {
            "mkdir": f"Cannot create parent directory for {destination}",
            "open_source": f"Cannot open source {source}",
            "create_destination": f"Cannot create target {destination}",
            "copy": f"Copy failed from {source} to {destination}",
        }
        failed_path = source if stage == "open_source" else destination
        super().__init__(
            failed_path,
            cause,
            message=messages.get(stage, f"Copy failed ({stage}) for {destination}"),
        )


class DeleteError(FileOperationError):
    """Raised when a file confirmed missing from the source cannot be removed."""

    operation = "delete"

    def __init__(self, path: PathLike, cause=None):
        super().__init__(path, cause, message=f"Failed to delete {path}")


class TargetTypeError(FileOperationError):
    """Raised when a target path exists but is not a regular file.

    Symbolic links in the target tree are never written through, so a
    link at the counterpart path (or at one of its parent directories)
    fails the entry instead of redirecting the copy.
    """

    operation = "target type"

    def __init__(self, path: PathLike, kind: str):
        self.kind = kind
        super().__init__(path, message=f"Target is not a regular file ({kind}): {path}")
