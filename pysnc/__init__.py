"""pysnc - one-way directory synchronizer."""

from .config import LogLevel, SyncConfig, load_sync_config_from_json
from .exceptions import (
    DeleteError,
    FileOperationError,
    RelativePathError,
    SncError,
    StatError,
    SyncConfigError,
    TargetTypeError,
    TransferError,
    UnsupportedMethodError,
    ValidationError,
)
from .sync import SyncEngine, SyncReport, create_update_strategy
from .validation import validate_sync_roots

__all__ = [
    "SyncConfig",
    "SyncEngine",
    "SyncReport",
    "LogLevel",
    "load_sync_config_from_json",
    "create_update_strategy",
    "validate_sync_roots",
    "SncError",
    "SyncConfigError",
    "ValidationError",
    "UnsupportedMethodError",
    "FileOperationError",
    "RelativePathError",
    "StatError",
    "TransferError",
    "TargetTypeError",
    "DeleteError",
]
