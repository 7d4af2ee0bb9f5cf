"""Run configuration for pysnc."""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from .exceptions import SyncConfigError


class LogLevel(str, Enum):
    """Verbosity of user-facing output."""

    ERROR = "error"
    """Only errors"""

    WARN = "warn"
    """Errors and warnings"""

    INFO = "info"
    """Progress events and summaries"""

    DEBUG = "debug"
    """Everything, including per-file skip decisions"""

    @classmethod
    def from_string(cls, value: Union[str, "LogLevel"]) -> "LogLevel":
        """Parse a log level name (case-insensitive, ``warning`` is accepted).

        Raises:
            SyncConfigError: If the name is not a known level
        """
        if isinstance(value, LogLevel):
            return value
        normalized = str(value).strip().lower()
        if normalized == "warning":
            normalized = "warn"
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(level.value for level in cls)
            raise SyncConfigError(
                f"Invalid log level: {value!r} (valid: {valid})"
            ) from None

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more verbose."""
        return list(LogLevel).index(self)

    @property
    def logging_level(self) -> int:
        """Equivalent level for the standard logging module."""
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]

    def allows(self, level: "LogLevel") -> bool:
        """Return True if messages at ``level`` should be shown."""
        return level.rank <= self.rank


@dataclass
class SyncConfig:
    """Configuration for a single synchronization run."""

    source: Path
    """Source directory (must exist)"""

    target: Path
    """Target directory (created if missing)"""

    delete_missing: bool = False
    """Delete target files that do not exist in the source"""

    log_level: LogLevel = LogLevel.INFO
    """Verbosity passed to the reporting layer"""

    update_method: str = "modtime"
    """Change detection method name, validated when the run starts"""

    dry_run: bool = False
    """Only report what would be done"""

    atomic: bool = False
    """Write copies to a temporary sibling and rename on success"""

    workers: int = 1
    """Number of parallel workers for the copy pass"""

    def __post_init__(self) -> None:
        """Normalize field types after initialization."""
        if isinstance(self.source, str):
            self.source = Path(self.source)
        if isinstance(self.target, str):
            self.target = Path(self.target)
        self.log_level = LogLevel.from_string(self.log_level)
        if self.update_method is not None:
            self.update_method = str(self.update_method).strip().lower()
        if (
            isinstance(self.workers, bool)
            or not isinstance(self.workers, int)
            or self.workers < 1
        ):
            raise SyncConfigError(
                f"Workers must be an integer of at least 1, got {self.workers!r}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncConfig":
        """Create a SyncConfig from a dictionary.

        Args:
            data: Dictionary using camelCase keys (``deleteMissing``,
                ``logLevel``, ``updateMethod``, ``dryRun``, ``atomic``,
                ``workers``)

        Returns:
            SyncConfig instance

        Raises:
            SyncConfigError: If required fields are missing or invalid

        Examples:
            >>> cfg = SyncConfig.from_dict({"source": "/a", "target": "/b"})
            >>> cfg.update_method
            'modtime'
        """
        missing = [key for key in ("source", "target") if not data.get(key)]
        if missing:
            raise SyncConfigError(f"Missing required fields: {', '.join(missing)}")

        return cls(
            source=Path(data["source"]),
            target=Path(data["target"]),
            delete_missing=_get_bool(data, "deleteMissing"),
            log_level=data.get("logLevel", LogLevel.INFO),
            update_method=data.get("updateMethod", "modtime"),
            dry_run=_get_bool(data, "dryRun"),
            atomic=_get_bool(data, "atomic"),
            workers=data.get("workers", 1),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary (camelCase keys)."""
        return {
            "source": str(self.source),
            "target": str(self.target),
            "deleteMissing": self.delete_missing,
            "logLevel": self.log_level.value,
            "updateMethod": self.update_method,
            "dryRun": self.dry_run,
            "atomic": self.atomic,
            "workers": self.workers,
        }


def _get_bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise SyncConfigError(f"{key} must be true or false, got {value!r}")
    return value

def load_sync_config_from_json(path: Union[str, Path]) -> dict[str, Any]:
    """Load raw configuration values from a JSON file.

    The file must contain a JSON object. Values are returned unvalidated so
    callers can merge them with command line options before building a
    :class:`SyncConfig`.

    Args:
        path: Path to the JSON file

    Returns:
        Dictionary of configuration values

    Raises:
        SyncConfigError: If the file cannot be read or is not a JSON object
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise SyncConfigError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SyncConfigError(f"Invalid JSON in config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise SyncConfigError(f"Config file {path} must contain a JSON object")
    return data
