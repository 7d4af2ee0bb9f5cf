"""CLI interface for pysnc."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from click.core import ParameterSource

from .cli_progress import run_sync_with_progress
from .config import LogLevel, SyncConfig, load_sync_config_from_json
from .exceptions import SyncConfigError
from .output import OutputFormatter

logger = logging.getLogger(__name__)

# CLI parameter name -> key used in config files
_CONFIG_KEYS = {
    "source": "source",
    "target": "target",
    "delete_missing": "deleteMissing",
    "log_level": "logLevel",
    "update_method": "updateMethod",
    "dry_run": "dryRun",
    "atomic": "atomic",
    "workers": "workers",
}


def build_config(
    ctx: click.Context, config_file: Optional[Path], params: dict[str, Any]
) -> SyncConfig:
    """Merge a config file with command line values.

    Values given on the command line (or through the environment) win over
    the config file; built-in defaults only fill keys the file does not set.

    Raises:
        SyncConfigError: If the file or the merged values are invalid
    """
    values = load_sync_config_from_json(config_file) if config_file else {}

    for param_name, key in _CONFIG_KEYS.items():
        source = ctx.get_parameter_source(param_name)
        explicit = source not in (None, ParameterSource.DEFAULT)
        if explicit or key not in values:
            value = params[param_name]
            values[key] = str(value) if isinstance(value, Path) else value

    return SyncConfig.from_dict(values)


def configure_logging(level: LogLevel) -> None:
    """Install a logging handler for diagnostics.

    The pysnc loggers follow the run's log level: debug runs get
    timestamped records from every module, ``error`` hides the warnings for
    close or timestamp failures and skipped special files.
    """
    if level == LogLevel.DEBUG:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        logging.basicConfig(level=level.logging_level)
    logging.getLogger("pysnc").setLevel(level.logging_level)


@click.command()
@click.argument("source", required=False, type=click.Path(path_type=Path))
@click.argument("target", required=False, type=click.Path(path_type=Path))
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with sync settings (command line options take precedence)",
)
@click.option(
    "--delete-missing",
    "-d",
    is_flag=True,
    help="Delete files from target that do not exist in source",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(
        ["error", "warn", "warning", "info", "debug"], case_sensitive=False
    ),
    default="info",
    show_default=True,
    envvar="PYSNC_LOG_LEVEL",
    help="Output verbosity",
)
@click.option(
    "--update-method",
    "-u",
    default="modtime",
    show_default=True,
    envvar="PYSNC_UPDATE_METHOD",
    help="Method for detecting file updates (modtime, sha256)",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be synced without syncing"
)
@click.option(
    "--atomic",
    is_flag=True,
    help="Write each copy to a temporary file and rename it into place",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of parallel workers for the copy pass",
)
@click.option("--no-progress", is_flag=True, help="Disable the live progress display")
@click.option(
    "--json", "json_output", is_flag=True, help="Output the run report as JSON"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.version_option(package_name="pysnc")
@click.pass_context
def main(
    ctx: click.Context,
    source: Optional[Path],
    target: Optional[Path],
    config_file: Optional[Path],
    delete_missing: bool,
    log_level: str,
    update_method: str,
    dry_run: bool,
    atomic: bool,
    workers: int,
    no_progress: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """pysnc - make TARGET match SOURCE.

    Copies new and changed files from SOURCE to TARGET and, with
    --delete-missing, removes files that only exist in TARGET.

    Update methods:
      - modtime: compare size and modification time (fast)
      - sha256: compare file contents (reads every byte)

    Examples:

        pysnc ./photos /mnt/backup/photos

        pysnc --delete-missing -u sha256 ./docs /mnt/backup/docs

        pysnc --config sync.json --dry-run
    """
    try:
        config = build_config(
            ctx,
            config_file,
            {
                "source": source,
                "target": target,
                "delete_missing": delete_missing,
                "log_level": log_level,
                "update_method": update_method,
                "dry_run": dry_run,
                "atomic": atomic,
                "workers": workers,
            },
        )
    except SyncConfigError as e:
        raise click.UsageError(str(e), ctx=ctx) from e

    configure_logging(config.log_level)
    out = OutputFormatter(json_output=json_output, quiet=quiet, level=config.log_level)
    logger.debug("Configuration: %s", config.to_dict())

    try:
        report = run_sync_with_progress(config, out, show_progress=not no_progress)
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)  # Standard exit code for SIGINT
        return

    if out.json_output:
        out.output_json(report.to_dict())

    ctx.exit(report.exit_code)


if __name__ == "__main__":
    main()
