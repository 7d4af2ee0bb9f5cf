"""Tests for the pysnc command line."""

import json
import logging
import os
import tempfile
from pathlib import Path

import pytest
from click.testing import CliRunner

from pysnc.cli import main


@pytest.fixture(autouse=True)
def reset_pysnc_logger():
    """Restore the pysnc logger level changed by the command."""
    logger = logging.getLogger("pysnc")
    level = logger.level
    yield
    logger.setLevel(level)


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def roots():
    """Create a source tree and a target with one extra file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        source = Path(tmpdir) / "source"
        target = Path(tmpdir) / "target"
        (source / "sub").mkdir(parents=True)
        target.mkdir()
        (source / "a.txt").write_text("hello")
        (source / "sub" / "b.txt").write_text("world")
        (target / "extra.txt").write_text("stale")
        yield source, target


class TestMainCommand:
    """Tests for the main command."""

    def test_help(self, runner):
        """Test that help lists the options."""
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "--delete-missing" in result.output
        assert "--update-method" in result.output
        assert "--log-level" in result.output

    def test_basic_sync(self, runner, roots):
        """Test a plain sync run."""
        source, target = roots

        result = runner.invoke(main, [str(source), str(target), "--no-progress"])

        assert result.exit_code == 0
        assert "New file: a.txt" in result.output
        assert "Sync complete!" in result.output
        assert (target / "a.txt").read_text() == "hello"
        assert (target / "sub" / "b.txt").read_text() == "world"
        assert (target / "extra.txt").exists()

    def test_live_progress(self, runner, roots):
        """Test a run with the live display enabled."""
        source, target = roots

        result = runner.invoke(main, [str(source), str(target)])

        assert result.exit_code == 0
        assert (target / "a.txt").exists()

    def test_second_run_copies_nothing(self, runner, roots):
        """Test that an up to date target is left alone."""
        source, target = roots
        runner.invoke(main, [str(source), str(target), "--no-progress"])

        result = runner.invoke(
            main, [str(source), str(target), "--no-progress", "--json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["copy"]["copied"] == 0
        assert data["copy"]["skipped"] == 2

    def test_delete_missing(self, runner, roots):
        """Test that --delete-missing removes extra files."""
        source, target = roots

        result = runner.invoke(
            main, [str(source), str(target), "--delete-missing", "--no-progress"]
        )

        assert result.exit_code == 0
        assert "Deleted missing file: extra.txt" in result.output
        assert not (target / "extra.txt").exists()

    @pytest.mark.parametrize("method", ["sha256", "modtime"])
    def test_update_methods(self, runner, roots, method):
        """Test both update methods."""
        source, target = roots

        result = runner.invoke(
            main, [str(source), str(target), "-u", method, "--no-progress"]
        )

        assert result.exit_code == 0
        assert f"Update method: {method}" in result.output

    def test_unsupported_method(self, runner, roots):
        """Test that an unknown method fails before creating the target."""
        source, target = roots
        new_target = target.parent / "new_target"

        result = runner.invoke(
            main, [str(source), str(new_target), "-u", "lz4", "--no-progress"]
        )

        assert result.exit_code == 1
        assert "Unsupported update method" in result.output
        assert not new_target.exists()

    def test_unsupported_method_from_env(self, runner, roots):
        """Test that the update method can come from the environment."""
        source, target = roots

        result = runner.invoke(
            main,
            [str(source), str(target), "--no-progress"],
            env={"PYSNC_UPDATE_METHOD": "lz4"},
        )

        assert result.exit_code == 1

    def test_missing_source(self, runner, roots):
        """Test that a missing source directory fails."""
        source, target = roots

        result = runner.invoke(
            main, [str(source / "missing"), str(target), "--no-progress"]
        )

        assert result.exit_code == 1
        assert "Source directory validation failed" in result.output

    def test_missing_arguments(self, runner):
        """Test that missing roots are a usage error."""
        result = runner.invoke(main, [])

        assert result.exit_code == 2
        assert "Missing required fields" in result.output

    def test_invalid_workers(self, runner, roots):
        """Test that --workers must be at least 1."""
        source, target = roots

        result = runner.invoke(main, [str(source), str(target), "--workers", "0"])

        assert result.exit_code == 2

    def test_invalid_log_level(self, runner, roots):
        """Test that an unknown log level is a usage error."""
        source, target = roots

        result = runner.invoke(main, [str(source), str(target), "-l", "verbose"])

        assert result.exit_code == 2

    def test_dry_run(self, runner, roots):
        """Test that --dry-run changes nothing."""
        source, target = roots

        result = runner.invoke(
            main,
            [str(source), str(target), "--dry-run", "-d", "--no-progress"],
        )

        assert result.exit_code == 0
        assert "(dry run)" in result.output
        assert "Dry run complete!" in result.output
        assert sorted(p.name for p in target.iterdir()) == ["extra.txt"]

    def test_quiet(self, runner, roots):
        """Test that --quiet prints nothing on success."""
        source, target = roots

        result = runner.invoke(main, [str(source), str(target), "-q", "--no-progress"])

        assert result.exit_code == 0
        assert result.output == ""
        assert (target / "a.txt").exists()

    def test_error_log_level_hides_file_lines(self, runner, roots):
        """Test that --log-level error hides per-file lines."""
        source, target = roots

        result = runner.invoke(
            main, [str(source), str(target), "-l", "error", "--no-progress"]
        )

        assert result.exit_code == 0
        assert "New file" not in result.output

    def test_json_output(self, runner, roots):
        """Test the JSON report."""
        source, target = roots

        result = runner.invoke(
            main, [str(source), str(target), "--json", "-d", "--no-progress"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "success"
        assert data["copy"]["new_files"] == 2
        assert data["sweep"]["deleted"] == 1

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="permission checks do not apply to root",
    )
    def test_per_file_errors_exit_code(self, runner, roots):
        """Test that per-file errors give exit code 1 after a full run."""
        source, target = roots
        (source / "locked.txt").write_text("secret")
        (source / "locked.txt").chmod(0o000)
        try:
            result = runner.invoke(main, [str(source), str(target), "--no-progress"])
        finally:
            (source / "locked.txt").chmod(0o644)

        assert result.exit_code == 1
        assert (target / "a.txt").exists()
        assert "1 error(s)" in result.output


class TestLogging:
    """Tests for diagnostics logging."""

    @pytest.fixture
    def linked_roots(self, roots):
        """Add a symlink to the source tree, which the copy pass warns about."""
        source, target = roots
        if not hasattr(os, "symlink"):
            pytest.skip("symlinks unsupported")
        os.symlink(source / "a.txt", source / "link.txt")
        return source, target

    def test_warnings_logged_at_info(self, runner, linked_roots, caplog):
        """Test that the default level lets pysnc warnings through."""
        source, target = linked_roots

        result = runner.invoke(main, [str(source), str(target), "--no-progress"])

        assert result.exit_code == 0
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("non-regular" in r.getMessage() for r in warnings)

    def test_no_warnings_at_error_level(self, runner, linked_roots, caplog):
        """Test that --log-level error silences pysnc warnings."""
        source, target = linked_roots

        result = runner.invoke(
            main, [str(source), str(target), "-l", "error", "--no-progress"]
        )

        assert result.exit_code == 0
        assert (target / "a.txt").exists()
        pysnc_warnings = [
            r
            for r in caplog.records
            if r.name.startswith("pysnc") and r.levelno == logging.WARNING
        ]
        assert pysnc_warnings == []
        assert "non-regular" not in result.output
        assert logging.getLogger("pysnc").level == logging.ERROR


class TestConfigFile:
    """Tests for --config."""

    def test_config_file(self, runner, roots):
        """Test a run driven by a config file."""
        source, target = roots
        config_path = source.parent / "sync.json"
        config_path.write_text(
            json.dumps(
                {
                    "source": str(source),
                    "target": str(target),
                    "deleteMissing": True,
                    "updateMethod": "sha256",
                }
            )
        )

        result = runner.invoke(main, ["--config", str(config_path), "--no-progress"])

        assert result.exit_code == 0
        assert "Update method: sha256" in result.output
        assert not (target / "extra.txt").exists()

    def test_command_line_overrides_config(self, runner, roots):
        """Test that explicit options win over file values."""
        source, target = roots
        config_path = source.parent / "sync.json"
        config_path.write_text(
            json.dumps(
                {"source": "/nonexistent", "target": str(target), "updateMethod": "lz4"}
            )
        )

        result = runner.invoke(
            main,
            ["-c", str(config_path), str(source), "-u", "modtime", "--no-progress"],
        )

        assert result.exit_code == 0
        assert (target / "a.txt").exists()

    def test_invalid_config_file(self, runner, roots):
        """Test that malformed JSON is a usage error."""
        source, _ = roots
        config_path = source.parent / "sync.json"
        config_path.write_text("{broken")

        result = runner.invoke(main, ["--config", str(config_path)])

        assert result.exit_code == 2
        assert "Invalid JSON" in result.output

    def test_string_flag_in_config_file(self, runner, roots):
        """Test that a quoted boolean is rejected instead of read as true."""
        source, target = roots
        config_path = source.parent / "sync.json"
        config_path.write_text(
            json.dumps(
                {
                    "source": str(source),
                    "target": str(target),
                    "deleteMissing": "false",
                }
            )
        )

        result = runner.invoke(main, ["--config", str(config_path)])

        assert result.exit_code == 2
        assert "deleteMissing must be true or false" in result.output
        assert (target / "extra.txt").exists()
        assert not (target / "a.txt").exists()
