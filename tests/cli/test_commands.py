"""
Tests for CLI Commands

Tests the run command end to end with a real subprocess per item.
"""

import logging
import shlex
import sys

import pytest
from typer.testing import CliRunner

from batchfeeder import __version__
from batchfeeder.cli.main import app as main_app


def python_command(code: str) -> str:
    """Command string running ``code`` with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


EXIT_ODD = python_command("import sys; sys.exit(int(sys.argv[1]) % 2)")
EXIT_ZERO = python_command("import sys; sys.exit(0)")


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo the root logger setup done by the command."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.cli
class TestMainApp:
    """Test the top-level application."""

    def setup_method(self):
        """Set up test environment for each test."""
        self.runner = CliRunner()

    def test_version(self):
        """--version prints the package version."""
        result = self.runner.invoke(main_app, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run_help(self):
        """The run command documents its options."""
        result = self.runner.invoke(main_app, ['run', '--help'])
        assert result.exit_code == 0
        assert "--command" in result.output
        assert "--concurrency" in result.output


@pytest.mark.cli
@pytest.mark.integration
@pytest.mark.usefixtures("isolated_config_env")
class TestRunCommand:
    """Test the run command."""

    def setup_method(self):
        """Set up test environment for each test."""
        self.runner = CliRunner()

    def test_all_items_succeed(self, tmp_path):
        """Every line runs the command and the summary reports them."""
        items = tmp_path / "items.txt"
        items.write_text("1\n2\n\n3\n4\n5\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', EXIT_ZERO,
            '--concurrency', '3', '--batch-size', '2', '--quiet'
        ])

        assert result.exit_code == 0, result.output
        assert "Run Summary" in result.output
        assert "Completed" in result.output
        assert "Failed items" not in result.output

    def test_failures_set_exit_code(self, tmp_path):
        """Failing commands are listed and the exit status is 1."""
        items = tmp_path / "items.txt"
        items.write_text("\n".join(str(n) for n in range(6)) + "\n")

        result = self.runner.invoke(main_app, ['run', str(items), '-x', EXIT_ODD, '-q'])

        assert result.exit_code == 1
        assert "Failed items" in result.output
        assert "exit status 1" in result.output

    def test_reads_stdin(self):
        """'-' reads the items from standard input."""
        result = self.runner.invoke(
            main_app, ['run', '-', '--command', EXIT_ODD, '--quiet'], input="2\n4\n"
        )

        assert result.exit_code == 0, result.output

    def test_missing_executable_counts_as_failure(self, tmp_path):
        """A command that cannot be started fails its items."""
        items = tmp_path / "items.txt"
        items.write_text("a\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', str(tmp_path / "no-such-program"), '--quiet'
        ])

        assert result.exit_code == 1

    def test_unreadable_input_fails_the_run(self, tmp_path):
        """Input that cannot be decoded ends the run with exit status 1."""
        items = tmp_path / "items.txt"
        items.write_bytes(b"ok0\nok1\n\xff\xfe bad\nafter\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', EXIT_ZERO, '--batch-size', '2', '--quiet'
        ])

        assert result.exit_code == 1
        assert "Run Summary" in result.output

    def test_log_level_option(self, tmp_path):
        """--log-level sets the root logger level for the run."""
        items = tmp_path / "items.txt"
        items.write_text("1\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', EXIT_ZERO, '--log-level', 'error', '--quiet'
        ])

        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.ERROR

    def test_invalid_log_level_rejected(self, tmp_path):
        """An unknown log level is a configuration error."""
        items = tmp_path / "items.txt"
        items.write_text("1\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', EXIT_ZERO, '--log-level', 'chatty'
        ])

        assert result.exit_code == 1

    def test_missing_input_file(self, tmp_path):
        """A missing input file is reported as an error."""
        result = self.runner.invoke(main_app, [
            'run', str(tmp_path / "absent.txt"), '--command', EXIT_ZERO
        ])

        assert result.exit_code == 1

    def test_rejects_zero_concurrency(self, tmp_path):
        """--concurrency must be positive."""
        items = tmp_path / "items.txt"
        items.write_text("1\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', EXIT_ZERO, '--concurrency', '0'
        ])

        assert result.exit_code == 2

    def test_zero_concurrency_from_config_rejected(self, tmp_path):
        """A config file pausing the feeder is refused rather than hanging."""
        items = tmp_path / "items.txt"
        items.write_text("1\n")
        config = tmp_path / "paused.yaml"
        config.write_text("feeder:\n  concurrency: 0\n")

        result = self.runner.invoke(main_app, [
            'run', str(items), '--command', EXIT_ZERO, '--config', str(config)
        ])

        assert result.exit_code == 1

    def test_empty_command_rejected(self, tmp_path):
        """A blank command is refused."""
        items = tmp_path / "items.txt"
        items.write_text("1\n")

        result = self.runner.invoke(main_app, ['run', str(items), '--command', '   '])

        assert result.exit_code == 1
