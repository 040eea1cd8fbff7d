"""Test package installation and CLI entry point."""

import subprocess
import sys


class TestInstallation:
    """Test package installation."""

    def test_package_importable(self):
        """Test that package can be imported."""
        import task_batch

        assert task_batch.__version__ == "0.1.0"

    def test_cli_entry_point(self):
        """Test CLI entry point."""
        from task_batch.cli import cli

        assert cli is not None

    def test_cli_help(self):
        """Test CLI help command."""
        result = subprocess.run(
            [sys.executable, "-m", "task_batch", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "Task Batch" in result.stdout

    def test_cli_version(self):
        """Test CLI version command."""
        result = subprocess.run(
            [sys.executable, "-m", "task_batch", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "0.1.0" in result.stdout


class TestModuleImports:
    """Test that all modules can be imported."""

    def test_import_config(self):
        """Test config module import."""
        from task_batch.config import Settings, load_config

        assert Settings is not None
        assert load_config is not None

    def test_import_utils(self):
        """Test utils module import."""
        from task_batch.utils import get_logger, setup_logger

        assert setup_logger is not None
        assert get_logger is not None

    def test_import_batch(self):
        """Test batch module import."""
        from task_batch.batch import Notifier, Scheduler, StatusStore, TaskBatch, TaskExecutor

        assert Notifier is not None
        assert StatusStore is not None
        assert TaskExecutor is not None
        assert Scheduler is not None
        assert TaskBatch is not None

    def test_top_level_exports(self):
        """Test the public API is re-exported from the package root."""
        from task_batch import NO_CACHED_VALUE, TaskBatch, TaskDefinition, TaskStatus

        assert TaskBatch is not None
        assert TaskDefinition is not None
        assert TaskStatus.PENDING.value == "pending"
        assert not NO_CACHED_VALUE
