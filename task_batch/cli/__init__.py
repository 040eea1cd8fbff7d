"""Command line interface for task_batch."""

from task_batch.cli.commands import cli

__all__ = ["cli"]
