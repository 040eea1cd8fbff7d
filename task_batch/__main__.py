"""Entry point for running task_batch as a module."""

from task_batch.cli import cli

if __name__ == "__main__":
    cli()
