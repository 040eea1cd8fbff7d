"""CLI commands for task_batch."""

import asyncio
from pathlib import Path

import click
import yaml

from task_batch import __version__
from task_batch.exceptions import ConfigurationError

# Context settings for better help formatting
CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}

# How many of the two probe tasks get acknowledged
ACKNOWLEDGE_COUNTS = {"all": 2, "first": 1, "none": 0}


def _get_settings(ctx: click.Context):
    """Get settings from context or load defaults."""
    from task_batch.config import load_config

    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress log output",
)
@click.version_option(version=__version__, prog_name="task_batch")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Task Batch - concurrency-bounded batch executor for async operations

    \b
    Examples:
        # Show the effective configuration
        task-batch config

        # Check that an unacknowledged task keeps the batch from completing
        task-batch probe --mode completed --acknowledge first
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    from task_batch.utils.logger import configure_from_settings, logger

    if quiet:
        logger.remove()
        return

    settings = _get_settings(ctx)
    if verbose:
        settings.logging.level = "DEBUG"
    configure_from_settings(settings)


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Print the effective configuration as YAML."""
    settings = _get_settings(ctx)
    click.echo(yaml.safe_dump(settings.model_dump(), sort_keys=False).rstrip())


@cli.command()
@click.option(
    "--mode",
    "-m",
    type=click.Choice(["completed", "fulfilled"]),
    default="completed",
    show_default=True,
    help="Batch predicate to wait for",
)
@click.option(
    "--acknowledge",
    "-a",
    type=click.Choice(list(ACKNOWLEDGE_COUNTS)),
    default="all",
    show_default=True,
    help="Which of the two probe tasks to acknowledge",
)
def probe(mode: str, acknowledge: str) -> None:
    """Run two probe tasks on a fresh engine and print the predicate result.

    In "completed" mode the second task rejects; in "fulfilled" mode both
    resolve. When a task is left unacknowledged the wait never ends, so the
    command never prints: callers must apply their own timeout.
    """
    from task_batch.cli.probe import run_probe

    result = asyncio.run(run_probe(mode, ACKNOWLEDGE_COUNTS[acknowledge]))
    click.echo("true" if result else "false")
