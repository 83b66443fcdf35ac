"""CLI command handler for the offline ``status`` report."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from deploy_v3.cli.common import cli, common_options, handle_exception
from deploy_v3.core.state import MigrationState, load_state
from deploy_v3.exceptions import DeployerError
from deploy_v3.steps import MIGRATION_STEPS
from deploy_v3.utils.logging import log_with_context, setup_logger


def describe_progress(state: MigrationState) -> list[tuple[int, str, bool]]:
    """Return ``(index, key, complete)`` for every step in plan order."""
    view = state.view()
    return [
        (index, step.key, step.is_complete(view))
        for index, step in enumerate(MIGRATION_STEPS, start=1)
    ]


@cli.command()
@common_options
def status(state_path: str, verbose: bool) -> None:
    """Show which deployment steps the state file already satisfies.

    Reads only the state file; nothing is sent to the network.

    Args:
        state_path: Path to the JSON migration state file.
        verbose: Enable verbose console logging.
    """
    setup_logger(verbose)
    try:
        state = load_state(Path(state_path))
    except DeployerError as e:
        handle_exception(e)
        sys.exit(1)

    progress = describe_progress(state)
    next_step = next((key for _, key, done in progress if not done), None)

    for index, key, done in progress:
        marker = "✅" if done else "⏳"
        value = state.get(key)
        suffix = f"  {value}" if done and isinstance(value, str) else ""
        click.echo(f"{marker} {index:>2}. {key}{suffix}")

    click.echo("")
    if next_step is None:
        click.echo("All steps complete.")
    else:
        click.echo(f"Next step to execute: {next_step}")

    unknown = sorted(set(state) - {key for _, key, _ in progress})
    if unknown:
        log_with_context(
            logging.WARNING,
            f"State file contains keys not used by any step: {', '.join(unknown)}",
        )
