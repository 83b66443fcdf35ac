"""CLI command handler for creating a starter config file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from deploy_v3.cli.common import cli
from deploy_v3.core.config import create_default_config
from deploy_v3.utils.logging import setup_logger


@cli.command("init-config")
@click.option(
    "--output",
    default="deploy-config.yaml",
    show_default=True,
    help="Where to write the config file",
)
def init_config(output: str) -> None:
    """Write a starter YAML config (never overwrites an existing file).

    Args:
        output: Path of the config file to create.
    """
    setup_logger()
    if not create_default_config(Path(output)):
        sys.exit(1)
    click.echo(f"Edit {output} and pass it to 'deploy-v3 deploy --config {output}'.")
