"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
from typing import Callable, ClassVar

import click

import deploy_v3
from deploy_v3.constants import DEFAULT_STATE_FILE
from deploy_v3.exceptions import (
    ArtifactError,
    ConfigError,
    ConfirmationTimeoutError,
    DeployerError,
    PrerequisiteError,
    RpcError,
    StateFileError,
    SubmissionError,
    TransactionRevertedError,
)
from deploy_v3.utils.logging import log_with_context

# ---------------------------------------------------------------------------
# Custom click.Group that defaults to ``deploy``.
# When the first CLI token starts with ``-`` (i.e. a flag, not a subcommand)
# the group prepends ``deploy`` so that
#   ``deploy-v3 --json-rpc ... --owner-address ...``
# runs a deployment directly.
# ---------------------------------------------------------------------------


class DefaultGroup(click.Group):
    """Click group that defaults to the ``deploy`` subcommand."""

    # Flags that belong to the group itself and should NOT trigger the
    # ``deploy`` default.
    _GROUP_FLAGS: ClassVar[set[str]] = {"--help", "--version", "-h"}

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        """Prepend ``deploy`` when the first token is a flag.

        Args:
            ctx: The current Click context.
            args: Raw CLI argument list.

        Returns:
            The (possibly modified) argument list for further parsing.
        """
        if args and args[0].startswith("-") and args[0] not in self._GROUP_FLAGS:
            args = ["deploy", *args]
        return super().parse_args(ctx, args)


# ---------------------------------------------------------------------------
# Shared option decorator
# ---------------------------------------------------------------------------


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared across multiple subcommands.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--state",
        "state_path",
        default=f"./{DEFAULT_STATE_FILE}",
        show_default=True,
        help="Path to the JSON file containing the migration state",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    return f


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    cls=DefaultGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=deploy_v3.__version__, prog_name="deploy-v3")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Resumable Uniswap V3 deployment tool.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> None:
    """Log a failure with advice matching its type.

    Args:
        e: The exception to handle.
    """
    if isinstance(e, ConfigError):
        log_with_context(logging.ERROR, f"Invalid configuration: {e}")
    elif isinstance(e, StateFileError):
        log_with_context(logging.ERROR, str(e))
        log_with_context(
            logging.INFO,
            "Fix or restore the state file; deleting it would redeploy every contract.",
        )
    elif isinstance(e, PrerequisiteError):
        log_with_context(logging.ERROR, f"Missing prerequisite: {e}")
        log_with_context(
            logging.INFO,
            "The state file is missing an entry an earlier step should have recorded.",
        )
    elif isinstance(e, ArtifactError):
        log_with_context(logging.ERROR, f"Artifact error: {e}")
        log_with_context(
            logging.INFO, "Check --artifacts-dir points at the compiled contracts."
        )
    elif isinstance(e, RpcError):
        log_with_context(logging.ERROR, f"RPC error: {e}")
        log_with_context(
            logging.INFO,
            "Re-run with the same state file to resume once the node is reachable.",
        )
    elif isinstance(e, (SubmissionError, TransactionRevertedError)):
        log_with_context(logging.ERROR, f"Transaction failed: {e}")
    elif isinstance(e, ConfirmationTimeoutError):
        log_with_context(logging.ERROR, f"Confirmation timeout: {e}")
        log_with_context(
            logging.WARNING,
            "The timed-out step is recorded in the state file and will be skipped "
            "on resume. Verify the transaction landed before re-running.",
        )
    elif isinstance(e, DeployerError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Deployment interrupted by user.")
        log_with_context(
            logging.INFO, "🔄 Re-run with the same --state file to resume."
        )
    else:
        log_with_context(logging.ERROR, f"Deployment failed: {e}", exc_info=True)
