#!/usr/bin/env python3
"""
Main execution module for the Uniswap V3 deployment tool.

Importing the subcommand modules registers them on the shared click group.
"""

from typing import NoReturn

import deploy_v3.cli.config_cmd  # noqa: F401
import deploy_v3.cli.deploy_cmd  # noqa: F401
import deploy_v3.cli.status_cmd  # noqa: F401
from deploy_v3.cli.common import cli, handle_exception

__all__ = ["cli", "handle_exception", "main"]


def main() -> NoReturn:
    """Entry point for the ``deploy-v3`` console script."""
    cli()


if __name__ == "__main__":
    main()
