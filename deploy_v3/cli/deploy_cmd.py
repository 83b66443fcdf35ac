"""CLI command handler for the deploy workflow."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from urllib.parse import urlparse

import click
from tqdm import tqdm

from deploy_v3.cli.common import cli, common_options, handle_exception
from deploy_v3.cli.report import (
    create_output_directory,
    generate_report,
    print_final_state,
    print_summary,
)
from deploy_v3.core.config import (
    DeployConfig,
    load_config,
    normalize_address,
    validate_private_key,
)
from deploy_v3.core.deployer import deploy as create_deployment
from deploy_v3.core.engine import MigrationEngine
from deploy_v3.core.state import StateFileWriter, load_state, save_state
from deploy_v3.exceptions import ConfigError
from deploy_v3.services.confirmations import ConfirmationWaiter
from deploy_v3.services.rpc import (
    JsonRpcBroadcaster,
    JsonRpcClient,
    SigningBroadcaster,
)
from deploy_v3.types import StepBatch
from deploy_v3.utils.logging import log_with_context, setup_logger

# ---------------------------------------------------------------------------
# deploy subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--json-rpc",
    "json_rpc",
    required=True,
    help="JSON RPC URL where the contracts should be deployed",
)
@click.option(
    "--private-key",
    "private_key",
    envvar="DEPLOY_V3_PRIVATE_KEY",
    help="Private key used to sign every transaction locally "
    "(or set DEPLOY_V3_PRIVATE_KEY)",
)
@click.option(
    "--from-address",
    "from_address",
    help="Node-managed account used to send every transaction "
    "(alternative to --private-key)",
)
@click.option("--weth9-address", help="Address of the WETH9 contract on this chain")
@click.option("--native-currency-label", help="Native currency label, e.g. ETH")
@click.option(
    "--owner-address",
    help="Address that will own the deployed artifacts after the script runs",
)
@click.option(
    "--v2-core-factory-address",
    help="The V2 core factory address (defaults to the zero address). "
    "Recorded in the report only; no deployed contract uses it",
)
@click.option(
    "--gas-price", type=int, help="The gas price to pay in GWEI for each transaction"
)
@click.option(
    "--confirmations",
    type=int,
    help="How many confirmations to wait for after each step  [default: 2]",
)
@click.option("--artifacts-dir", help="Directory containing compiled contract artifacts")
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Optional YAML file with deployment parameters (options override it)",
)
@click.option(
    "--output-dir",
    default=None,
    help="Directory for the deployment log and report (default: timestamped run dir)",
)
@click.option(
    "--debug-rpc",
    is_flag=True,
    default=False,
    help="Log JSON-RPC request/response payloads",
)
def deploy(
    state_path: str,
    verbose: bool,
    json_rpc: str,
    private_key: str | None,
    from_address: str | None,
    weth9_address: str | None,
    native_currency_label: str | None,
    owner_address: str | None,
    v2_core_factory_address: str | None,
    gas_price: int | None,
    confirmations: int | None,
    artifacts_dir: str | None,
    config_path: str | None,
    output_dir: str | None,
    debug_rpc: bool,
) -> None:
    """Deploy (or resume deploying) the Uniswap V3 contracts.

    Args:
        state_path: Path to the JSON migration state file.
        verbose: Enable verbose console logging.
        json_rpc: JSON-RPC endpoint URL.
        private_key: Key used to sign transactions locally.
        from_address: Account the node signs transactions for.
        weth9_address: WETH9 contract address.
        native_currency_label: Native currency label, e.g. ETH.
        owner_address: Final owner of the deployed contracts.
        v2_core_factory_address: Optional V2 factory address.
        gas_price: Gas price in gwei.
        confirmations: Confirmations to wait for after each step.
        artifacts_dir: Directory containing compiled artifacts.
        config_path: Optional YAML config file.
        output_dir: Directory for logs and the report.
        debug_rpc: Log RPC payloads.
    """
    args = SimpleNamespace(
        state_path=state_path,
        verbose=verbose,
        json_rpc=json_rpc,
        private_key=private_key,
        from_address=from_address,
        config_path=config_path,
        overrides={
            "weth9_address": weth9_address,
            "native_currency_label": native_currency_label,
            "owner_address": owner_address,
            "v2_core_factory_address": v2_core_factory_address,
            "gas_price": gas_price,
            "confirmations": confirmations,
            "artifacts_dir": artifacts_dir,
        },
    )

    output_dir = output_dir or create_output_directory()
    setup_logger(verbose, debug_rpc, output_dir)

    orchestrator = DeploymentOrchestrator(args, output_dir)
    try:
        orchestrator.prepare()
        log_startup_info(args, orchestrator.sender, orchestrator.config)
        orchestrator.run()
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        orchestrator.finish(error=e)
        sys.exit(1)
    orchestrator.finish()


# ---------------------------------------------------------------------------
# DeploymentOrchestrator
# ---------------------------------------------------------------------------


class DeploymentOrchestrator:
    """Wires configuration, state, RPC and the engine together for one run."""

    def __init__(self, args: SimpleNamespace, output_dir: str) -> None:
        self.args = args
        self.output_dir = output_dir
        self.config: DeployConfig | None = None
        self.engine: MigrationEngine | None = None
        self.waiter: ConfirmationWaiter | None = None
        self.state_writer = StateFileWriter(Path(args.state_path))
        self.batches: list[StepBatch] = []
        self.initial_state: dict[str, Any] = {}
        self.awaiting_step: str | None = None
        self.sender: str | None = None

    def prepare(self) -> None:
        """Validate inputs and build the engine. No transaction is sent here."""
        validate_rpc_url(self.args.json_rpc)
        if bool(self.args.private_key) == bool(self.args.from_address):
            raise ConfigError("Provide exactly one of --private-key or --from-address")
        if self.args.private_key:
            validate_private_key(self.args.private_key)
        else:
            normalize_address(self.args.from_address, "from address")

        config_path = Path(self.args.config_path) if self.args.config_path else None
        self.config = load_config(config_path, self.args.overrides)

        self.initial_state = load_state(self.state_writer.path).snapshot()
        # Fail on an unwritable state path before the first submission
        save_state(self.state_writer.path, self.initial_state)

        client = JsonRpcClient(
            self.args.json_rpc,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
        )
        broadcaster: JsonRpcBroadcaster
        if self.args.private_key:
            broadcaster = SigningBroadcaster(client, self.args.private_key)
        else:
            broadcaster = JsonRpcBroadcaster(client, self.args.from_address)
        self.sender = broadcaster.sender
        self.waiter = ConfirmationWaiter(client, poll_interval=self.config.poll_interval)
        self.engine = create_deployment(
            self.config,
            broadcaster,
            initial_state=self.initial_state,
            on_state_change=self.state_writer,
        )

    def run(self) -> None:
        """Pull batches one at a time, waiting for confirmations in between."""
        if self.engine is None or self.waiter is None or self.config is None:
            raise RuntimeError("Deployment not prepared")

        with tqdm(total=len(self.engine.steps), desc="Deploying", unit="step") as pbar:
            for batch in self.engine:
                self.batches.append(batch)
                self.awaiting_step = batch.key
                log_with_context(
                    logging.INFO,
                    f"Step {batch.index} complete: "
                    + "; ".join(r.message for r in batch.results),
                    step=batch.key,
                )
                self.waiter.wait_for_batch(
                    batch.results,
                    self.config.confirmations,
                    self.config.confirmation_timeout,
                )
                self.awaiting_step = None
                pbar.update(1)

        log_with_context(logging.INFO, "🎉 Deployment succeeded")

    @property
    def final_state(self) -> dict[str, Any]:
        if self.engine is not None:
            return self.engine.state.snapshot()
        if self.state_writer.last_state is not None:
            return self.state_writer.last_state
        return self.initial_state

    def finish(self, error: BaseException | None = None) -> None:
        """Report results and the final state, whether or not the run failed."""
        failed_step = self.engine.failed_step if self.engine else None
        if failed_step is None and error is not None:
            failed_step = self.awaiting_step
        report_file = None
        try:
            report_file = generate_report(
                self.batches,
                self.final_state,
                self.output_dir,
                config=self.config,
                failed_step=failed_step,
                error=error,
            )
        except OSError as report_error:
            log_with_context(
                logging.WARNING,
                f"Failed to write deployment report: {report_error}",
            )
        if error is None:
            print_summary(self.batches, report_file)
        print_final_state(self.final_state)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def validate_rpc_url(url: str) -> None:
    """Reject anything that is not an absolute http(s) URL.

    Raises:
        ConfigError: If the URL is malformed.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid JSON RPC URL: {url}")


def log_startup_info(
    args: SimpleNamespace, sender: str | None, config: DeployConfig | None
) -> None:
    """Log startup information.

    Args:
        args: Parsed CLI arguments.
        sender: Address every transaction is sent from.
        config: The validated deployment configuration.
    """
    log_with_context(logging.INFO, "Starting deployment with the following parameters:")
    log_with_context(logging.INFO, f"- JSON RPC: {args.json_rpc}")
    log_with_context(logging.INFO, f"- From address: {sender}")
    log_with_context(
        logging.INFO,
        "- Signing: local private key" if args.private_key else "- Signing: node account",
    )
    log_with_context(logging.INFO, f"- State file: {args.state_path}")
    if config is not None:
        log_with_context(logging.INFO, f"- WETH9: {config.weth9_address}")
        log_with_context(logging.INFO, f"- Owner: {config.owner_address}")
        log_with_context(
            logging.INFO, f"- Native currency label: {config.native_currency_label}"
        )
        log_with_context(
            logging.INFO, f"- V2 core factory: {config.v2_core_factory_address}"
        )
        log_with_context(
            logging.INFO,
            f"- Gas price: {config.gas_price} gwei"
            if config.gas_price
            else "- Gas price: node default",
        )
        log_with_context(logging.INFO, f"- Confirmations: {config.confirmations}")
        log_with_context(logging.INFO, f"- Artifacts: {config.artifacts_dir}")
