"""
Report generation for Uniswap V3 deployments
"""

from __future__ import annotations

import datetime
import json
import logging
import os
from typing import Any, Mapping, Sequence

import click
import yaml

from deploy_v3.constants import REPORT_FILE_NAME
from deploy_v3.core.config import DeployConfig
from deploy_v3.types import StepBatch
from deploy_v3.utils.logging import log_with_context


def create_output_directory(base_dir: str = "deployment_logs") -> str:
    """Create a timestamped output directory for this run.

    Returns:
        The path to the newly created output directory.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = os.path.join(base_dir, f"run_{timestamp}")
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def _serializable_config(config: DeployConfig | None) -> dict[str, Any] | None:
    if config is None:
        return None
    return config.to_dict()


def generate_report(
    batches: Sequence[StepBatch],
    state: Mapping[str, Any],
    output_dir: str,
    config: DeployConfig | None = None,
    failed_step: str | None = None,
    error: BaseException | None = None,
    output_file: str = REPORT_FILE_NAME,
) -> str:
    """Write a YAML report of every batch seen and the final state.

    Returns:
        The path of the written report.
    """
    os.makedirs(output_dir, exist_ok=True)
    report_path = os.path.join(output_dir, output_file)

    report = {
        "generated_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "status": "failed" if error is not None else "succeeded",
        "failed_step": failed_step,
        "error": str(error) if error is not None else None,
        "summary": {
            "steps_visited": len(batches),
            "steps_skipped": sum(1 for b in batches if b.skipped),
            "transactions_submitted": sum(len(b.hashes) for b in batches),
        },
        "config": _serializable_config(config),
        "steps": [
            {
                "index": b.index,
                "key": b.key,
                "skipped": b.skipped,
                "results": [r.to_dict() for r in b.results],
            }
            for b in batches
        ],
        "final_state": dict(state),
    }

    with open(report_path, "w") as f:
        yaml.safe_dump(report, f, default_flow_style=False, sort_keys=False)

    log_with_context(logging.INFO, f"Deployment report written to {report_path}")
    return report_path


def print_final_state(state: Mapping[str, Any]) -> None:
    """Print the final state as JSON so operators can see how far the run got."""
    click.echo("Final state")
    click.echo(json.dumps(dict(state), indent=2))


def print_summary(batches: Sequence[StepBatch], report_file: str | None = None) -> None:
    """Print a short summary of the run to the console."""
    submitted = [b for b in batches if not b.skipped]
    click.echo("\n" + "=" * 80)
    click.echo("DEPLOYMENT SUMMARY")
    click.echo("=" * 80)
    click.echo(f"Steps visited: {len(batches)}")
    click.echo(f"Steps already complete: {len(batches) - len(submitted)}")
    click.echo(f"Steps executed: {len(submitted)}")
    for batch in submitted:
        for result in batch.results:
            line = f"  [{batch.index}] {result.message}"
            if result.address:
                line += f" at {result.address}"
            click.echo(line)
    if report_file:
        click.echo(f"\nDetailed report saved to {report_file}")
    click.echo("=" * 80)
