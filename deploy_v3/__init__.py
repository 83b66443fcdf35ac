#!/usr/bin/env python3
"""
Resumable Uniswap V3 deployment tool
"""

__version__ = "0.1.0"

from deploy_v3.core.config import DeployConfig, load_config
from deploy_v3.core.deployer import deploy
from deploy_v3.core.engine import MigrationEngine, check_plan
from deploy_v3.core.state import MigrationState, load_state, save_state
from deploy_v3.core.step import StepDefinition, StepRunner
from deploy_v3.steps import MIGRATION_STEPS
from deploy_v3.types import StepBatch, StepResult
