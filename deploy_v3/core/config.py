"""
Configuration module for the Uniswap V3 deployment tool.

This module loads the static deployment parameters from a YAML file, layers
command-line overrides on top, and validates the result into an immutable
``DeployConfig`` that every step's argument computation can read.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from eth_utils import is_address, to_checksum_address

from deploy_v3.constants import (
    ADDRESS_ZERO,
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RETRY_DELAY,
    GWEI,
)
from deploy_v3.exceptions import ConfigError
from deploy_v3.utils.logging import log_with_context


def normalize_address(value: Any, label: str) -> str:
    """Return ``value`` as an EIP-55 checksummed address.

    Raises:
        ConfigError: If ``value`` is not a valid 20-byte hex address.
    """
    if not isinstance(value, str) or not is_address(value):
        raise ConfigError(f"Invalid {label}: {value!r}")
    return to_checksum_address(value)


PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def validate_private_key(value: str) -> str:
    """Check that ``value`` looks like a 0x-prefixed 32-byte hex key.

    The key itself never appears in the error message.

    Raises:
        ConfigError: If the key is malformed.
    """
    if not isinstance(value, str) or not PRIVATE_KEY_PATTERN.match(value):
        raise ConfigError("Invalid private key!")
    return value


def ascii_string_to_bytes32(label: str) -> bytes:
    """Encode an ASCII label as a right-padded bytes32 value.

    Any ASCII string of up to 32 characters is accepted, including the empty
    string (32 zero bytes).

    Raises:
        ConfigError: If the label is longer than 32 characters or is not ASCII.
    """
    if len(label) > 32 or not label.isascii():
        raise ConfigError(
            f"Invalid native currency label {label!r}, must be at most 32 ASCII characters"
        )
    return label.encode("ascii").ljust(32, b"\x00")


def _to_int(value: Any, label: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Failed to parse {label}: {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Failed to parse {label}: {value!r}") from e
    if number < minimum:
        raise ConfigError(f"{label} must be >= {minimum}, got {number}")
    return number


def _to_float(value: Any, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Failed to parse {label}: {value!r}") from e
    if number < 0:
        raise ConfigError(f"{label} must be non-negative, got {number}")
    return number


@dataclass(frozen=True)
class DeployConfig:
    """Immutable deployment parameters. Created once, shared with every step."""

    weth9_address: str
    native_currency_label: str
    owner_address: str
    v2_core_factory_address: str = ADDRESS_ZERO
    gas_price: int | None = None  # gwei
    confirmations: int = DEFAULT_CONFIRMATIONS
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    artifacts_dir: str = "artifacts"
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY

    @property
    def gas_price_wei(self) -> int | None:
        """Gas price converted from gwei to wei, or None to let the node decide."""
        if self.gas_price is None:
            return None
        return self.gas_price * GWEI

    @property
    def native_currency_label_bytes(self) -> bytes:
        """The native currency label as a bytes32 constructor argument."""
        return ascii_string_to_bytes32(self.native_currency_label)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeployConfig:
        """Validate a raw config mapping and build a DeployConfig.

        Raises:
            ConfigError: If a required field is missing or any field is malformed.
        """
        missing = [
            name
            for name in ("weth9_address", "native_currency_label", "owner_address")
            if data.get(name) is None
        ]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

        label = str(data["native_currency_label"])
        # Validate eagerly so a bad label fails before any step runs
        ascii_string_to_bytes32(label)

        v2_factory = data.get("v2_core_factory_address")
        gas_price = data.get("gas_price")

        return cls(
            weth9_address=normalize_address(data["weth9_address"], "WETH9 address"),
            native_currency_label=label,
            owner_address=normalize_address(data["owner_address"], "owner address"),
            v2_core_factory_address=(
                ADDRESS_ZERO
                if v2_factory in (None, "")
                else normalize_address(v2_factory, "V2 factory address")
            ),
            gas_price=(
                None
                if gas_price in (None, "")
                else _to_int(gas_price, "gas price", minimum=1)
            ),
            confirmations=_to_int(
                data.get("confirmations", DEFAULT_CONFIRMATIONS), "confirmations"
            ),
            confirmation_timeout=_to_float(
                data.get("confirmation_timeout", DEFAULT_CONFIRMATION_TIMEOUT),
                "confirmation timeout",
            ),
            poll_interval=_to_float(
                data.get("poll_interval", DEFAULT_POLL_INTERVAL), "poll interval"
            ),
            artifacts_dir=str(data.get("artifacts_dir") or "artifacts"),
            max_retries=_to_int(data.get("max_retries", DEFAULT_MAX_RETRIES), "max retries"),
            retry_delay=_to_float(
                data.get("retry_delay", DEFAULT_RETRY_DELAY), "retry delay"
            ),
        )


def load_config_file(config_path: Path) -> dict[str, Any]:
    """
    Load raw configuration values from a YAML file.

    A missing file is not an error: a warning is logged and an empty mapping
    returned so that command-line options alone can supply the configuration.

    Args:
        config_path: Path to the config YAML file

    Returns:
        The raw mapping read from the file

    Raises:
        ConfigError: If the file exists but cannot be read or is not a mapping
    """
    if not config_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {config_path} not found, using command-line options only",
        )
        return {}

    try:
        with open(config_path) as f:
            loaded = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Failed to load config file {config_path}: {e}") from e

    # Handle None result from empty file
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
    return loaded


def load_config(
    config_path: Path | None, overrides: Mapping[str, Any] | None = None
) -> DeployConfig:
    """
    Build the deployment configuration from a YAML file and CLI overrides.

    Override values of ``None`` are ignored so that unset CLI options do not
    mask values from the file.

    Args:
        config_path: Optional path to the config YAML file
        overrides: Values that take precedence over the file

    Returns:
        A validated DeployConfig
    """
    raw: dict[str, Any] = load_config_file(config_path) if config_path else {}
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})
    return DeployConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with example settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        "weth9_address": "0x4200000000000000000000000000000000000023",
        "native_currency_label": "ETH",
        "owner_address": "0x0000000000000000000000000000000000000001",
        "v2_core_factory_address": ADDRESS_ZERO,
        "artifacts_dir": "artifacts",
        # Confirmation waiting
        "confirmations": DEFAULT_CONFIRMATIONS,
        "confirmation_timeout": DEFAULT_CONFIRMATION_TIMEOUT,
        "poll_interval": DEFAULT_POLL_INTERVAL,
        # Retry options for read-only RPC calls
        "max_retries": DEFAULT_MAX_RETRIES,
        "retry_delay": DEFAULT_RETRY_DELAY,
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False
