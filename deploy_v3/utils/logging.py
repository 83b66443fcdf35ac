"""
Logging module for the Uniswap V3 deployment tool
"""

import json
import logging
import os
from typing import Any, Optional

from deploy_v3.constants import LOGGER_NAME

# Module-level flag to track if RPC debug logging is enabled
_DEBUG_RPC_ENABLED = False


# Define an enhanced formatter class that can handle both verbose formatting and RPC details
class EnhancedFormatter(logging.Formatter):
    """
    Custom formatter that supports both verbose mode (with additional context information)
    and RPC debug mode (with request/response payloads)
    """

    def __init__(
        self,
        fmt=None,
        datefmt=None,
        style="%",
        verbose=False,
        include_rpc_details=False,
    ):
        # Use more detailed format for verbose mode
        if verbose:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        elif not fmt:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"

        super().__init__(fmt, datefmt, style)
        self.include_rpc_details = include_rpc_details

    def format(self, record):
        result = super().format(record)

        step = getattr(record, "step", None)
        if step:
            result = f"{result} [step={step}]"

        # Only include RPC payloads if explicitly enabled
        if self.include_rpc_details:
            if hasattr(record, "rpc_data") and record.rpc_data:
                result += f"\nRPC Data: {record.rpc_data}"

            if hasattr(record, "response") and record.response:
                result += f"\nResponse: {record.response}"

        return result


def setup_main_log_file(
    output_dir: str, debug_rpc: bool = False
) -> logging.FileHandler:
    """
    Set up a file handler for the deployment log file.

    Args:
        output_dir: The output directory path
        debug_rpc: If True, include RPC request/response payloads

    Returns:
        The file handler for the deployment log file
    """
    os.makedirs(output_dir, exist_ok=True)

    log_file = os.path.join(output_dir, "deployment.log")

    # Append so that resumed runs keep the history of earlier attempts
    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setLevel(logging.DEBUG)  # Always use DEBUG level for file handlers

    formatter = EnhancedFormatter(
        "%(asctime)s - %(levelname)s - %(message)s", include_rpc_details=debug_rpc
    )
    file_handler.setFormatter(formatter)

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(file_handler)

    logger.info(f"Deployment log file: {log_file}")
    return file_handler


def setup_logger(
    verbose: bool = False, debug_rpc: bool = False, output_dir: Optional[str] = None
) -> logging.Logger:
    """
    Set up and return the logger with appropriate formatting.

    Args:
        verbose: If True, set console handler to DEBUG level; otherwise INFO level
        debug_rpc: If True, enable detailed RPC request/response logging
        output_dir: Optional output directory for the deployment log file

    Returns:
        Configured logger instance
    """
    global _DEBUG_RPC_ENABLED
    _DEBUG_RPC_ENABLED = debug_rpc

    logger = logging.getLogger(LOGGER_NAME)

    # Clear any existing handlers to prevent duplicate messages
    if logger.handlers:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(logging.DEBUG)  # Always set logger to DEBUG to capture all logs

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(
        EnhancedFormatter(verbose=verbose, include_rpc_details=debug_rpc)
    )
    logger.addHandler(console_handler)

    if output_dir:
        setup_main_log_file(output_dir, debug_rpc)

    if debug_rpc:
        logger.info("RPC debug logging enabled")

    return logger


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context information.

    Args:
        level: The logging level (e.g., logging.INFO)
        message: The log message
        **kwargs: Additional context to include in the log record
    """
    filtered_kwargs = {k: v for k, v in kwargs.items() if v is not None}

    exc_info = filtered_kwargs.pop("exc_info", None)

    default_extras = {"rpc_data": "", "response": ""}

    # Only add defaults for RPC-related logs to avoid unnecessary processing
    if "rpc_data" in filtered_kwargs or "response" in filtered_kwargs:
        extras = {**default_extras, **filtered_kwargs}
    else:
        extras = filtered_kwargs

    logger = logging.getLogger(LOGGER_NAME)
    logger.log(level, message, exc_info=exc_info, extra=extras)


def log_rpc_request(
    method: str, url: str, params: Optional[list] = None, **kwargs: Any
) -> None:
    """
    Log a JSON-RPC request when RPC debugging is enabled.

    Args:
        method: The JSON-RPC method name
        url: The RPC endpoint URL
        params: Optional request parameters
        **kwargs: Additional context to include in the log record
    """
    if not is_debug_rpc_enabled():
        return

    log_context = kwargs.copy()
    if params:
        log_context["rpc_data"] = json.dumps(params, indent=2, default=str)

    log_with_context(logging.DEBUG, f"RPC Request: {method} {url}", **log_context)


def log_rpc_response(method: str, url: str, response_data: Any = None, **kwargs: Any) -> None:
    """
    Log a JSON-RPC response when RPC debugging is enabled.

    Args:
        method: The JSON-RPC method name
        url: The RPC endpoint URL
        response_data: Optional decoded response payload
        **kwargs: Additional context to include in the log record
    """
    if not is_debug_rpc_enabled():
        return

    log_context = kwargs.copy()

    if response_data is not None:
        if isinstance(response_data, (dict, list)):
            response_str = json.dumps(response_data, indent=2, default=str)
            if len(response_str) > 2000:
                response_str = response_str[:2000] + "... [truncated]"
        else:
            response_str = str(response_data)
            if len(response_str) > 1000:
                response_str = response_str[:1000] + "... [truncated]"
        log_context["response"] = response_str

    log_with_context(logging.DEBUG, f"RPC Response: {method} from {url}", **log_context)


def is_debug_rpc_enabled() -> bool:
    """Check if RPC debug logging is enabled."""
    return _DEBUG_RPC_ENABLED


def get_logger():
    """Get the deploy_v3 logger, creating it with defaults if needed."""
    deploy_logger = logging.getLogger(LOGGER_NAME)
    if not deploy_logger.handlers:
        deploy_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(EnhancedFormatter())
        deploy_logger.addHandler(handler)
    return deploy_logger


# Module logger - will be properly initialized when setup_logger is called
logger = get_logger()
