"""Constants shared across the deployment tool."""

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"

# Confirmation waiting defaults
DEFAULT_CONFIRMATIONS = 2
DEFAULT_CONFIRMATION_TIMEOUT = 60 * 15  # seconds
DEFAULT_POLL_INTERVAL = 2.0  # seconds

# RPC retry defaults (read-only calls only)
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 60.0
RETRY_BACKOFF_FACTOR = 2.0
RPC_REQUEST_TIMEOUT = 30.0

GWEI = 10**9

# Time spans used as constructor arguments
ONE_MINUTE_SECONDS = 60
ONE_HOUR_SECONDS = ONE_MINUTE_SECONDS * 60
ONE_DAY_SECONDS = ONE_HOUR_SECONDS * 24
ONE_MONTH_SECONDS = ONE_DAY_SECONDS * 30
ONE_YEAR_SECONDS = ONE_DAY_SECONDS * 365

# 1 basis point fee tier
ONE_BP_FEE = 100
ONE_BP_TICK_SPACING = 1

LOGGER_NAME = "deploy_v3"
DEFAULT_STATE_FILE = "state.json"
REPORT_FILE_NAME = "deployment_report.yaml"
