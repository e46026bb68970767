"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Remote call resilience
# ------------------------------------------------------------------

MAX_RETRIES = 3
RETRY_DELAY_MS = 1000
REQUEST_TIMEOUT_MS = 10_000
BACKOFF_MULTIPLIER = 1.5
BREAKER_THRESHOLD = 5

# Case-sensitive substrings of an error message that mark a connectivity failure.
TRANSIENT_MESSAGE_MARKERS: tuple[str, ...] = ("Failed to fetch", "timed out", "network")
TRANSIENT_ERROR_CODES: frozenset[str] = frozenset({"ECONNREFUSED"})
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({503, 504})

# ------------------------------------------------------------------
# Maintenance prediction
# ------------------------------------------------------------------

MAINTENANCE_THRESHOLD_DAYS = 30
AGE_WEIGHT = 0.4
ISSUE_WEIGHT = 0.3
SEVERITY_WEIGHT = 0.3
ISSUE_SATURATION = 3
SEVERITY_SATURATION = 2
JITTER_AMPLITUDE = 0.05
# Probabilities at or below this floor carry no maintenance estimate.
PREDICTION_FLOOR = 0.1
# Lower bounds of the medium, high and critical risk bands.
RISK_MEDIUM_THRESHOLD = 0.25
RISK_HIGH_THRESHOLD = 0.5
RISK_CRITICAL_THRESHOLD = 0.75

# ------------------------------------------------------------------
# Backing store (PostgREST error codes)
# ------------------------------------------------------------------

REST_PREFIX = "/rest/v1"
CARTS_TABLE = "carts"
PGRST_TABLE_NOT_FOUND = "PGRST301"
PGRST_COLUMN_NOT_FOUND = "PGRST204"
PG_NOT_AUTHORIZED = "20000"
PG_INVALID_INPUT = "22P02"
