"""
Prometheus metrics for the license portal.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Key lifecycle metrics
license_keys_minted_total = Counter(
    "license_keys_minted_total",
    "Total license keys minted",
    ["duration", "channel"],
)

license_keys_claimed_total = Counter(
    "license_keys_claimed_total",
    "Total license keys claimed",
    ["duration", "channel"],
)

license_keys_reactivated_total = Counter(
    "license_keys_reactivated_total",
    "Total license keys reactivated",
    ["duration"],
)

license_keys_deleted_total = Counter(
    "license_keys_deleted_total",
    "Total license keys deleted",
)

hardware_id_events_total = Counter(
    "hardware_id_events_total",
    "Hardware ID bindings, mismatches and resets",
    ["outcome"],
)

# Validation metrics
license_validations_total = Counter(
    "license_validations_total",
    "License validation requests by protocol and outcome",
    ["protocol", "outcome"],
)

# Account metrics
accounts_registered_total = Counter(
    "accounts_registered_total",
    "Total user registrations",
)

account_bans_total = Counter(
    "account_bans_total",
    "Ban and unban operations applied",
    ["action"],
)

# Store metrics
store_errors_total = Counter(
    "store_errors_total",
    "Record store failures translated to STORE_UNAVAILABLE",
    ["operation"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
