"""Swap aggregation API constants."""

ALLOWANCE_ENDPOINT = "/approve/allowance"
APPROVE_TRANSACTION_ENDPOINT = "/approve/transaction"
SWAP_ENDPOINT = "/swap"

# Statuses worth surfacing as retryable to the caller; the client itself never retries.
TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}
