"""Error taxonomy for the sizing and swap workflow.

Every error carries the workflow ``stage`` it was raised from so the caller can
report where things went wrong and decide whether to re-run the whole workflow.
"""

from __future__ import annotations


class SwapError(Exception):
    """Base class for workflow errors."""

    stage: str = "workflow"

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        if stage is not None:
            self.stage = stage
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"[{self.stage}] {message}: {self.cause}"
        return f"[{self.stage}] {message}"


class ValidationError(SwapError):
    stage = "validation"


class PriceDataUnavailable(SwapError):
    stage = "price_data"


class BalanceReadError(SwapError):
    stage = "balances"


class DecimalQueryFailed(SwapError):
    stage = "unit_conversion"


class InsufficientAllowance(SwapError):
    """Internal signal: the current allowance does not cover the trade."""

    stage = "check_allowance"

    def __init__(self, allowance: int, required: int):
        super().__init__(f"allowance {allowance} < required {required}")
        self.allowance = allowance
        self.required = required


class AllowanceCheckFailed(SwapError):
    stage = "check_allowance"


class ApprovalFailed(SwapError):
    stage = "approval"


class SwapBuildFailed(SwapError):
    stage = "build_swap"


class BroadcastFailed(SwapError):
    stage = "broadcast"


class ConfirmationTimeout(SwapError):
    """The transaction was broadcast but no receipt arrived in time.

    ``tx_hash`` is always set: a broadcast transaction is never abandoned silently.
    """

    stage = "await_confirmation"

    def __init__(
        self,
        message: str,
        tx_hash: str,
        *,
        stage: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, stage=stage, cause=cause)
        self.tx_hash = tx_hash
