"""High-level workflow orchestration."""

from __future__ import annotations

import asyncio

from ..domain import WorkflowResult
from ..errors import ConfirmationTimeout, SwapError
from ..notifications import (
    NotificationQueue,
    swap_failure_message,
    swap_success_message,
)
from ..state import AppState
from .balances import collect_balances
from .context import WorkflowContext
from .execution import execute_trade
from .preflight import validate_request
from .sizing import size_trade


def _failure_result(ctx: WorkflowContext, exc: BaseException) -> WorkflowResult:
    stage = exc.stage if isinstance(exc, SwapError) else ctx.stage
    pending = exc.tx_hash if isinstance(exc, ConfirmationTimeout) else None
    return WorkflowResult(
        success=False,
        stage=stage,
        message="Failed to perform token swap.",
        from_symbol=ctx.from_symbol,
        to_symbol=ctx.to_symbol,
        amount=ctx.sizing.result_amount if ctx.sizing else None,
        amount_base_units=ctx.amount_base_units,
        pending_tx_hash=pending,
        error=str(exc) or type(exc).__name__,
        balances=ctx.snapshot.balances if ctx.snapshot else None,
    )


async def run_swap(
    state: AppState,
    from_symbol: str,
    to_symbol: str,
    risk_pct: float | None = None,
    notifications: NotificationQueue | None = None,
) -> WorkflowResult:
    """Execute one sizing-and-swap workflow.

    Sequence:
    1. Request validation (no network)
    2. Balance read
    3. Volatility-adjusted sizing and base-unit conversion
    4. Swap execution (skipped in dry-run)

    Failures are returned as a structured result naming the failed stage.
    Notifications are queued, never awaited, so they cannot fail the swap.

    Args:
        state: Application state containing settings, logger and chain context
        from_symbol: Symbol being sold
        to_symbol: Symbol being bought
        risk_pct: Fraction of the source balance at risk (defaults from settings)
        notifications: Optional queue receiving success/failure messages
    """
    s = state.settings
    log = state.logger
    if risk_pct is None:
        risk_pct = s.default_risk_pct

    log.info(
        "Swap request received",
        extra={"from": from_symbol, "to": to_symbol, "risk_pct": risk_pct},
    )

    ctx = WorkflowContext(
        state=state, from_symbol=from_symbol, to_symbol=to_symbol, risk_pct=risk_pct
    )
    timeout_s = s.global_timeout_seconds

    async def _run_pipeline() -> None:
        await validate_request(ctx)
        await collect_balances(ctx)
        await size_trade(ctx)
        await execute_trade(ctx)

    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_pipeline()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_pipeline()
    except asyncio.TimeoutError as exc:
        log.error("Swap workflow timed out at stage %s", ctx.stage)
        result = _failure_result(
            ctx,
            asyncio.TimeoutError(
                f"Workflow exceeded global timeout {timeout_s}s at stage {ctx.stage}"
            ),
        )
        result_exc: BaseException = exc
    except Exception as exc:
        log.error("Swap error: %s", exc)
        result = _failure_result(ctx, exc)
        result_exc = exc
    else:
        if ctx.tx_hash is None:
            return WorkflowResult(
                success=True,
                stage="dry_run",
                message=f"Dry run: {ctx.from_symbol} to {ctx.to_symbol} sized but not submitted.",
                from_symbol=ctx.from_symbol,
                to_symbol=ctx.to_symbol,
                amount=ctx.sizing_required.result_amount,
                amount_base_units=ctx.amount_base_units,
                balances=ctx.snapshot_required.balances,
            )

        tx_url = s.tx_url(ctx.tx_hash)
        log.info("Swap completed successfully: %s", ctx.tx_hash)
        if notifications is not None:
            notifications.publish(
                swap_success_message(
                    ctx.sizing_required.result_amount,
                    ctx.from_symbol,
                    ctx.to_symbol,
                    ctx.snapshot_required.balances,
                    tx_url,
                )
            )
        return WorkflowResult(
            success=True,
            stage="done",
            message=f"Swap from {ctx.from_symbol} to {ctx.to_symbol} submitted successfully.",
            from_symbol=ctx.from_symbol,
            to_symbol=ctx.to_symbol,
            amount=ctx.sizing_required.result_amount,
            amount_base_units=ctx.amount_base_units,
            tx_hash=ctx.tx_hash,
            tx_url=tx_url,
            balances=ctx.snapshot_required.balances,
        )

    log.debug("Swap failure detail", exc_info=result_exc)
    if notifications is not None:
        notifications.publish(
            swap_failure_message(
                risk_pct,
                ctx.from_symbol,
                ctx.to_symbol,
                result.stage,
                result.error or "",
            )
        )
    return result
