from __future__ import annotations

from ..domain import SwapRequest
from ..state import AppState
from ..swap import AggregatorAPIClient, SwapOrchestrator
from .context import WorkflowContext


def build_orchestrator(state: AppState) -> SwapOrchestrator:
    s = state.settings
    chain = state.chain_required
    client = AggregatorAPIClient(
        s.aggregator_base_url,
        chain.chain_id,
        chain.api_key_required,
        request_timeout=s.request_timeout,
    )
    return SwapOrchestrator(
        client,
        chain.signer_required,
        approve_exact_amount=s.approve_exact_amount,
    )


async def execute_trade(ctx: WorkflowContext) -> None:
    """Execute the sized swap; in dry-run mode only log what would be sent."""
    s = ctx.state.settings
    log = ctx.state.logger
    chain = ctx.state.chain_required

    request = SwapRequest(
        from_asset=ctx.from_asset_required,
        to_asset=ctx.to_asset_required,
        amount_base_units=ctx.amount_base_units_required,
        wallet_address=chain.wallet_address,
        chain_id=chain.chain_id,
        slippage_bps=s.slippage_bps,
    )

    ctx.stage = "swap"
    if s.dry_run:
        log.info(
            "Dry run: would swap %s %s (%s base units) -> %s",
            ctx.sizing_required.result_amount,
            request.from_asset.symbol,
            request.amount_base_units,
            request.to_asset.symbol,
        )
        return

    orchestrator = build_orchestrator(ctx.state)
    ctx.tx_hash = await orchestrator.execute_swap(request)
