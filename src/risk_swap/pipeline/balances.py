from __future__ import annotations

from ..adapters.balances import BalanceReader
from ..domain import BalanceSnapshot
from ..state import AppState
from .context import WorkflowContext


def build_balance_reader(state: AppState) -> BalanceReader:
    return BalanceReader(
        state.chain_required.w3,
        state.settings.assets,
        max_concurrent_reads=state.settings.max_concurrent_reads,
    )


async def read_wallet_balances(state: AppState) -> BalanceSnapshot:
    chain = state.chain_required
    reader = build_balance_reader(state)
    return await reader.read_balances(chain.wallet_address, chain.chain_id)


async def collect_balances(ctx: WorkflowContext) -> None:
    """Read the wallet's balances and store the snapshot on the context."""
    ctx.stage = "balances"
    ctx.snapshot = await read_wallet_balances(ctx.state)
