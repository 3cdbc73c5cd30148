from __future__ import annotations

from decimal import Decimal

from ..adapters.price_feeds import PRICE_FEEDS
from ..domain import BalanceSnapshot, TradeDirection
from ..errors import BalanceReadError, ValidationError
from ..processors.sizing import PositionSizer
from ..state import AppState
from ..units import to_base_units
from .context import WorkflowContext


def build_sizer(state: AppState) -> PositionSizer:
    feed = PRICE_FEEDS["coingecko"](state.settings)
    return PositionSizer(feed, history_days=state.settings.history_days)


def _balance(snapshot: BalanceSnapshot, symbol: str, *, required: bool) -> Decimal:
    try:
        return snapshot.amount(symbol)
    except (KeyError, ValueError) as e:
        if not required:
            return Decimal(0)
        raise BalanceReadError(
            f"{symbol} balance is unavailable for sizing", cause=e
        ) from e


async def size_trade(ctx: WorkflowContext) -> None:
    """Size the trade and convert it to base units of the source asset.

    Raises:
        BalanceReadError: If the balance being sold could not be read
        PriceDataUnavailable: If the price series is too short
        DecimalQueryFailed: If the source token's decimals cannot be read
        ValidationError: If the sized amount rounds to zero
    """
    s = ctx.state.settings
    log = ctx.state.logger
    snapshot = ctx.snapshot_required

    ctx.stage = "sizing"
    direction = ctx.direction_required
    # Only the side being sold has to be readable.
    selling_stable = direction is TradeDirection.TARGET_TO_SOURCE
    ctx.sizing = await build_sizer(ctx.state).size(
        volatile_balance=_balance(
            snapshot, s.volatile_symbol, required=not selling_stable
        ),
        stable_balance=_balance(snapshot, s.stable_symbol, required=selling_stable),
        trade_direction=direction,
        risk_pct=ctx.risk_pct,
    )

    amount = ctx.sizing.result_amount
    if amount <= 0:
        raise ValidationError(
            f"Sized amount of {ctx.from_symbol} is zero; nothing to swap",
            stage="sizing",
        )

    ctx.stage = "unit_conversion"
    ctx.amount_base_units = await to_base_units(
        amount, ctx.from_asset_required, ctx.state.chain_required.w3
    )
    log.info(
        "Converted %s %s -> %s base units",
        amount,
        ctx.from_symbol,
        ctx.amount_base_units,
    )
