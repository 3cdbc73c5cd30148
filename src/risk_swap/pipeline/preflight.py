"""Request validation; no network calls happen here."""

from __future__ import annotations

from ..constants import NATIVE_ASSET, NATIVE_DECIMALS
from ..domain import Asset, TradeDirection
from ..errors import ValidationError
from .context import WorkflowContext


def resolve_asset(ctx: WorkflowContext, symbol: str) -> Asset:
    registry = ctx.state.settings.assets
    address = registry.get(symbol)
    if not address:
        raise ValidationError(f"Unsupported token symbol: '{symbol}'")
    if address.lower() == NATIVE_ASSET.lower():
        return Asset(symbol=symbol, address=address, decimals=NATIVE_DECIMALS)
    return Asset(symbol=symbol, address=address)


async def validate_request(ctx: WorkflowContext) -> None:
    """Normalize symbols, resolve assets and derive the trade direction.

    Raises:
        ValidationError: On missing or unsupported symbols, identical symbols,
            a pair other than the configured volatile/stable pair, or a bad risk_pct.
    """
    ctx.stage = "validation"
    s = ctx.state.settings
    log = ctx.state.logger

    if not ctx.from_symbol or not ctx.to_symbol:
        raise ValidationError("Missing 'from' or 'to' symbol")

    ctx.from_symbol = ctx.from_symbol.strip().upper()
    ctx.to_symbol = ctx.to_symbol.strip().upper()

    if ctx.from_symbol == ctx.to_symbol:
        raise ValidationError(f"Cannot swap {ctx.from_symbol} to itself")

    if not 0 < ctx.risk_pct <= 1:
        raise ValidationError(f"risk_pct must be in (0, 1], got {ctx.risk_pct}")

    ctx.from_asset = resolve_asset(ctx, ctx.from_symbol)
    ctx.to_asset = resolve_asset(ctx, ctx.to_symbol)

    pair = {s.volatile_symbol, s.stable_symbol}
    if {ctx.from_symbol, ctx.to_symbol} != pair:
        raise ValidationError(
            f"Only the {s.volatile_symbol}/{s.stable_symbol} pair is supported, "
            f"got from='{ctx.from_symbol}', to='{ctx.to_symbol}'"
        )

    ctx.direction = (
        TradeDirection.TARGET_TO_SOURCE
        if ctx.from_symbol == s.stable_symbol
        else TradeDirection.SOURCE_TO_TARGET
    )
    log.info(
        "Swap request validated: %s -> %s (risk_pct=%s, direction=%s)",
        ctx.from_symbol,
        ctx.to_symbol,
        ctx.risk_pct,
        ctx.direction.value,
    )
