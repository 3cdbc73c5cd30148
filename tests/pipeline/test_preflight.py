from __future__ import annotations

import pytest

from risk_swap.constants import NATIVE_ASSET
from risk_swap.domain import TradeDirection
from risk_swap.errors import ValidationError
from risk_swap.pipeline.context import WorkflowContext
from risk_swap.pipeline.preflight import validate_request


def _ctx(state, from_symbol, to_symbol, risk_pct=0.02):
    return WorkflowContext(
        state=state, from_symbol=from_symbol, to_symbol=to_symbol, risk_pct=risk_pct
    )


@pytest.mark.asyncio
async def test_volatile_to_stable(state):
    ctx = _ctx(state, "ETH", "USDT")

    await validate_request(ctx)

    assert ctx.direction is TradeDirection.SOURCE_TO_TARGET
    assert ctx.from_asset_required.address == NATIVE_ASSET
    assert ctx.from_asset_required.decimals == 18
    assert ctx.to_asset_required.decimals is None


@pytest.mark.asyncio
async def test_symbols_are_normalized(state):
    ctx = _ctx(state, " usdt", "eth ")

    await validate_request(ctx)

    assert (ctx.from_symbol, ctx.to_symbol) == ("USDT", "ETH")
    assert ctx.direction is TradeDirection.TARGET_TO_SOURCE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "from_symbol, to_symbol",
    [
        ("", "USDT"),
        ("ETH", ""),
        ("ETH", "eth"),
        ("BTC", "USDT"),
        ("USDC", "ETH"),
        ("USDT", "DAI"),
    ],
)
async def test_invalid_pairs_are_rejected(state, from_symbol, to_symbol):
    ctx = _ctx(state, from_symbol, to_symbol)

    with pytest.raises(ValidationError) as exc_info:
        await validate_request(ctx)

    assert exc_info.value.stage == "validation"


@pytest.mark.asyncio
@pytest.mark.parametrize("risk_pct", [0.0, -0.5, 1.01])
async def test_risk_pct_out_of_range(state, risk_pct):
    with pytest.raises(ValidationError, match="risk_pct"):
        await validate_request(_ctx(state, "ETH", "USDT", risk_pct))
