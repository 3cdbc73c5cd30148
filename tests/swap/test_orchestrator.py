from __future__ import annotations

import pytest
import requests

from risk_swap.constants import NATIVE_ASSET
from risk_swap.domain import Asset, SwapRequest, TransactionOutcome
from risk_swap.errors import (
    AllowanceCheckFailed,
    ApprovalFailed,
    BroadcastFailed,
    ConfirmationTimeout,
    SwapBuildFailed,
)
from risk_swap.swap.api_client import SwapResponse, TransactionPayload
from risk_swap.swap.orchestrator import SwapOrchestrator, SwapStage

USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
ROUTER = "0x111111125421cA6dc452d289314280a0f8842A65"
WALLET = "0x" + "ab" * 20
ONE_ETH = "1000000000000000000"


class FakeClient:
    def __init__(self, allowance=0):
        self.allowance = allowance
        self.calls: list[tuple] = []
        self.allowance_error: Exception | None = None
        self.approval_error: Exception | None = None
        self.swap_error: Exception | None = None

    def get_allowance(self, token, wallet):
        self.calls.append(("get_allowance", token, wallet))
        if self.allowance_error:
            raise self.allowance_error
        return self.allowance

    def build_approval_transaction(self, token, amount=None):
        self.calls.append(("build_approval", token, amount))
        if self.approval_error:
            raise self.approval_error
        return TransactionPayload(to=token, data="0x095ea7b3", value=0)

    def build_swap_transaction(self, src, dst, amount, sender, slippage_pct):
        self.calls.append(("build_swap", src, dst, amount, sender, slippage_pct))
        if self.swap_error:
            raise self.swap_error
        return SwapResponse(
            tx=TransactionPayload(to=ROUTER, data="0x12aa3caf", value=0, gas=200_000),
            dst_amount="1",
        )


class FakeSigner:
    def __init__(self, calls):
        self.calls = calls
        self.sent: list = []
        self.send_error: dict[str, Exception] = {}
        self.wait_error: dict[str, Exception] = {}

    async def estimate_gas(self, tx):
        self.calls.append(("estimate_gas", tx.to))
        return 55_000

    async def send(self, tx, *, stage="broadcast"):
        self.calls.append(("send", stage))
        if stage in self.send_error:
            raise self.send_error[stage]
        self.sent.append((stage, tx))
        return f"0x{stage}"

    async def wait_for_confirmation(self, tx_hash, *, stage="await_confirmation"):
        self.calls.append(("wait", stage))
        if stage in self.wait_error:
            raise self.wait_error[stage]
        return TransactionOutcome(hash=tx_hash, confirmed=True)


def _request(from_asset, to_asset, amount=ONE_ETH):
    return SwapRequest(
        from_asset=from_asset,
        to_asset=to_asset,
        amount_base_units=amount,
        wallet_address=WALLET,
        chain_id=1,
        slippage_bps=50,
    )


USDT_ASSET = Asset("USDT", USDT, 6)
ETH_ASSET = Asset("ETH", NATIVE_ASSET, 18)


def _orchestrator(allowance=0, **kwargs):
    client = FakeClient(allowance)
    signer = FakeSigner(client.calls)
    return SwapOrchestrator(client, signer, **kwargs), client, signer


def _names(calls):
    return [c[0] for c in calls]


@pytest.mark.asyncio
async def test_zero_allowance_issues_one_approval_before_swap():
    orchestrator, client, signer = _orchestrator(allowance=0)

    tx_hash = await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert tx_hash == "0xswap"
    assert [stage for stage, _ in signer.sent] == ["approval", "swap"]
    assert _names(client.calls) == [
        "get_allowance",
        "build_approval",
        "estimate_gas",
        "send",
        "wait",
        "build_swap",
        "send",
        "wait",
    ]
    assert orchestrator.stage is SwapStage.DONE


@pytest.mark.asyncio
async def test_sufficient_allowance_skips_approval():
    orchestrator, client, signer = _orchestrator(allowance=int(ONE_ETH))

    await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert [stage for stage, _ in signer.sent] == ["swap"]
    assert "build_approval" not in _names(client.calls)


@pytest.mark.asyncio
async def test_native_source_never_checks_allowance():
    orchestrator, client, signer = _orchestrator(allowance=0)

    await orchestrator.execute_swap(_request(ETH_ASSET, USDT_ASSET))

    assert _names(client.calls) == ["build_swap", "send", "wait"]
    assert client.calls[0][1:] == (NATIVE_ASSET, USDT, int(ONE_ETH), WALLET, 0.5)


@pytest.mark.asyncio
async def test_approval_uses_estimated_gas_and_exact_amount():
    orchestrator, client, signer = _orchestrator(allowance=0)

    await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    stage, approval_tx = signer.sent[0]
    assert approval_tx.gas_limit == 55_000
    assert ("build_approval", USDT, int(ONE_ETH)) in client.calls


@pytest.mark.asyncio
async def test_unbounded_approval_when_configured():
    orchestrator, client, _ = _orchestrator(allowance=0, approve_exact_amount=False)

    await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert ("build_approval", USDT, None) in client.calls


@pytest.mark.asyncio
async def test_allowance_api_failure():
    orchestrator, client, signer = _orchestrator()
    client.allowance_error = requests.exceptions.HTTPError("401 Unauthorized")

    with pytest.raises(AllowanceCheckFailed) as exc_info:
        await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert exc_info.value.stage == "check_allowance"
    assert signer.sent == []


@pytest.mark.asyncio
async def test_approval_build_failure():
    orchestrator, client, signer = _orchestrator()
    client.approval_error = ValueError("Invalid approval transaction response")

    with pytest.raises(ApprovalFailed):
        await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert signer.sent == []


@pytest.mark.asyncio
async def test_approval_broadcast_failure_stops_before_swap():
    orchestrator, client, signer = _orchestrator()
    signer.send_error["approval"] = BroadcastFailed("rejected", stage="approval")

    with pytest.raises(ApprovalFailed) as exc_info:
        await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert exc_info.value.stage == "approval"
    assert "build_swap" not in _names(client.calls)


@pytest.mark.asyncio
async def test_swap_build_failure():
    orchestrator, client, signer = _orchestrator(allowance=int(ONE_ETH))
    client.swap_error = requests.exceptions.ConnectionError("reset")

    with pytest.raises(SwapBuildFailed) as exc_info:
        await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert exc_info.value.stage == "build_swap"
    assert signer.sent == []


@pytest.mark.asyncio
async def test_swap_broadcast_failure_is_not_retried():
    orchestrator, client, signer = _orchestrator(allowance=int(ONE_ETH))
    signer.send_error["swap"] = BroadcastFailed("underpriced", stage="swap")

    with pytest.raises(BroadcastFailed):
        await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert _names(client.calls).count("send") == 1
    assert _names(client.calls).count("build_swap") == 1


@pytest.mark.asyncio
async def test_swap_confirmation_timeout_carries_hash():
    orchestrator, _, signer = _orchestrator(allowance=int(ONE_ETH))
    signer.wait_error["swap"] = ConfirmationTimeout(
        "not confirmed", "0xswap", stage="swap"
    )

    with pytest.raises(ConfirmationTimeout) as exc_info:
        await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert exc_info.value.tx_hash == "0xswap"
    assert orchestrator.stage is SwapStage.AWAIT_CONFIRM


@pytest.mark.asyncio
async def test_rerun_rechecks_allowance():
    orchestrator, client, _ = _orchestrator(allowance=int(ONE_ETH))

    await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))
    await orchestrator.execute_swap(_request(USDT_ASSET, ETH_ASSET))

    assert _names(client.calls).count("get_allowance") == 2
