from __future__ import annotations

import json
import logging
from decimal import Decimal

import pytest
from typer.testing import CliRunner

import risk_swap.pipeline as pipeline
from risk_swap.domain import BalanceSnapshot, WorkflowResult
from risk_swap.errors import BalanceReadError
from risk_swap.main import app

WALLET = "0x" + "ab" * 20

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def wallet_env(monkeypatch):
    monkeypatch.setenv("RISK_SWAP_WALLET_ADDRESS", WALLET)


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("RISK_SWAP_AGGREGATOR_API_KEY", "super-secret")

    result = runner.invoke(app, ["--network", "base", "--show-config"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["network"] == "base"
    assert data["aggregator_api_key"] == "***redacted***"
    assert "super-secret" not in result.stdout


def test_balances_json(wallet_env, monkeypatch):
    async def fake_read(state):
        return BalanceSnapshot(state.chain_required.wallet_address, 1, {"ETH": "2.0"})

    monkeypatch.setattr(pipeline, "read_wallet_balances", fake_read)

    result = runner.invoke(app, ["balances", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout[result.stdout.index("{") :])
    assert data["success"] is True
    assert data["balances"] == {"ETH": "2.0"}


def test_balances_failure_exits_nonzero(wallet_env, monkeypatch):
    async def failing_read(state):
        raise BalanceReadError("Node unreachable")

    monkeypatch.setattr(pipeline, "read_wallet_balances", failing_read)

    result = runner.invoke(app, ["balances"])

    assert result.exit_code == 1
    assert "Node unreachable" in result.stdout


def test_missing_wallet_is_a_usage_error():
    result = runner.invoke(app, ["balances"])

    assert result.exit_code == 2


def test_live_swap_requires_private_key(wallet_env):
    result = runner.invoke(app, ["swap", "ETH", "USDT", "--no-dry-run"])

    assert result.exit_code == 2


def test_swap_dry_run_json(wallet_env, monkeypatch):
    calls: list[tuple] = []

    async def fake_run_swap(state, from_symbol, to_symbol, risk_pct, queue):
        calls.append((from_symbol, to_symbol, risk_pct, state.settings.dry_run))
        return WorkflowResult(
            success=True,
            stage="dry_run",
            message="Dry run",
            from_symbol="ETH",
            to_symbol="USDT",
            amount=Decimal("0.040000"),
            amount_base_units="40000000000000000",
        )

    monkeypatch.setattr(pipeline, "run_swap", fake_run_swap)

    result = runner.invoke(app, ["swap", "eth", "usdt", "--risk-pct", "0.02", "--json"])

    assert result.exit_code == 0
    assert calls == [("eth", "usdt", 0.02, True)]
    data = json.loads(result.stdout[result.stdout.index("{") :])
    assert data["amountBaseUnits"] == "40000000000000000"


def test_swap_failure_exits_nonzero(wallet_env, monkeypatch):
    async def failed_run_swap(state, from_symbol, to_symbol, risk_pct, queue):
        return WorkflowResult(
            success=False, stage="validation", message="Failed", error="bad pair"
        )

    monkeypatch.setattr(pipeline, "run_swap", failed_run_swap)

    result = runner.invoke(app, ["swap", "ETH", "BTC", "--json"])

    assert result.exit_code == 1


def test_balances_table(wallet_env, monkeypatch):
    async def fake_read(state):
        return BalanceSnapshot(
            state.chain_required.wallet_address, 1, {"ETH": "2.0", "USDT": "Error"}
        )

    monkeypatch.setattr(pipeline, "read_wallet_balances", fake_read)

    result = runner.invoke(app, ["balances"])

    assert result.exit_code == 0
    assert "USDT" in result.stdout
    assert "Error" in result.stdout


def test_swap_summary_shows_pending_hash(wallet_env, monkeypatch):
    async def pending_run_swap(state, from_symbol, to_symbol, risk_pct, queue):
        return WorkflowResult(
            success=False,
            stage="swap",
            message="Failed to perform token swap.",
            from_symbol="ETH",
            to_symbol="USDT",
            pending_tx_hash="0xpending",
            error="not confirmed",
        )

    monkeypatch.setattr(pipeline, "run_swap", pending_run_swap)

    result = runner.invoke(app, ["swap", "ETH", "USDT"])

    assert result.exit_code == 1
    assert "0xpending" in result.stdout
