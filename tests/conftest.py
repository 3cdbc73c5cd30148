from __future__ import annotations

import logging
import os
from unittest.mock import MagicMock

import pytest

from risk_swap.settings import SwapSettings
from risk_swap.state import AppState, ChainContext

WALLET = "0x" + "ab" * 20


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep local config files and RISK_SWAP_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("RISK_SWAP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def settings():
    return SwapSettings(wallet_address=WALLET, dry_run=True)


@pytest.fixture
def w3():
    return MagicMock()


@pytest.fixture
def state(settings, w3):
    return AppState(
        settings=settings,
        logger=logging.getLogger("test"),
        chain=ChainContext(w3=w3, chain_id=1, wallet_address=WALLET),
    )
