from __future__ import annotations

from .balances import read_wallet_balances
from .run import run_swap

__all__ = ["read_wallet_balances", "run_swap"]
