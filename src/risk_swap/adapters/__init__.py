from __future__ import annotations

from .balances import BalanceReader
from .price_feeds import PRICE_FEEDS

__all__ = ["BalanceReader", "PRICE_FEEDS"]
