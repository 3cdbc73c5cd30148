from __future__ import annotations

from .base import BasePriceFeed
from .coingecko import CoinGeckoPriceFeed

PRICE_FEEDS: dict[str, type[BasePriceFeed]] = {
    "coingecko": CoinGeckoPriceFeed,
}

__all__ = ["PRICE_FEEDS", "BasePriceFeed", "CoinGeckoPriceFeed"]
