from __future__ import annotations

from abc import ABC, abstractmethod

from ...settings import SwapSettings


class BasePriceFeed(ABC):
    """Abstract base class for price feeds of the volatile asset."""

    def __init__(self, config: SwapSettings):
        """Initialize the feed with configuration."""
        self.config = config

    @property
    @abstractmethod
    def feed_name(self) -> str:
        """Return the name of this feed."""
        ...

    @abstractmethod
    async def fetch_latest_price(self) -> float:
        """Latest price of the volatile asset in USD."""
        ...

    @abstractmethod
    async def fetch_daily_prices(self, days: int) -> list[float | None]:
        """Trailing daily prices, oldest first. Days without a quote are ``None``."""
        ...
