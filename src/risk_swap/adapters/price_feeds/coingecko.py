from __future__ import annotations

import asyncio
import json

import backoff
import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from ...errors import PriceDataUnavailable
from ...logger import get_logger
from ...settings import SwapSettings
from .base import BasePriceFeed

logger = get_logger(__name__)


class MarketChartResponse(BaseModel):
    """``/coins/{id}/market_chart`` payload: ``prices`` is a list of [timestamp_ms, price].

    CoinGecko reports days without a quote as ``null``.
    """

    prices: list[tuple[float, float | None]]

    model_config = ConfigDict(extra="ignore")


class CoinGeckoPriceFeed(BasePriceFeed):
    """Daily USD prices for the volatile asset from CoinGecko's market_chart endpoint."""

    def __init__(self, config: SwapSettings):
        super().__init__(config)
        self.api_base_url = config.price_feed_url.rstrip("/")
        self.coin_id = config.volatile_coin_id
        self._timeout = config.request_timeout
        self._headers = {"accept": "application/json"}
        if config.price_feed_api_key is not None:
            self._headers["x-cg-demo-api-key"] = (
                config.price_feed_api_key.get_secret_value()
            )

    @property
    def feed_name(self) -> str:
        return "coingecko"

    @backoff.on_exception(
        backoff.expo,
        (requests.exceptions.RequestException, requests.exceptions.HTTPError),
        max_tries=5,
        giveup=lambda e: (
            isinstance(e, requests.exceptions.HTTPError)
            and e.response is not None
            and e.response.status_code not in {429, 500, 502, 503, 504}
        ),
        jitter=backoff.full_jitter,
    )
    async def _fetch_market_chart(self, days: int) -> list[tuple[float, float | None]]:
        """Fetch ``days`` of daily [timestamp, price] points.

        Raises:
            PriceDataUnavailable: If the response is not a valid price series
            requests.exceptions.RequestException: If the request fails
        """
        url = f"{self.api_base_url}/coins/{self.coin_id}/market_chart"
        params = {"vs_currency": "usd", "days": days, "interval": "daily"}
        logger.debug("Calling %s params=%s", url, params)
        response = await asyncio.to_thread(
            requests.get,
            url,
            params=params,
            headers=self._headers,
            timeout=self._timeout,
        )
        response.raise_for_status()

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise PriceDataUnavailable("Invalid JSON from CoinGecko", cause=e) from e

        try:
            return MarketChartResponse.model_validate(data).prices
        except ValidationError as e:
            raise PriceDataUnavailable(
                f"Malformed price series for {self.coin_id}", cause=e
            ) from e

    async def fetch_latest_price(self) -> float:
        points = await self._fetch_market_chart(days=1)
        for _, price in reversed(points):
            if price is not None:
                return price
        raise PriceDataUnavailable("No price data returned from CoinGecko")

    async def fetch_daily_prices(self, days: int) -> list[float | None]:
        points = await self._fetch_market_chart(days=days)
        return [price for _, price in points]
