from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from risk_swap.adapters.price_feeds import PRICE_FEEDS
from risk_swap.adapters.price_feeds.coingecko import CoinGeckoPriceFeed
from risk_swap.errors import PriceDataUnavailable
from risk_swap.settings import SwapSettings


def _response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    return response


@pytest.fixture
def captured(monkeypatch):
    calls: list[dict] = []
    state = {"response": _response({"prices": []})}

    def fake_get(url, **kwargs):
        calls.append({"url": url, **kwargs})
        return state["response"]

    monkeypatch.setattr(requests, "get", fake_get)
    return calls, state


def test_registered_as_default_feed():
    assert PRICE_FEEDS["coingecko"] is CoinGeckoPriceFeed


@pytest.mark.asyncio
async def test_fetch_daily_prices(settings, captured):
    calls, state = captured
    state["response"] = _response(
        {"prices": [[1700000000000, 2000.5], [1700086400000, 2010.0]]}
    )
    feed = CoinGeckoPriceFeed(settings)

    prices = await feed.fetch_daily_prices(365)

    assert prices == [2000.5, 2010.0]
    assert calls[0]["url"] == (
        "https://api.coingecko.com/api/v3/coins/ethereum/market_chart"
    )
    assert calls[0]["params"] == {
        "vs_currency": "usd",
        "days": 365,
        "interval": "daily",
    }
    assert "x-cg-demo-api-key" not in calls[0]["headers"]


@pytest.mark.asyncio
async def test_fetch_latest_price_uses_last_point(settings, captured):
    calls, state = captured
    state["response"] = _response({"prices": [[1, 1999.0], [2, 2001.0]]})
    feed = CoinGeckoPriceFeed(settings)

    price = await feed.fetch_latest_price()

    assert price == 2001.0
    assert calls[0]["params"]["days"] == 1


@pytest.mark.asyncio
async def test_fetch_latest_price_without_data(settings, captured):
    feed = CoinGeckoPriceFeed(settings)

    with pytest.raises(PriceDataUnavailable):
        await feed.fetch_latest_price()

@pytest.mark.asyncio
async def test_missing_daily_quotes_are_kept_as_none(settings, captured):
    _, state = captured
    state["response"] = _response(
        {"prices": [[1, 2000.0], [2, None], [3, 2020.0]]}
    )
    feed = CoinGeckoPriceFeed(settings)

    prices = await feed.fetch_daily_prices(365)

    assert prices == [2000.0, None, 2020.0]


@pytest.mark.asyncio
async def test_fetch_latest_price_skips_missing_quote(settings, captured):
    _, state = captured
    state["response"] = _response({"prices": [[1, 1999.0], [2, None]]})
    feed = CoinGeckoPriceFeed(settings)

    assert await feed.fetch_latest_price() == 1999.0


@pytest.mark.asyncio
async def test_fetch_latest_price_all_quotes_missing(settings, captured):
    _, state = captured
    state["response"] = _response({"prices": [[1, None]]})
    feed = CoinGeckoPriceFeed(settings)

    with pytest.raises(PriceDataUnavailable):
        await feed.fetch_latest_price()



@pytest.mark.asyncio
async def test_api_key_header(captured):
    calls, _ = captured
    settings = SwapSettings(price_feed_api_key="cg-key")
    feed = CoinGeckoPriceFeed(settings)

    await feed.fetch_daily_prices(30)

    assert calls[0]["headers"]["x-cg-demo-api-key"] == "cg-key"


@pytest.mark.asyncio
async def test_malformed_payload(settings, captured):
    _, state = captured
    state["response"] = _response({"prices": "not-a-list"})
    feed = CoinGeckoPriceFeed(settings)

    with pytest.raises(PriceDataUnavailable) as exc_info:
        await feed.fetch_daily_prices(365)

    assert exc_info.value.stage == "price_data"


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(settings, captured):
    calls, state = captured
    state["response"] = _response(status_code=404)
    feed = CoinGeckoPriceFeed(settings)

    with pytest.raises(requests.exceptions.HTTPError):
        await feed.fetch_daily_prices(365)

    assert len(calls) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_fetch_daily_prices_integration(settings):
    feed = CoinGeckoPriceFeed(settings)

    prices = await feed.fetch_daily_prices(30)

    assert len(prices) >= 2
    assert all(p > 0 for p in prices if p is not None)
