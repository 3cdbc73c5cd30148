"""Asset registry and fixed constants."""

from typing import Optional, TypedDict


class NetworkAssets(TypedDict):
    ETH: str
    USDT: Optional[str]
    USDC: Optional[str]
    DAI: Optional[str]
    WETH: Optional[str]


NATIVE_ASSET = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NATIVE_DECIMALS = 18

ETH_MAINNET_ASSETS: NetworkAssets = {
    "ETH": NATIVE_ASSET,
    "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "DAI": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
}

BASE_ASSETS: NetworkAssets = {
    "ETH": NATIVE_ASSET,
    "USDT": "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2",
    "USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    "DAI": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
    "WETH": "0x4200000000000000000000000000000000000006",
}

ARBITRUM_ASSETS: NetworkAssets = {
    "ETH": NATIVE_ASSET,
    "USDT": "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
    "USDC": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
    "DAI": "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
    "WETH": "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
}

CHAIN_IDS: dict[str, int] = {
    "mainnet": 1,
    "base": 8453,
    "arbitrum": 42161,
}

DEFAULT_MAINNET_RPC_URL = "https://eth.drpc.org"
DEFAULT_BASE_RPC_URL = "https://mainnet.base.org"
DEFAULT_ARBITRUM_RPC_URL = "https://arb1.arbitrum.io/rpc"

DEFAULT_PRICE_FEED_URL = "https://api.coingecko.com/api/v3"

# Volatility-adjusted sizing
TARGET_VOLATILITY = 0.02  # 2% baseline daily volatility
VOLATILITY_FLOOR = 0.001
SIZE_DECIMAL_PLACES = 6
DEFAULT_RISK_PCT = 0.02

BALANCE_ERROR_MARKER = "Error"
