"""Volatility-adjusted token swaps through a swap-aggregation API."""

__version__ = "0.1.0"
