from __future__ import annotations

from .sizing import PositionSizer, compute_trade_size
from .volatility import (
    log_returns,
    observed_volatility,
    population_std,
    volatility_adjustment,
)

__all__ = [
    "PositionSizer",
    "compute_trade_size",
    "log_returns",
    "observed_volatility",
    "population_std",
    "volatility_adjustment",
]
