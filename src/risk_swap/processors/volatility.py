"""Rolling-window volatility math on a daily price series."""

from __future__ import annotations

import math
from typing import Sequence

from ..constants import TARGET_VOLATILITY, VOLATILITY_FLOOR


def log_returns(prices: Sequence[float | None]) -> list[float]:
    """ln(p[i] / p[i-1]) for consecutive prices, dropping non-finite values.

    Zero, negative or missing prices produce non-finite or undefined returns
    and are skipped rather than raising.
    """
    returns: list[float] = []
    for prev, curr in zip(prices, prices[1:]):
        try:
            r = math.log(curr / prev)
        except (ValueError, ZeroDivisionError, TypeError):
            continue
        if math.isfinite(r):
            returns.append(r)
    return returns


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation. An empty sequence has zero volatility."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def observed_volatility(prices: Sequence[float | None]) -> tuple[float, float]:
    """Return ``(raw, floored)`` daily volatility for ``prices``."""
    raw = population_std(log_returns(prices))
    return raw, max(raw, VOLATILITY_FLOOR)


def volatility_adjustment(
    volatility: float, target_volatility: float = TARGET_VOLATILITY
) -> float:
    """Scale factor in (0, 1]: shrinks exposure as volatility exceeds the target."""
    volatility = max(volatility, VOLATILITY_FLOOR)
    return min(1.0, target_volatility / volatility)
