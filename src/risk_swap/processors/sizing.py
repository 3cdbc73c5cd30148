from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

from ..adapters.price_feeds.base import BasePriceFeed
from ..constants import SIZE_DECIMAL_PLACES, TARGET_VOLATILITY, VOLATILITY_FLOOR
from ..domain import TradeDirection, TradeSizing
from ..errors import PriceDataUnavailable, ValidationError
from ..logger import get_logger
from .volatility import observed_volatility, volatility_adjustment

logger = get_logger(__name__)

_QUANTUM = Decimal(1).scaleb(-SIZE_DECIMAL_PLACES)


def compute_trade_size(
    volatile_balance: Decimal,
    stable_balance: Decimal,
    trade_direction: TradeDirection,
    risk_pct: float,
    volatility: float,
    target_volatility: float = TARGET_VOLATILITY,
) -> TradeSizing:
    """Size a trade from balances, risk budget and observed volatility.

    The amount is denominated in the source asset and truncated to six
    fractional digits, so it never exceeds ``risk_pct * balance``.

    Args:
        volatile_balance: Balance of the volatile asset (e.g. ETH)
        stable_balance: Balance of the stable asset (e.g. USDT)
        trade_direction: Which side is being sold
        risk_pct: Fraction of the source balance at risk, in (0, 1]
        volatility: Observed daily volatility (floored at 0.001)
        target_volatility: Baseline volatility at which no adjustment applies

    Returns:
        TradeSizing with the adjustment and resulting amount.
    """
    if not 0 < risk_pct <= 1:
        raise ValidationError(f"risk_pct must be in (0, 1], got {risk_pct}")

    volatility = max(volatility, VOLATILITY_FLOOR)
    adjustment = volatility_adjustment(volatility, target_volatility)
    adjusted_pct = Decimal(str(risk_pct)) * Decimal(str(adjustment))

    if trade_direction is TradeDirection.TARGET_TO_SOURCE:
        balance = stable_balance
    else:
        balance = volatile_balance

    amount = (Decimal(balance) * adjusted_pct).quantize(_QUANTUM, rounding=ROUND_DOWN)

    return TradeSizing(
        trade_direction=trade_direction,
        risk_pct=risk_pct,
        observed_volatility=volatility,
        volatility_adjustment=adjustment,
        result_amount=amount,
    )


class PositionSizer:
    """Volatility-adjusted position sizing backed by a daily price feed."""

    def __init__(
        self,
        price_feed: BasePriceFeed,
        *,
        history_days: int = 365,
        target_volatility: float = TARGET_VOLATILITY,
    ):
        self.price_feed = price_feed
        self.history_days = history_days
        self.target_volatility = target_volatility

    async def size(
        self,
        volatile_balance: Decimal,
        stable_balance: Decimal,
        trade_direction: TradeDirection,
        risk_pct: float,
    ) -> TradeSizing:
        """Compute the trade amount in the source asset.

        Raises:
            PriceDataUnavailable: If fewer than two daily prices are returned
            requests.exceptions.RequestException: Price feed errors, unmodified
        """
        logger.info(
            "Calculating swap amount (direction=%s, risk_pct=%s)",
            trade_direction.value,
            risk_pct,
        )

        price = await self.price_feed.fetch_latest_price()
        logger.debug("Current price: $%.2f", price)

        prices = await self.price_feed.fetch_daily_prices(self.history_days)
        logger.debug("Fetched %d daily prices", len(prices))
        if len(prices) < 2:
            raise PriceDataUnavailable(
                f"Need at least 2 daily prices for volatility, got {len(prices)}"
            )

        raw, floored = observed_volatility(prices)
        logger.debug("Raw volatility: %.5f | Adjusted: %.5f", raw, floored)

        sizing = compute_trade_size(
            volatile_balance,
            stable_balance,
            trade_direction,
            risk_pct,
            floored,
            self.target_volatility,
        )
        logger.info(
            "%s | Swap %.4f%% of balance (%s)",
            trade_direction.value,
            sizing.adjusted_pct * 100,
            sizing.result_amount,
        )
        return sizing
