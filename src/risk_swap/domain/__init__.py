"""Domain models for a single sizing-and-swap workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from ..constants import BALANCE_ERROR_MARKER, NATIVE_ASSET


@dataclass(frozen=True)
class Asset:
    """A registered asset: symbol, contract address (or native sentinel), decimals.

    ``decimals`` is ``None`` for tokens whose precision must be queried on-chain.
    """

    symbol: str
    address: str
    decimals: int | None = None

    @property
    def is_native(self) -> bool:
        return self.address.lower() == NATIVE_ASSET.lower()


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balances of one wallet, keyed by symbol.

    Values are decimal strings, or ``"Error"`` when that asset could not be read.
    """

    wallet_address: str
    chain_id: int
    balances: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "balances", MappingProxyType(dict(self.balances)))

    def is_error(self, symbol: str) -> bool:
        return self.balances.get(symbol) == BALANCE_ERROR_MARKER

    def amount(self, symbol: str) -> Decimal:
        """Return the balance of ``symbol`` as a Decimal.

        Raises:
            KeyError: If the symbol is not in the snapshot.
            ValueError: If the balance could not be read.
        """
        value = self.balances[symbol]
        if value == BALANCE_ERROR_MARKER:
            raise ValueError(f"Balance for {symbol} is unavailable")
        return Decimal(value)

    def to_dict(self) -> dict[str, object]:
        return {
            "wallet": self.wallet_address,
            "chainId": self.chain_id,
            "balances": dict(self.balances),
        }


class TradeDirection(str, Enum):
    # volatile -> stable
    SOURCE_TO_TARGET = "SOURCE_TO_TARGET"
    # stable -> volatile
    TARGET_TO_SOURCE = "TARGET_TO_SOURCE"


@dataclass(frozen=True)
class TradeSizing:
    """Outcome of volatility-adjusted sizing, expressed in the source asset."""

    trade_direction: TradeDirection
    risk_pct: float
    observed_volatility: float
    volatility_adjustment: float
    result_amount: Decimal

    @property
    def adjusted_pct(self) -> float:
        return self.risk_pct * self.volatility_adjustment


@dataclass(frozen=True)
class SwapRequest:
    from_asset: Asset
    to_asset: Asset
    amount_base_units: str
    wallet_address: str
    chain_id: int
    slippage_bps: int = 100

    def __post_init__(self) -> None:
        if int(self.amount_base_units) <= 0:
            raise ValueError("amount_base_units must be positive")
        if self.from_asset.address.lower() == self.to_asset.address.lower():
            raise ValueError("from_asset and to_asset must differ")

    @property
    def amount(self) -> int:
        return int(self.amount_base_units)


@dataclass(frozen=True)
class AllowanceState:
    token_address: str
    owner_address: str
    current_allowance: int

    def covers(self, amount: int) -> bool:
        return self.current_allowance >= amount


@dataclass(frozen=True)
class TransactionRequest:
    """Unsigned transaction as built by the aggregation API."""

    to: str
    data: str
    value: int
    gas_limit: int | None = None
    gas_price: int | None = None


@dataclass(frozen=True)
class TransactionOutcome:
    hash: str
    confirmed: bool


@dataclass(frozen=True)
class WorkflowResult:
    """Structured outcome of one workflow invocation, as returned to the outer layer.

    ``tx_hash`` is only set for a confirmed swap. A swap that was broadcast but
    not confirmed reports its hash in ``pending_tx_hash``.
    """

    success: bool
    stage: str
    message: str
    from_symbol: str | None = None
    to_symbol: str | None = None
    amount: Decimal | None = None
    amount_base_units: str | None = None
    tx_hash: str | None = None
    tx_url: str | None = None
    pending_tx_hash: str | None = None
    error: str | None = None
    balances: Mapping[str, str] | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "success": self.success,
            "stage": self.stage,
            "message": self.message,
        }
        optional = {
            "from": self.from_symbol,
            "to": self.to_symbol,
            "amount": str(self.amount) if self.amount is not None else None,
            "amountBaseUnits": self.amount_base_units,
            "txHash": self.tx_hash,
            "txUrl": self.tx_url,
            "pendingTxHash": self.pending_tx_hash,
            "error": self.error,
            "balances": dict(self.balances) if self.balances is not None else None,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data
