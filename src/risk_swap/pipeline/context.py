from __future__ import annotations

from dataclasses import dataclass

from ..domain import Asset, BalanceSnapshot, TradeDirection, TradeSizing
from ..state import AppState


@dataclass
class WorkflowContext:
    state: AppState
    from_symbol: str
    to_symbol: str
    risk_pct: float
    stage: str = "validation"
    from_asset: Asset | None = None
    to_asset: Asset | None = None
    direction: TradeDirection | None = None
    snapshot: BalanceSnapshot | None = None
    sizing: TradeSizing | None = None
    amount_base_units: str | None = None
    tx_hash: str | None = None

    @property
    def from_asset_required(self) -> Asset:
        if self.from_asset is None:
            raise RuntimeError(
                "Source asset has not been set. Ensure validate_request() is called before accessing this property."
            )
        return self.from_asset

    @property
    def to_asset_required(self) -> Asset:
        if self.to_asset is None:
            raise RuntimeError(
                "Destination asset has not been set. Ensure validate_request() is called before accessing this property."
            )
        return self.to_asset

    @property
    def direction_required(self) -> TradeDirection:
        if self.direction is None:
            raise RuntimeError(
                "Trade direction has not been set. Ensure validate_request() is called before accessing this property."
            )
        return self.direction

    @property
    def snapshot_required(self) -> BalanceSnapshot:
        if self.snapshot is None:
            raise RuntimeError(
                "Balances have not been set. Ensure collect_balances() is called before accessing this property."
            )
        return self.snapshot

    @property
    def sizing_required(self) -> TradeSizing:
        if self.sizing is None:
            raise RuntimeError(
                "Sizing has not been set. Ensure size_trade() is called before accessing this property."
            )
        return self.sizing

    @property
    def amount_base_units_required(self) -> str:
        if self.amount_base_units is None:
            raise RuntimeError(
                "Base-unit amount has not been set. Ensure size_trade() is called before accessing this property."
            )
        return self.amount_base_units
