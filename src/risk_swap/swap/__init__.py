from __future__ import annotations

from .api_client import AggregatorAPIClient
from .orchestrator import SwapOrchestrator, SwapStage
from .signer import TransactionSigner

__all__ = [
    "AggregatorAPIClient",
    "SwapOrchestrator",
    "SwapStage",
    "TransactionSigner",
]
