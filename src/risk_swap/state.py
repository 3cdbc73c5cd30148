"""Application state container and composition root."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from eth_typing import URI
from web3 import Web3

from .settings import SwapSettings
from .swap.signer import TransactionSigner


@dataclass
class ChainContext:
    """Node client, signer and identity shared by every component of one run.

    Built once by the composition root and passed explicitly; nothing reads
    a module-level provider or wallet.
    """

    w3: Web3
    chain_id: int
    wallet_address: str
    signer: TransactionSigner | None = None
    api_key: str | None = None

    @property
    def signer_required(self) -> TransactionSigner:
        if self.signer is None:
            raise ValueError("private_key must be configured to sign transactions")
        return self.signer

    @property
    def api_key_required(self) -> str:
        if self.api_key is None:
            raise ValueError("aggregator_api_key must be configured")
        return self.api_key


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed through the pipeline to avoid global state and enable testing.
    """

    settings: SwapSettings
    logger: logging.Logger
    chain: ChainContext | None = None

    @property
    def chain_required(self) -> ChainContext:
        if self.chain is None:
            raise RuntimeError(
                "Chain context has not been set. Ensure build_chain_context() is called first."
            )
        return self.chain


def build_chain_context(settings: SwapSettings) -> ChainContext:
    """Build the node client and, when a key is configured, the signer."""
    w3 = Web3(
        Web3.HTTPProvider(
            URI(settings.rpc_url_effective),
            request_kwargs={"timeout": settings.request_timeout},
        )
    )

    signer = None
    if settings.private_key is not None:
        signer = TransactionSigner(
            w3,
            settings.private_key_required,
            settings.chain_id,
            confirmation_timeout=settings.confirmation_timeout,
        )

    wallet_address = settings.wallet_address
    if wallet_address is None and signer is not None:
        wallet_address = signer.address
    if wallet_address is None:
        raise ValueError("wallet_address or private_key must be configured")

    api_key = (
        settings.aggregator_api_key.get_secret_value()
        if settings.aggregator_api_key
        else None
    )
    return ChainContext(
        w3=w3,
        chain_id=settings.chain_id,
        wallet_address=wallet_address,
        signer=signer,
        api_key=api_key,
    )
